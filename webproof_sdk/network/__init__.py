"""
Clients for the remote attestation network.

``AttestationNetwork`` is the interface the orchestrator drives;
``HttpAttestationNetwork`` talks to a JSON/HTTP service and ``StubNetwork``
simulates the network in-process for development and tests.
"""
from .transport import AttestationNetwork
from .http_network import HttpAttestationNetwork, validate_service_url
from .stub_network import StubNetwork

__all__ = [
    'AttestationNetwork',
    'HttpAttestationNetwork',
    'StubNetwork',
    'validate_service_url',
]
