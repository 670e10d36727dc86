"""
WebProof SDK - verifiable attestations of HTTP responses.

Drives attestation tasks against a remote attestation network and verifies
the resulting artifacts offline.
"""
from .version import __version__
from .assembler import assemble_zkvm_request_data
from .commitment import compute_commitment, keccak_field_hash
from .config import NetworkCredentials, TaskOptions
from .encoding import attestation_message_hash, encode_attestation_for_hashing
from .exceptions import (
    WebProofError, ValidationError, InvalidInputError, MissingConfigError,
    MalformedPublicDataError, InvalidRecoveryIdError, InvalidPublicKeyFormatError,
    InvalidSignatureError, FieldTooLongError, AttestationMismatchError,
    PhaseError, InitError, SubmitError, AttestError, PollError, AssemblyError,
    TaskExecutionError, RetryExhaustedError, EmptyAttestationError, PhaseTimeoutError,
    NetworkError, NetworkConnectionError, NetworkResponseError,
)
from .models import AttestResultEntry, Request, ResponseResolve, ZkVmRequestData
from .orchestrator import AttestationOrchestrator, run_attestation_task
from .retry import RetryPolicy, retry_with_backoff
from .signature import normalize_recovery_id, public_key_to_address, recover_signer
from .verify import (
    MAX_RESPONSE_NUM, VerificationResult, check_attestation_conditions,
    parse_attestation_data, resolve_attestation_record, verify_attestation,
)

__all__ = [
    "__version__",
    "AttestationOrchestrator",
    "run_attestation_task",
    "assemble_zkvm_request_data",
    "encode_attestation_for_hashing",
    "attestation_message_hash",
    "recover_signer",
    "normalize_recovery_id",
    "public_key_to_address",
    "compute_commitment",
    "keccak_field_hash",
    "verify_attestation",
    "resolve_attestation_record",
    "check_attestation_conditions",
    "parse_attestation_data",
    "MAX_RESPONSE_NUM",
    "VerificationResult",
    "RetryPolicy",
    "retry_with_backoff",
    "NetworkCredentials",
    "TaskOptions",
    "Request",
    "ResponseResolve",
    "AttestResultEntry",
    "ZkVmRequestData",
    "WebProofError",
    "ValidationError",
    "InvalidInputError",
    "MissingConfigError",
    "MalformedPublicDataError",
    "InvalidRecoveryIdError",
    "InvalidPublicKeyFormatError",
    "InvalidSignatureError",
    "FieldTooLongError",
    "AttestationMismatchError",
    "PhaseError",
    "InitError",
    "SubmitError",
    "AttestError",
    "PollError",
    "AssemblyError",
    "TaskExecutionError",
    "RetryExhaustedError",
    "EmptyAttestationError",
    "PhaseTimeoutError",
    "NetworkError",
    "NetworkConnectionError",
    "NetworkResponseError",
]
