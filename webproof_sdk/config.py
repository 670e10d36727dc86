"""
Configuration records for attestation tasks.

The orchestrator never reads the environment itself; callers build these
records (optionally with ``NetworkCredentials.from_env``) and pass them in.
"""
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from .retry import RetryPolicy

DEFAULT_ATTEST_ADDRESS = "0x810b7bacEfD5ba495bB688bbFD2501C904036AB7"
DEFAULT_SSL_CIPHER = "ECDHE-RSA-AES128-GCM-SHA256"
DEFAULT_ALGORITHM_TYPE = "mpctls"
DEFAULT_ATTEST_TIMEOUT_MS = 5 * 60 * 1000

# Environment variables read by NetworkCredentials.from_env
ENV_PRIVATE_KEY = "PRIVATE_KEY"
ENV_CHAIN_ID = "CHAIN_ID"
ENV_RPC_URL = "RPC_URL"
ENV_ATTEST_ADDRESS = "WEBPROOF_ATTEST_ADDRESS"


@dataclass
class NetworkCredentials:
    """
    Identity and network settings needed to open a session.

    Attributes:
        private_key: Hex private key of the wallet used for the session
        chain_id: Chain identifier the session is bound to
        rpc_url: RPC endpoint for the chain
        attest_address: Address the network binds attestations to
    """
    private_key: Optional[str] = None
    chain_id: Optional[int] = None
    rpc_url: Optional[str] = None
    attest_address: str = DEFAULT_ATTEST_ADDRESS

    def missing(self) -> List[str]:
        """Names of required fields that are not set"""
        names = []
        if not self.private_key:
            names.append("private_key")
        if self.chain_id is None:
            names.append("chain_id")
        if not self.rpc_url:
            names.append("rpc_url")
        return names

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "NetworkCredentials":
        """
        Build credentials from environment variables.

        Unset variables are left as None so that the orchestrator can report
        them; a non-integer CHAIN_ID raises ValueError.
        """
        env = os.environ if environ is None else environ
        chain_id = env.get(ENV_CHAIN_ID)
        return cls(
            private_key=env.get(ENV_PRIVATE_KEY) or None,
            chain_id=int(chain_id) if chain_id else None,
            rpc_url=env.get(ENV_RPC_URL) or None,
            attest_address=env.get(ENV_ATTEST_ADDRESS) or DEFAULT_ATTEST_ADDRESS,
        )

    def __repr__(self) -> str:
        key = "[REDACTED]" if self.private_key else None
        return (
            f"NetworkCredentials(private_key={key}, chain_id={self.chain_id}, "
            f"rpc_url={self.rpc_url!r}, attest_address={self.attest_address!r})"
        )


@dataclass
class TaskOptions:
    """
    Options for one attestation task.

    ``request_params_callback`` regenerates requests and response resolves from
    scratch; it is called before every attest attempt, since signed request
    parameters (timestamps, nonces) may expire between retries. It may return
    a ``(requests, response_resolves)`` tuple or a mapping with ``requests``
    and ``responseResolves`` keys.
    """
    ssl_cipher: str = DEFAULT_SSL_CIPHER
    algorithm_type: str = DEFAULT_ALGORITHM_TYPE
    no_proxy: bool = True
    special_task: Optional[str] = None
    request_params_callback: Optional[Callable[[], Any]] = None
    attest_timeout_ms: int = DEFAULT_ATTEST_TIMEOUT_MS
    call_deadline_s: Optional[float] = None
    att_conditions: Optional[List[Any]] = None
    expected_data: Optional[Dict[str, Any]] = None
    submit_policy: RetryPolicy = field(default_factory=lambda: RetryPolicy(max_retries=5))
    attest_policy: RetryPolicy = field(default_factory=lambda: RetryPolicy(max_retries=3))
    poll_policy: RetryPolicy = field(default_factory=lambda: RetryPolicy(max_retries=5))
