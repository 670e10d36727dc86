"""
Exceptions for the WebProof SDK.
"""
from typing import Optional


class WebProofError(Exception):
    """Base exception for all WebProof SDK errors."""
    pass


# ─────────────────────────────────────────────────────────────────────────
#  Validation errors: never retried, the caller must fix the input
# ─────────────────────────────────────────────────────────────────────────

class ValidationError(WebProofError):
    """Base class for input-validation failures."""
    pass


class InvalidInputError(ValidationError):
    """Raised when requests and response resolves do not line up."""
    pass


class MissingConfigError(ValidationError):
    """Raised when required network or identity credentials are absent."""

    def __init__(self, message: str, missing: Optional[list] = None):
        self.missing = list(missing or [])
        super().__init__(message)


class MalformedPublicDataError(ValidationError):
    """Raised when an attestation's public data cannot be encoded."""
    pass


class InvalidRecoveryIdError(ValidationError):
    """Raised when a signature's recovery id is not a supported value."""
    pass


class InvalidPublicKeyFormatError(ValidationError):
    """Raised when a public key is not a 65-byte uncompressed key."""
    pass


class InvalidSignatureError(ValidationError):
    """Raised when a signature or message hash has the wrong shape."""
    pass


class FieldTooLongError(ValidationError):
    """Raised when a commitment field exceeds its fixed byte window."""

    def __init__(self, message: str, field: Optional[str] = None, length: int = 0):
        self.field = field
        self.length = length
        super().__init__(message)


class AttestationMismatchError(ValidationError):
    """Raised when attested data does not satisfy the expected conditions."""

    def __init__(self, message: str, mismatches: Optional[dict] = None):
        self.mismatches = dict(mismatches or {})
        super().__init__(message)


# ─────────────────────────────────────────────────────────────────────────
#  Pipeline errors
# ─────────────────────────────────────────────────────────────────────────

class PhaseError(WebProofError):
    """Raised when one phase of an attestation task fails."""

    phase = "unknown"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class InitError(PhaseError):
    """Raised when the session handshake with the network fails."""
    phase = "init"


class SubmitError(PhaseError):
    """Raised when task submission fails after all retries."""
    phase = "submit"


class AttestError(PhaseError):
    """Raised when the attestation exchange fails after all retries."""
    phase = "attest"


class PollError(PhaseError):
    """Raised when polling for the task result fails after all retries."""
    phase = "poll"


class AssemblyError(PhaseError):
    """Raised when the final artifact cannot be assembled."""
    phase = "assemble"


class TaskExecutionError(WebProofError):
    """
    Raised by the orchestrator when a task cannot be completed.

    Attributes:
        phase: Name of the phase that failed
        cause: The phase error (which in turn carries the last underlying cause)
    """

    def __init__(self, phase: str, cause: BaseException):
        self.phase = phase
        self.cause = cause
        super().__init__(f"Task execution failed in {phase} phase: {cause}")


class RetryExhaustedError(WebProofError):
    """Raised when a retried call runs out of attempts."""

    def __init__(self, phase: str, attempts: int, last_error: BaseException):
        self.phase = phase
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{phase} failed after {attempts} attempts: {last_error}"
        )


class EmptyAttestationError(WebProofError):
    """Raised when the network answers an attest call without an attestation."""
    pass


class PhaseTimeoutError(WebProofError):
    """Raised when a network call exceeds its per-call deadline."""
    pass


# ─────────────────────────────────────────────────────────────────────────
#  Network client errors
# ─────────────────────────────────────────────────────────────────────────

class NetworkError(WebProofError):
    """Base exception for attestation network errors."""
    pass


class NetworkConnectionError(NetworkError):
    """Raised when connection to the attestation network fails."""
    pass


class NetworkResponseError(NetworkError):
    """Raised when the attestation network returns an error response."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code
        super().__init__(message)
