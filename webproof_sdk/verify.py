"""
Offline verification of attestation artifacts.

Re-derives the digest an attestation was signed over, recovers the signer and
compares it with the expected attestor, so a party can pre-check an artifact
before submitting it anywhere. The result also carries the inputs an on-chain
verifier consumes: the split public key, the compact signature, the payload
digest and the attested hashes.
"""
import hashlib
import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from eth_utils import is_hex_address

from .encoding import attestation_message_hash
from .exceptions import AttestationMismatchError, MalformedPublicDataError
from .models import ZkVmRequestData
from .signature import parse_signature_hex, public_key_to_address, recover_signer

logger = logging.getLogger(__name__)

FORMAT_WRAPPED = "wrapped"
FORMAT_RAW = "raw"

# Responses the on-chain verifier accepts per attestation
MAX_RESPONSE_NUM = 1

ATTESTED_HASH_PREFIXES = ("uuid-", "hash-of")
_HEX64 = re.compile(r"^[0-9a-fA-F]{64}$")


@dataclass
class AttestationRecord:
    """An attestation and its signature, resolved from either wire format"""
    format: str
    attestation: Dict[str, Any]
    signature: str
    plain_json_response: Optional[List[Any]] = None


@dataclass
class VerificationResult:
    """Outcome of verifying one attestation"""
    format: str
    message_hash: str
    public_key: str
    recovered_address: str
    signature_valid: bool
    expected_signer: Optional[str] = None
    signer_matches: Optional[bool] = None
    request_urls: List[str] = field(default_factory=list)
    data_sha256: Optional[str] = None
    payload_sha256: Optional[str] = None
    attested_hashes: List[str] = field(default_factory=list)
    public_key_x: Optional[str] = None
    public_key_y: Optional[str] = None
    compact_signature: Optional[str] = None
    allowed_urls: Optional[List[str]] = None
    url_allowed: Optional[bool] = None

    @property
    def ok(self) -> bool:
        return (
            self.signature_valid
            and self.signer_matches is not False
            and self.url_allowed is not False
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format,
            "message_hash": self.message_hash,
            "public_key": self.public_key,
            "public_key_x": self.public_key_x,
            "public_key_y": self.public_key_y,
            "compact_signature": self.compact_signature,
            "recovered_address": self.recovered_address,
            "signature_valid": self.signature_valid,
            "expected_signer": self.expected_signer,
            "signer_matches": self.signer_matches,
            "request_urls": self.request_urls,
            "allowed_urls": self.allowed_urls,
            "url_allowed": self.url_allowed,
            "data_sha256": self.data_sha256,
            "payload_sha256": self.payload_sha256,
            "attested_hashes": self.attested_hashes,
            "ok": self.ok,
        }


def _wrapped_record(public_data: Any, index: int, private_data: Any = None) -> AttestationRecord:
    if not isinstance(public_data, list) or not public_data:
        raise MalformedPublicDataError("'public_data' must be a non-empty list")
    if not 0 <= index < len(public_data):
        raise MalformedPublicDataError(
            f"Entry {index} out of range ({len(public_data)} entries)"
        )
    entry = public_data[index]
    if not isinstance(entry, Mapping):
        raise MalformedPublicDataError("'public_data' entries must be objects")
    attestation = entry.get("attestation")
    signature = entry.get("signature")
    if not isinstance(attestation, Mapping) or not attestation:
        raise MalformedPublicDataError(f"Entry {index} has no attestation")
    if not isinstance(signature, str):
        raise MalformedPublicDataError(f"Entry {index} has no signature")

    plain = None
    if isinstance(private_data, Mapping) and isinstance(private_data.get("plain_json_response"), list):
        plain = list(private_data["plain_json_response"])
    return AttestationRecord(FORMAT_WRAPPED, dict(attestation), signature, plain)


def resolve_attestation_record(obj: Any, index: int = 0) -> AttestationRecord:
    """
    Resolve an artifact into a single attestation record.

    Accepted shapes:
        - wrapped: ``{"public_data": [{"attestation", "signature", ...}], ...}``,
          optionally nested under ``attestationData`` (a full ZkVmRequestData)
        - raw: the attestation object itself carrying ``request`` and a
          ``signatures`` list

    Raises:
        MalformedPublicDataError: For any other shape
    """
    if isinstance(obj, ZkVmRequestData):
        obj = obj.to_dict()
    if not isinstance(obj, Mapping):
        raise MalformedPublicDataError(
            f"Artifact must be a JSON object, got {type(obj).__name__}"
        )

    if isinstance(obj.get("attestationData"), Mapping):
        obj = obj["attestationData"]

    if "public_data" in obj:
        return _wrapped_record(obj["public_data"], index, obj.get("private_data"))

    if "request" in obj and "signatures" in obj:
        signatures = obj["signatures"]
        if not isinstance(signatures, list) or not signatures or not isinstance(signatures[0], str):
            raise MalformedPublicDataError("'signatures' must be a non-empty list of hex strings")
        return AttestationRecord(FORMAT_RAW, dict(obj), signatures[0])

    raise MalformedPublicDataError("Unknown attestation format")


def _request_urls(attestation: Mapping) -> List[str]:
    request = attestation.get("request")
    requests = request if isinstance(request, list) else [request]
    return [r.get("url") for r in requests if isinstance(r, Mapping)]


def _response_payloads(record: AttestationRecord) -> List[bytes]:
    payloads = []
    for entry in record.plain_json_response or []:
        if isinstance(entry, Mapping) and entry.get("id") and entry.get("content"):
            content = entry["content"]
            if not isinstance(content, str):
                content = json.dumps(content, separators=(",", ":"))
            payloads.append(content.encode("utf-8"))
    if not payloads:
        # No private responses: the attested data itself is the payload
        data = record.attestation.get("data")
        if isinstance(data, str):
            payloads.append(data.encode("utf-8"))
    return payloads


def _attested_hashes(data: Any) -> List[str]:
    try:
        parsed = parse_attestation_data(data)
    except MalformedPublicDataError:
        return []
    return [
        value.lower() for key, value in parsed.items()
        if key.startswith(ATTESTED_HASH_PREFIXES) and isinstance(value, str) and _HEX64.match(value)
    ]


def verify_attestation(
    obj: Any,
    expected_signer: Optional[str] = None,
    index: int = 0,
    allowed_urls: Optional[Sequence[str]] = None,
    max_responses: Optional[int] = None,
) -> VerificationResult:
    """
    Verify the signature of an attestation artifact.

    Args:
        obj: Parsed artifact (either wire format) or a ZkVmRequestData
        expected_signer: Address the attestation should be signed by
        index: Which public_data entry to verify (wrapped format)
        allowed_urls: Request URLs the verifier accepts; every attested
            request URL must equal one of them
        max_responses: Upper bound on attested requests (for example
            ``MAX_RESPONSE_NUM``); unbounded when None

    Returns:
        VerificationResult

    Raises:
        MalformedPublicDataError: If the artifact cannot be resolved or encoded,
            or has more requests than max_responses
        InvalidSignatureError: If the signature is malformed or unrecoverable
        InvalidRecoveryIdError: If the signature's v is unsupported
        ValueError: If expected_signer is not an address
    """
    if expected_signer is not None and not is_hex_address(expected_signer):
        raise ValueError(f"Invalid expected signer address: {expected_signer!r}")

    record = resolve_attestation_record(obj, index)
    logger.debug(f"Detected {record.format} attestation format")

    request_urls = _request_urls(record.attestation)
    if max_responses is not None and len(request_urls) > max_responses:
        raise MalformedPublicDataError(
            f"Attestation has {len(request_urls)} requests, at most {max_responses} supported"
        )

    message_hash = attestation_message_hash(record.attestation)
    signature = parse_signature_hex(record.signature)
    public_key, is_valid = recover_signer(message_hash, signature)
    address = public_key_to_address(public_key)

    matches = None
    if expected_signer is not None:
        matches = address.lower() == expected_signer.lower()

    url_allowed = None
    if allowed_urls is not None:
        allowed_urls = list(allowed_urls)
        url_allowed = bool(request_urls) and all(url in allowed_urls for url in request_urls)

    data = record.attestation.get("data")
    data_sha256 = hashlib.sha256(data.encode("utf-8")).hexdigest() if isinstance(data, str) else None
    payloads = _response_payloads(record)
    payload_sha256 = hashlib.sha256(payloads[0]).hexdigest() if payloads else None

    result = VerificationResult(
        format=record.format,
        message_hash="0x" + message_hash.hex(),
        public_key="0x" + public_key.hex(),
        recovered_address=address,
        signature_valid=is_valid,
        expected_signer=expected_signer,
        signer_matches=matches,
        request_urls=request_urls,
        data_sha256=data_sha256,
        payload_sha256=payload_sha256,
        attested_hashes=_attested_hashes(data),
        public_key_x="0x" + public_key[1:33].hex(),
        public_key_y="0x" + public_key[33:65].hex(),
        compact_signature="0x" + signature[:64].hex(),
        allowed_urls=allowed_urls,
        url_allowed=url_allowed,
    )
    logger.info(
        f"Recovered signer {address} (valid={is_valid}, matches={matches}, url_allowed={url_allowed})"
    )
    return result


def parse_attestation_data(data: Any) -> Dict[str, Any]:
    """
    Parse an attestation's ``data`` field into a dict.

    Raises:
        MalformedPublicDataError: If data is not a JSON object
    """
    if isinstance(data, str):
        try:
            parsed = json.loads(data)
        except ValueError as e:
            raise MalformedPublicDataError(f"Attestation data is not valid JSON: {e}") from e
    else:
        parsed = data
    if not isinstance(parsed, Mapping):
        raise MalformedPublicDataError("Attestation data must be a JSON object")
    return dict(parsed)


def check_attestation_conditions(data: Any, expected: Mapping) -> Dict[str, Any]:
    """
    Check the attested data against expected field values.

    Args:
        data: The attestation's ``data`` JSON string (or already-parsed object)
        expected: Mapping of field name to expected value; values are compared
            as strings

    Returns:
        The parsed data

    Raises:
        MalformedPublicDataError: If data is not a JSON object
        AttestationMismatchError: If any field is missing or differs
    """
    parsed = parse_attestation_data(data)

    mismatches = {}
    for key, want in expected.items():
        got = parsed.get(key)
        if got is None or str(got) != str(want):
            mismatches[key] = {"expected": want, "actual": got}

    if mismatches:
        fields = ", ".join(sorted(mismatches))
        raise AttestationMismatchError(f"Attested data does not match for: {fields}", mismatches)
    return parsed
