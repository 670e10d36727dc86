"""
Deterministic packed encoding of an attestation's public fields.

The signer hashes (keccak-256) exactly the bytes produced here, so the field
order and the string conversions must stay byte-for-byte stable:

    recipient(20) || keccak(requests) || keccak(resolves) || data
        || attConditions || timestamp(8, big-endian) || additionParams

The three variable-length fields come last; no separators or length prefixes
are inserted.
"""
import logging
from collections.abc import Mapping
from typing import Any, List

from eth_utils import is_hex_address, keccak, to_bytes
from pydantic import BaseModel

from .exceptions import MalformedPublicDataError

logger = logging.getLogger(__name__)

UINT64_MAX = 2 ** 64 - 1


def _js_str(value: Any) -> str:
    """
    Render a value the way the signer's string concatenation does.

    Headers in particular arrive as objects, which the signer concatenates
    as ``[object Object]``.
    """
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        return "[object Object]"
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else _js_str(v) for v in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _field(obj: Mapping, key: str) -> str:
    if key not in obj:
        return "undefined"
    return _js_str(obj[key])


def _as_mapping(public_data: Any) -> Mapping:
    if isinstance(public_data, BaseModel):
        public_data = public_data.model_dump(by_alias=True)
    if not isinstance(public_data, Mapping):
        raise MalformedPublicDataError(
            f"Public data must be a mapping, got {type(public_data).__name__}"
        )
    return public_data


def _recipient_bytes(recipient: Any) -> bytes:
    if not isinstance(recipient, str) or not recipient.startswith(("0x", "0X")):
        raise MalformedPublicDataError(f"Invalid recipient address: {recipient!r}")
    if not is_hex_address(recipient):
        raise MalformedPublicDataError(f"Invalid recipient address: {recipient!r}")
    return to_bytes(hexstr=recipient)


def _request_preimage(request: Any) -> str:
    if isinstance(request, Mapping):
        requests = [request]
    elif isinstance(request, (list, tuple)) and request:
        requests = list(request)
    else:
        raise MalformedPublicDataError(
            "'request' must be an object or a non-empty sequence of objects"
        )

    parts = []
    for req in requests:
        if not isinstance(req, Mapping):
            raise MalformedPublicDataError(
                f"Request entries must be objects, got {type(req).__name__}"
            )
        parts.append(
            _field(req, "url") + _field(req, "header")
            + _field(req, "method") + _field(req, "body")
        )
    return "".join(parts)


def _flatten_resolves(resolves: Any) -> List[Mapping]:
    if isinstance(resolves, Mapping):
        # A single group contributes only its first rule
        group = resolves.get("oneUrlResponseResolve")
        if not isinstance(group, (list, tuple)) or not group:
            raise MalformedPublicDataError(
                "'responseResolves' object must hold a non-empty 'oneUrlResponseResolve'"
            )
        return [group[0]]

    if not isinstance(resolves, (list, tuple)) or not resolves:
        raise MalformedPublicDataError(
            "'responseResolves' must be an object or a non-empty sequence of objects"
        )

    flat: List[Any] = []
    for entry in resolves:
        if isinstance(entry, Mapping) and "oneUrlResponseResolve" in entry:
            group = entry["oneUrlResponseResolve"]
            if isinstance(group, (list, tuple)):
                flat.extend(group)
            else:
                flat.append(group)
        elif isinstance(entry, (list, tuple)):
            flat.extend(entry)
        else:
            flat.append(entry)
    return flat


def _resolve_preimage(resolves: Any) -> str:
    parts = []
    for rr in _flatten_resolves(resolves):
        if not isinstance(rr, Mapping):
            raise MalformedPublicDataError(
                f"Response resolve entries must be objects, got {type(rr).__name__}"
            )
        parts.append(
            _field(rr, "keyName") + _field(rr, "parseType") + _field(rr, "parsePath")
        )
    return "".join(parts)


def _utf8_field(public_data: Mapping, key: str) -> bytes:
    value = public_data.get(key)
    if not isinstance(value, str):
        raise MalformedPublicDataError(
            f"'{key}' must be a string, got {type(value).__name__}"
        )
    return value.encode("utf-8")


def _timestamp_bytes(timestamp: Any) -> bytes:
    if isinstance(timestamp, bool):
        raise MalformedPublicDataError("'timestamp' must be an integer")
    if isinstance(timestamp, float) and not timestamp.is_integer():
        raise MalformedPublicDataError(f"Timestamp must be a whole number of milliseconds: {timestamp!r}")
    try:
        value = int(timestamp)
    except (TypeError, ValueError) as e:
        raise MalformedPublicDataError(f"Invalid timestamp {timestamp!r}: {e}") from e
    if not 0 <= value <= UINT64_MAX:
        raise MalformedPublicDataError(f"Timestamp out of uint64 range: {value}")
    return value.to_bytes(8, "big")


def encode_attestation_for_hashing(public_data: Any) -> bytes:
    """
    Pack an attestation's public fields into the byte layout the signer hashes.

    Args:
        public_data: The ``attestation`` object of an attest result entry
            (a mapping, or a pydantic model dumped by alias)

    Returns:
        The packed byte sequence

    Raises:
        MalformedPublicDataError: If a field is missing or has the wrong shape
    """
    att = _as_mapping(public_data)

    out = bytearray()
    out += _recipient_bytes(att.get("recipient"))
    out += keccak(_request_preimage(att.get("request")).encode("utf-8"))
    out += keccak(_resolve_preimage(att.get("responseResolves")).encode("utf-8"))
    out += _utf8_field(att, "data")
    out += _utf8_field(att, "attConditions")
    out += _timestamp_bytes(att.get("timestamp"))
    out += _utf8_field(att, "additionParams")

    logger.debug("Encoded attestation into %d bytes", len(out))
    return bytes(out)


def attestation_message_hash(public_data: Any) -> bytes:
    """keccak-256 of the packed encoding; the digest the signer signed"""
    return keccak(encode_attestation_for_hashing(public_data))
