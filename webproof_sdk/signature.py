"""
secp256k1 public-key recovery for attestation signatures.
"""
import logging
from typing import Tuple, Union

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as EthKeysValidationError
from eth_utils import keccak, to_checksum_address

from .ec_constants import (
    SECP256K1_MIN, SECP256K1_MAX, SIGNATURE_LENGTH, MESSAGE_HASH_LENGTH,
    UNCOMPRESSED_PUBKEY_LENGTH, UNCOMPRESSED_PUBKEY_PREFIX,
)
from .exceptions import (
    InvalidPublicKeyFormatError, InvalidRecoveryIdError, InvalidSignatureError,
)

logger = logging.getLogger(__name__)


def normalize_recovery_id(v: int) -> int:
    """
    Normalize a signature's recovery id to 0 or 1.

    Accepts the legacy 27/28 form, the replay-protected (EIP-155) form
    ``chain_id * 2 + 35 + y`` and the raw 0/1 form.

    Raises:
        InvalidRecoveryIdError: For any other value
    """
    if v in (27, 28):
        return v - 27
    if v >= 35:
        return (v - 35) % 2
    if v in (0, 1):
        return v
    raise InvalidRecoveryIdError(f"Unsupported recovery id: {v}")


def parse_signature_hex(signature: Union[str, bytes]) -> bytes:
    """
    Decode a 65-byte signature given as hex (with or without 0x) or raw bytes.

    Raises:
        InvalidSignatureError: If the value is not valid hex of the right length
    """
    if isinstance(signature, (bytes, bytearray)):
        raw = bytes(signature)
    elif isinstance(signature, str):
        hex_part = signature[2:] if signature.lower().startswith("0x") else signature
        try:
            raw = bytes.fromhex(hex_part)
        except ValueError as e:
            raise InvalidSignatureError(f"Invalid signature hex: {e}") from e
    else:
        raise InvalidSignatureError(
            f"Signature must be hex string or bytes, got {type(signature).__name__}"
        )

    if len(raw) != SIGNATURE_LENGTH:
        raise InvalidSignatureError(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}"
        )
    return raw


def public_key_to_address(public_key: bytes) -> str:
    """
    Derive the checksummed address of an uncompressed public key.

    The address is the low 20 bytes of keccak-256 over x || y.

    Raises:
        InvalidPublicKeyFormatError: Unless the key is 65 bytes with a 0x04 prefix
    """
    if (
        not isinstance(public_key, (bytes, bytearray))
        or len(public_key) != UNCOMPRESSED_PUBKEY_LENGTH
        or public_key[0] != UNCOMPRESSED_PUBKEY_PREFIX
    ):
        raise InvalidPublicKeyFormatError(
            "Expected uncompressed public key (65 bytes, 0x04 prefix)"
        )
    return to_checksum_address(keccak(bytes(public_key[1:]))[-20:])


def recover_signer(message_hash: bytes, signature: bytes) -> Tuple[bytes, bool]:
    """
    Recover the public key that produced ``signature`` over ``message_hash``.

    Args:
        message_hash: 32-byte digest that was signed
        signature: 65-byte r || s || v signature

    Returns:
        Tuple of (65-byte uncompressed public key, signature verifies against it)

    Raises:
        InvalidSignatureError: If the inputs have the wrong shape or no key
            can be recovered
        InvalidRecoveryIdError: If v is not a supported recovery id
    """
    if len(message_hash) != MESSAGE_HASH_LENGTH:
        raise InvalidSignatureError(
            f"Message hash must be {MESSAGE_HASH_LENGTH} bytes, got {len(message_hash)}"
        )
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignatureError(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )

    r = int.from_bytes(signature[0:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = normalize_recovery_id(signature[64])

    for name, value in (("r", r), ("s", s)):
        if not SECP256K1_MIN <= value <= SECP256K1_MAX:
            raise InvalidSignatureError(f"Signature component {name} out of range")

    try:
        sig = keys.Signature(vrs=(v, r, s))
        recovered = sig.recover_public_key_from_msg_hash(bytes(message_hash))
    except (BadSignature, EthKeysValidationError) as e:
        raise InvalidSignatureError(f"Public key recovery failed: {e}") from e

    is_valid = recovered.verify_msg_hash(bytes(message_hash), sig)
    if not is_valid:
        logger.warning("Recovered key does not verify the signature")

    return bytes([UNCOMPRESSED_PUBKEY_PREFIX]) + recovered.to_bytes(), is_valid
