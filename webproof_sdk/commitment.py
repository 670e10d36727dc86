"""
Commitment hash binding an off-chain transaction to an escrow condition.

Each field string is laid out as a fixed window of 64 byte-valued field
elements and hashed; the four field hashes are then hashed together in the
order amount, currency, counterparty, tx_id. The window width and the order
are shared with the on-chain verifier.

The default field hash is keccak_field_hash, which is NOT the Poseidon2 hash
the on-chain verifier computes. Commitments made with it will not match
on-chain; pass a Poseidon2 (BN254) implementation as ``hasher`` for that.
"""
import logging
from typing import Callable, List, Optional, Sequence

from eth_utils import keccak

from .ec_constants import BN254_SCALAR_MODULUS
from .exceptions import FieldTooLongError

logger = logging.getLogger(__name__)

FIELD_WINDOW_BYTES = 64

FieldHasher = Callable[[Sequence[int]], int]


def keccak_field_hash(elements: Sequence[int]) -> int:
    """
    Hash a sequence of field elements into one BN254 field element.

    Elements are serialized as 32-byte big-endian words; the keccak-256 digest
    is reduced modulo the scalar field.

    Not compatible with the on-chain Poseidon2 verifier; it keeps the same
    field domain so a Poseidon2 hasher can replace it without other changes.
    """
    data = b"".join((e % BN254_SCALAR_MODULUS).to_bytes(32, "big") for e in elements)
    return int.from_bytes(keccak(data), "big") % BN254_SCALAR_MODULUS


def string_to_field_window(value: str, field: str = "value") -> List[int]:
    """
    Lay out a string as 64 byte-valued field elements, zero padded.

    Raises:
        FieldTooLongError: If the UTF-8 encoding is longer than 64 bytes
    """
    if not isinstance(value, str):
        raise TypeError(f"{field} must be a string, got {type(value).__name__}")
    encoded = value.encode("utf-8")
    if len(encoded) > FIELD_WINDOW_BYTES:
        raise FieldTooLongError(
            f"{field} is {len(encoded)} bytes, exceeds {FIELD_WINDOW_BYTES}-byte window",
            field=field,
            length=len(encoded),
        )
    return list(encoded) + [0] * (FIELD_WINDOW_BYTES - len(encoded))


def hash_bounded_string(value: str, hasher: Optional[FieldHasher] = None, field: str = "value") -> int:
    """Hash one string through its fixed 64-element window"""
    hash_fn = hasher or keccak_field_hash
    return hash_fn(string_to_field_window(value, field))


def compute_commitment(
    amount: str,
    currency: str,
    counterparty: str,
    tx_id: str,
    hasher: Optional[FieldHasher] = None,
) -> int:
    """
    Compute the commitment value for a transaction.

    Args:
        amount: Transaction amount as a string (e.g. "-10")
        currency: Currency code (e.g. "GBP")
        counterparty: Counterparty identifier (e.g. a username)
        tx_id: Transaction id
        hasher: Field hash to use. Defaults to keccak_field_hash, whose output
            does not match the on-chain verifier; supply a Poseidon2 (BN254)
            hasher when the commitment must verify on-chain

    Returns:
        Commitment as an integer field element

    Raises:
        FieldTooLongError: If any field is longer than 64 bytes in UTF-8
    """
    hash_fn = hasher or keccak_field_hash
    field_hashes = [
        hash_bounded_string(amount, hash_fn, "amount"),
        hash_bounded_string(currency, hash_fn, "currency"),
        hash_bounded_string(counterparty, hash_fn, "counterparty"),
        hash_bounded_string(tx_id, hash_fn, "tx_id"),
    ]
    commitment = hash_fn(field_hashes)
    logger.debug("Computed commitment 0x%064x", commitment)
    return commitment
