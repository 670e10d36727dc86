"""
Property-based tests for the encoder, recovery and commitment.
"""
from eth_keys import keys
from eth_utils import keccak
from hypothesis import assume, given, settings, strategies as st

from webproof_sdk.commitment import compute_commitment
from webproof_sdk.ec_constants import BN254_SCALAR_MODULUS, SECP256K1_N
from webproof_sdk.encoding import UINT64_MAX, attestation_message_hash, encode_attestation_for_hashing
from webproof_sdk.signature import public_key_to_address, recover_signer

text = st.text(max_size=200)
field_text = st.text(max_size=16)
addresses = st.binary(min_size=20, max_size=20).map(lambda b: "0x" + b.hex())
timestamps = st.integers(min_value=0, max_value=UINT64_MAX)


def _attestation(recipient, data, conditions, timestamp, params, url="https://api.example.com"):
    return {
        "recipient": recipient,
        "request": {"url": url, "header": "", "method": "GET", "body": ""},
        "responseResolves": [{"oneUrlResponseResolve": [{"keyName": "k", "parseType": "json", "parsePath": "$.k"}]}],
        "data": data,
        "attConditions": conditions,
        "timestamp": timestamp,
        "additionParams": params,
    }


@given(addresses, text, text, timestamps, text)
def test_encoding_length_and_determinism(recipient, data, conditions, timestamp, params):
    att = _attestation(recipient, data, conditions, timestamp, params)
    encoded = encode_attestation_for_hashing(att)

    fixed = 20 + 32 + 32 + 8
    variable = len(data.encode("utf-8")) + len(conditions.encode("utf-8")) + len(params.encode("utf-8"))
    assert len(encoded) == fixed + variable
    assert encoded == encode_attestation_for_hashing(dict(att))
    assert encoded[:20] == bytes.fromhex(recipient[2:])


@given(addresses, text, timestamps, timestamps)
def test_timestamp_changes_digest(recipient, data, t1, t2):
    assume(t1 != t2)
    a = attestation_message_hash(_attestation(recipient, data, "", t1, ""))
    b = attestation_message_hash(_attestation(recipient, data, "", t2, ""))
    assert a != b


@settings(max_examples=25, deadline=None)
@given(st.integers(min_value=1, max_value=SECP256K1_N - 1), st.binary(min_size=1, max_size=64))
def test_recovery_finds_signer(secret, message):
    key = keys.PrivateKey(secret.to_bytes(32, "big"))
    message_hash = keccak(message)
    raw = key.sign_msg_hash(message_hash).to_bytes()

    public_key, is_valid = recover_signer(message_hash, raw[:64] + bytes([raw[64] + 27]))
    assert is_valid
    assert public_key_to_address(public_key) == key.public_key.to_checksum_address()


@given(field_text, field_text, field_text, field_text)
def test_commitment_in_field_and_deterministic(amount, currency, counterparty, tx_id):
    value = compute_commitment(amount, currency, counterparty, tx_id)
    assert 0 <= value < BN254_SCALAR_MODULUS
    assert value == compute_commitment(amount, currency, counterparty, tx_id)


@given(field_text, field_text)
def test_commitment_is_order_sensitive(currency, counterparty):
    assume(currency != counterparty)
    assert compute_commitment("1", currency, counterparty, "t") != compute_commitment("1", counterparty, currency, "t")
