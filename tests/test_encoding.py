"""
Tests for the packed attestation encoding.
"""
import copy

import pytest
from eth_utils import keccak

from webproof_sdk.encoding import (
    UINT64_MAX,
    attestation_message_hash,
    encode_attestation_for_hashing,
)
from webproof_sdk.exceptions import MalformedPublicDataError
from tests.conftest import FIXED_TIMESTAMP_MS, TEST_RECIPIENT, TEST_URL


def test_layout_matches_field_order(sample_attestation):
    """recipient, request hash, resolve hash, data, conditions, timestamp, params"""
    encoded = encode_attestation_for_hashing(sample_attestation)

    expected = (
        bytes.fromhex(TEST_RECIPIENT[2:])
        + keccak((TEST_URL + "[object Object]GET").encode("utf-8"))
        + keccak(b"amountjson$.transaction.amount")
        + b'{"amount":"-10"}'
        + b"[]"
        + FIXED_TIMESTAMP_MS.to_bytes(8, "big")
        + b'{"algorithmType":"mpctls"}'
    )
    assert encoded == expected


def test_message_hash_is_keccak_of_encoding(sample_attestation):
    encoded = encode_attestation_for_hashing(sample_attestation)
    assert attestation_message_hash(sample_attestation) == keccak(encoded)
    assert len(attestation_message_hash(sample_attestation)) == 32


def test_encoding_is_deterministic(sample_attestation):
    first = encode_attestation_for_hashing(sample_attestation)
    second = encode_attestation_for_hashing(copy.deepcopy(sample_attestation))
    assert first == second


def test_single_request_object_equals_one_element_list(sample_attestation):
    single = dict(sample_attestation, request=sample_attestation["request"][0])
    assert encode_attestation_for_hashing(single) == encode_attestation_for_hashing(sample_attestation)


def test_string_header_is_used_verbatim(sample_attestation):
    att = copy.deepcopy(sample_attestation)
    att["request"][0]["header"] = "X-Api-Key: abc"
    encoded = encode_attestation_for_hashing(att)
    assert encoded[20:52] == keccak((TEST_URL + "X-Api-Key: abcGET").encode("utf-8"))


def test_object_header_content_does_not_affect_hash(sample_attestation):
    """Any object header concatenates as [object Object]"""
    att = copy.deepcopy(sample_attestation)
    att["request"][0]["header"] = {"Authorization": "Bearer something-else"}
    assert encode_attestation_for_hashing(att) == encode_attestation_for_hashing(sample_attestation)


def test_missing_request_field_renders_undefined(sample_attestation):
    att = copy.deepcopy(sample_attestation)
    del att["request"][0]["body"]
    encoded = encode_attestation_for_hashing(att)
    assert encoded[20:52] == keccak((TEST_URL + "[object Object]GETundefined").encode("utf-8"))


def test_request_order_matters(sample_attestation):
    att = copy.deepcopy(sample_attestation)
    other = {"url": "https://api.example.com/other", "header": {}, "method": "POST", "body": "{}"}
    att["request"] = [att["request"][0], other]
    swapped = dict(att, request=[other, att["request"][0]])
    assert encode_attestation_for_hashing(att) != encode_attestation_for_hashing(swapped)


def test_multiple_requests_are_concatenated(sample_attestation):
    att = copy.deepcopy(sample_attestation)
    other = {"url": "https://b", "header": "h", "method": "POST", "body": "x"}
    att["request"].append(other)
    encoded = encode_attestation_for_hashing(att)
    preimage = TEST_URL + "[object Object]GET" + "https://bhPOSTx"
    assert encoded[20:52] == keccak(preimage.encode("utf-8"))


def test_resolve_groups_are_flattened(sample_attestation):
    att = copy.deepcopy(sample_attestation)
    att["responseResolves"] = [
        {"oneUrlResponseResolve": [
            {"keyName": "a", "parseType": "json", "parsePath": "$.a"},
            {"keyName": "b", "parseType": "json", "parsePath": "$.b"},
        ]},
        {"oneUrlResponseResolve": [
            {"keyName": "c", "parseType": "json", "parsePath": "$.c"},
        ]},
    ]
    encoded = encode_attestation_for_hashing(att)
    assert encoded[52:84] == keccak(b"ajson$.abjson$.bcjson$.c")


def test_single_resolve_group_uses_first_rule_only(sample_attestation):
    att = copy.deepcopy(sample_attestation)
    att["responseResolves"] = {"oneUrlResponseResolve": [
        {"keyName": "a", "parseType": "json", "parsePath": "$.a"},
        {"keyName": "b", "parseType": "json", "parsePath": "$.b"},
    ]}
    encoded = encode_attestation_for_hashing(att)
    assert encoded[52:84] == keccak(b"ajson$.a")


def test_utf8_data_is_encoded_as_utf8(sample_attestation):
    att = dict(sample_attestation, data='{"name":"Zoë"}')
    encoded = encode_attestation_for_hashing(att)
    assert '{"name":"Zoë"}'.encode("utf-8") in encoded


def test_timestamp_bounds(sample_attestation):
    low = encode_attestation_for_hashing(dict(sample_attestation, timestamp=0))
    high = encode_attestation_for_hashing(dict(sample_attestation, timestamp=UINT64_MAX))
    assert b"\x00" * 8 in low
    assert b"\xff" * 8 in high


@pytest.mark.parametrize("timestamp", [-1, UINT64_MAX + 1, "not-a-number", None, True])
def test_invalid_timestamp_rejected(sample_attestation, timestamp):
    with pytest.raises(MalformedPublicDataError):
        encode_attestation_for_hashing(dict(sample_attestation, timestamp=timestamp))


@pytest.mark.parametrize("timestamp", [1700000000000.9, 1700000000000.5, float("nan"), float("inf")])
def test_fractional_timestamp_rejected(sample_attestation, timestamp):
    with pytest.raises(MalformedPublicDataError):
        encode_attestation_for_hashing(dict(sample_attestation, timestamp=timestamp))


def test_whole_float_timestamp_encodes_like_int(sample_attestation):
    as_float = encode_attestation_for_hashing(dict(sample_attestation, timestamp=1700000000000.0))
    as_int = encode_attestation_for_hashing(dict(sample_attestation, timestamp=1700000000000))
    assert as_float == as_int


@pytest.mark.parametrize("recipient", [
    None,
    "",
    "1111111111111111111111111111111111111111",  # no 0x prefix
    "0x1234",
    "0x" + "zz" * 20,
])
def test_invalid_recipient_rejected(sample_attestation, recipient):
    with pytest.raises(MalformedPublicDataError):
        encode_attestation_for_hashing(dict(sample_attestation, recipient=recipient))


@pytest.mark.parametrize("request_value", [None, [], "https://api.example.com", ["not-an-object"]])
def test_invalid_request_rejected(sample_attestation, request_value):
    with pytest.raises(MalformedPublicDataError):
        encode_attestation_for_hashing(dict(sample_attestation, request=request_value))


@pytest.mark.parametrize("resolves", [None, [], {"oneUrlResponseResolve": []}, [42]])
def test_invalid_resolves_rejected(sample_attestation, resolves):
    with pytest.raises(MalformedPublicDataError):
        encode_attestation_for_hashing(dict(sample_attestation, responseResolves=resolves))


@pytest.mark.parametrize("field", ["data", "attConditions", "additionParams"])
def test_non_string_variable_fields_rejected(sample_attestation, field):
    with pytest.raises(MalformedPublicDataError):
        encode_attestation_for_hashing(dict(sample_attestation, **{field: {"not": "a string"}}))


def test_non_mapping_rejected():
    with pytest.raises(MalformedPublicDataError):
        encode_attestation_for_hashing(["not", "a", "mapping"])
