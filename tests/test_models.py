"""
Tests for the SDK data models.
"""
import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from webproof_sdk.models import (
    AttestResultEntry,
    Request,
    ResponseResolve,
    ZkVmRequestData,
    coerce_requests,
    coerce_response_resolves,
)


def test_request_defaults():
    req = Request(url="https://api.example.com/account")
    assert req.method == "GET"
    assert req.header == {}
    assert req.body == ""


def test_request_is_immutable():
    req = Request(url="https://api.example.com/account")
    with pytest.raises(PydanticValidationError):
        req.url = "https://elsewhere.example.com"


def test_request_accepts_string_header():
    req = Request(url="https://api.example.com", header="X-Api-Key: abc")
    assert req.header == "X-Api-Key: abc"


def test_response_resolve_aliases():
    rr = ResponseResolve.model_validate({"keyName": "amount", "parsePath": "$.amount"})
    assert rr.key_name == "amount"
    assert rr.parse_type == "json"
    assert rr.model_dump(by_alias=True, exclude_none=True) == {
        "keyName": "amount", "parseType": "json", "parsePath": "$.amount",
    }


def test_response_resolve_by_field_name_and_op():
    rr = ResponseResolve(key_name="hash-of-balances", parse_path="$.balances", op="SHA256_EX")
    assert rr.model_dump(by_alias=True)["op"] == "SHA256_EX"


def test_response_resolve_requires_path():
    with pytest.raises(PydanticValidationError):
        ResponseResolve.model_validate({"keyName": "amount"})


def test_coerce_helpers_keep_models():
    req = Request(url="https://api.example.com")
    rr = ResponseResolve(key_name="a", parse_path="$.a")
    assert coerce_requests([req, {"url": "https://b.example.com"}])[0] is req
    groups = coerce_response_resolves([rr, [{"keyName": "b", "parsePath": "$.b"}]])
    assert groups[0] == [rr]
    assert groups[1][0].key_name == "b"


def test_attest_result_entry_keeps_unknown_fields():
    entry = AttestResultEntry.model_validate({
        "attestation": {"data": "{}"},
        "signature": "0x00",
        "taskId": "task-1",
        "reportTxHash": "0xabc",
        "attestor": "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23",
    })
    assert entry.task_id == "task-1"
    assert entry.model_dump(by_alias=True)["attestor"] == "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"


def test_request_data_serializes_with_wire_names():
    data = ZkVmRequestData.model_validate({
        "attestationData": {
            "public_data": [{"attestation": {"data": "{}"}, "signature": "0x00", "taskId": "task-1"}],
            "private_data": {"plain_json_response": [{"id": "0", "content": "{}"}]},
        },
        "requestid": "task-1",
    })
    dumped = json.loads(data.to_json(indent=2))

    assert set(dumped) == {"attestationData", "requestid"}
    assert dumped["attestationData"]["verification_type"] == "HASH_COMPARSION"
    assert dumped["attestationData"]["public_data"][0]["taskId"] == "task-1"
    assert ZkVmRequestData.from_json(data.to_json()) == data
