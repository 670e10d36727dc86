"""
Data models for the WebProof SDK.
"""
import json
from typing import Dict, Any, Optional, List, Union

from pydantic import BaseModel, ConfigDict, Field

VERIFICATION_TYPE = "HASH_COMPARSION"


class Request(BaseModel):
    """One HTTP call whose response is to be attested"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    url: str
    method: str = "GET"
    header: Union[Dict[str, str], str] = Field(default_factory=dict)
    body: str = ""


class ResponseResolve(BaseModel):
    """Extraction rule applied to a response"""
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    key_name: str = Field(..., alias="keyName")
    parse_type: str = Field("json", alias="parseType")
    parse_path: str = Field(..., alias="parsePath")
    op: Optional[str] = None


class AttestResultEntry(BaseModel):
    """
    One per-request attestation entry returned by the network.

    ``attestation`` is kept as the raw mapping the network signed over so that
    re-encoding it reproduces the signed bytes exactly.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    attestation: Optional[Dict[str, Any]] = None
    signature: Optional[str] = None
    task_id: Optional[str] = Field(None, alias="taskId")
    report_tx_hash: Optional[str] = Field(None, alias="reportTxHash")


class PrivateData(BaseModel):
    """Private part of the artifact: the plain response payloads"""
    plain_json_response: Any


class AttestationData(BaseModel):
    """Public proof data plus private response payload"""
    verification_type: str = VERIFICATION_TYPE
    public_data: List[AttestResultEntry]
    private_data: PrivateData


class ZkVmRequestData(BaseModel):
    """Self-contained, persistable record produced by a completed task"""
    model_config = ConfigDict(populate_by_name=True)

    attestation_data: AttestationData = Field(..., alias="attestationData")
    requestid: str

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "ZkVmRequestData":
        return cls.model_validate(json.loads(raw))


def coerce_requests(requests: Any) -> List[Request]:
    """Convert a sequence of mappings or Request objects to Requests"""
    return [
        r if isinstance(r, Request) else Request.model_validate(r)
        for r in requests
    ]


def coerce_response_resolves(response_resolves: Any) -> List[List[ResponseResolve]]:
    """Convert per-request sequences of mappings to ResponseResolve lists"""
    result = []
    for group in response_resolves:
        if isinstance(group, (dict, ResponseResolve)):
            group = [group]
        result.append([
            r if isinstance(r, ResponseResolve) else ResponseResolve.model_validate(r)
            for r in group
        ])
    return result
