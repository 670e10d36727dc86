"""
In-process attestation network for development and tests.

Produces attestations signed over the real packed encoding with a local
attestor key, so the results pass the offline verifier. Failures can be
scripted per phase to exercise the retry paths.
"""
import hashlib
import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from eth_keys import keys
from eth_utils import decode_hex, keccak

from ..encoding import attestation_message_hash
from ..exceptions import NetworkConnectionError, NetworkResponseError
from .transport import AttestationNetwork

logger = logging.getLogger(__name__)

# Deterministic attestor key for reproducible artifacts
DEFAULT_ATTESTOR_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


def _resolve_path(payload: Any, path: str) -> Any:
    """Evaluate a dotted ``$.a.b`` path against a JSON value"""
    if path in ("$", ""):
        return payload
    current = payload
    for part in path.lstrip("$").strip(".").split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return None
    return current


def _apply_op(value: Any, op: Optional[str]) -> Any:
    if op and op.upper().startswith("SHA256"):
        serialized = value if isinstance(value, str) else json.dumps(value, separators=(",", ":"))
        return hashlib.sha256(serialized.encode("utf-8")).hexdigest()
    return value


class StubNetwork(AttestationNetwork):
    """
    A stub implementation of the attestation network.

    Args:
        responses: Mapping of request URL to the JSON payload "served" for it
        failures: Number of leading failures per phase
            (keys: init, submit, attest, poll)
        empty_attestations: Number of leading attest calls answered with an
            empty attestation entry
        attestor_key: Hex private key the stub signs attestations with
        clock: Returns the attestation timestamp in milliseconds
    """

    def __init__(
        self,
        responses: Optional[Dict[str, Any]] = None,
        failures: Optional[Dict[str, int]] = None,
        empty_attestations: int = 0,
        attestor_key: str = DEFAULT_ATTESTOR_KEY,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.responses = dict(responses or {})
        self.failures = dict(failures or {})
        self.empty_attestations = empty_attestations
        self.clock = clock or (lambda: int(time.time() * 1000))
        self._attestor = keys.PrivateKey(decode_hex(attestor_key))

        self.account = None
        self.chain_id: Optional[int] = None
        self.closed = False
        self.calls: Dict[str, int] = {"init": 0, "submit": 0, "attest": 0, "poll": 0}
        self.attest_params: List[Dict[str, Any]] = []
        self._tasks: Dict[str, Dict[str, Any]] = {}

    @property
    def attestor_address(self) -> str:
        return self._attestor.public_key.to_checksum_address()

    def _maybe_fail(self, phase: str) -> None:
        self.calls[phase] += 1
        if self.failures.get(phase, 0) >= self.calls[phase]:
            logger.debug(f"StubNetwork simulating {phase} failure #{self.calls[phase]}")
            raise NetworkConnectionError(f"Simulated {phase} failure #{self.calls[phase]}")

    def init(self, account: Any, chain_id: int, mode: str = "native") -> Dict[str, Any]:
        self._maybe_fail("init")
        self.account = account
        self.chain_id = chain_id
        logger.debug(f"StubNetwork initialized for {account.address} on chain {chain_id}")
        return {"address": account.address, "chainId": chain_id, "mode": mode}

    def submit_task(self, params: Dict[str, Any]) -> Dict[str, Any]:
        if self.account is None:
            raise NetworkConnectionError("Stub network not initialized")
        self._maybe_fail("submit")

        task_id = f"task-{len(self._tasks) + 1:04d}"
        self._tasks[task_id] = {"address": params.get("address"), "responses": None}
        return {
            "taskId": task_id,
            "taskTxHash": "0x" + keccak(text=task_id).hex(),
            "taskAttestors": [self.attestor_address],
        }

    def _attest_one(self, task_id: str, params: Dict[str, Any], index: int, request: Dict[str, Any], resolves: List[Dict[str, Any]]) -> Dict[str, Any]:
        payload = self.responses.get(request.get("url"), {})
        data = {
            rr["keyName"]: _apply_op(_resolve_path(payload, rr.get("parsePath", "$")), rr.get("op"))
            for rr in resolves
        }
        attestation = {
            "recipient": params.get("address"),
            "request": [request],
            "responseResolves": [{"oneUrlResponseResolve": resolves}],
            "data": json.dumps(data, separators=(",", ":")),
            "attConditions": json.dumps(params.get("attConditions", []), separators=(",", ":")),
            "timestamp": self.clock(),
            "additionParams": json.dumps({"algorithmType": params.get("attMode", {}).get("algorithmType")}, separators=(",", ":")),
        }
        signature = self._attestor.sign_msg_hash(attestation_message_hash(attestation))
        raw = signature.to_bytes()
        # Published with the legacy 27/28 recovery id
        signature_hex = "0x" + (raw[:64] + bytes([raw[64] + 27])).hex()

        return {
            "attestation": attestation,
            "signature": signature_hex,
            "taskId": task_id,
            "reportTxHash": "0x" + keccak(text=f"{task_id}:report:{index}").hex(),
            "attestor": self.attestor_address,
        }

    def attest(self, params: Dict[str, Any], timeout_ms: int) -> List[Dict[str, Any]]:
        task_id = params.get("taskId")
        if task_id not in self._tasks:
            raise NetworkResponseError(f"Unknown task: {task_id}", error_code="UNKNOWN_TASK")
        self.attest_params.append(params)
        self._maybe_fail("attest")

        if self.calls["attest"] <= self.failures.get("attest", 0) + self.empty_attestations:
            return [{"attestation": None, "taskId": task_id}]

        requests = params.get("requests") or []
        resolves = params.get("responseResolves") or []
        entries = [
            self._attest_one(task_id, params, i, req, list(group))
            for i, (req, group) in enumerate(zip(requests, resolves))
        ]
        self._tasks[task_id]["responses"] = [
            {"id": str(i), "content": json.dumps(self.responses.get(req.get("url"), {}))}
            for i, req in enumerate(requests)
        ]
        self._tasks[task_id]["reportTxHash"] = entries[0]["reportTxHash"] if entries else None
        return entries

    def verify_and_poll_task_result(self, task_id: str, report_tx_hash: Optional[str] = None) -> Dict[str, Any]:
        self._maybe_fail("poll")
        task = self._tasks.get(task_id)
        if task is None:
            raise NetworkResponseError(f"Unknown task: {task_id}", error_code="UNKNOWN_TASK")
        if report_tx_hash != task.get("reportTxHash"):
            raise NetworkResponseError(f"Report tx hash mismatch for {task_id}", error_code="REPORT_MISMATCH")
        return {"taskId": task_id, "reportTxHash": report_tx_hash, "status": "SUCCESS"}

    def get_all_json_response(self, task_id: str) -> Any:
        task = self._tasks.get(task_id)
        return task.get("responses") if task else None

    def close(self) -> None:
        self.closed = True
