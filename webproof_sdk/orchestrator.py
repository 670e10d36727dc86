"""
AttestationOrchestrator - drives an attestation task to completion.

A task runs four strictly sequential phases against the attestation network:

1. init   - session handshake (not retried)
2. submit - register a task (retried)
3. attest - run the attestation exchange (retried, request parameters
            regenerated before every attempt when a callback is configured)
4. poll   - wait for the network to finalize the result (retried)

and then packages the result into a ZkVmRequestData. Each call starts a fresh
session and fresh retry counters; nothing is shared between calls.
"""
import logging
import time
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount
from pydantic import ValidationError as PydanticValidationError

from .assembler import assemble_zkvm_request_data
from .config import NetworkCredentials, TaskOptions
from .exceptions import (
    AttestError, EmptyAttestationError, InitError, InvalidInputError, MissingConfigError,
    PhaseError, PollError, RetryExhaustedError, SubmitError, TaskExecutionError,
)
from .models import (
    Request, ResponseResolve, ZkVmRequestData, coerce_requests, coerce_response_resolves,
)
from .network.transport import AttestationNetwork
from .retry import RetryPolicy, call_with_deadline, retry_with_backoff
from .verify import check_attestation_conditions, parse_attestation_data

NetworkFactory = Callable[[], AttestationNetwork]


def validate_task_input(requests: Any, response_resolves: Any) -> Tuple[List[Request], List[List[ResponseResolve]]]:
    """
    Check and normalize the request/resolve pairs of a task.

    Raises:
        InvalidInputError: If the sequences are empty, of different lengths,
            or contain malformed entries
    """
    if (
        not isinstance(requests, (list, tuple))
        or not isinstance(response_resolves, (list, tuple))
        or len(requests) != len(response_resolves)
        or len(requests) == 0
    ):
        raise InvalidInputError("Invalid 'requests' or 'responseResolves' size")

    try:
        return coerce_requests(requests), coerce_response_resolves(response_resolves)
    except (PydanticValidationError, TypeError) as e:
        raise InvalidInputError(f"Malformed request or response resolve: {e}") from e


def _unpack_callback_result(result: Any) -> Tuple[Any, Any]:
    if isinstance(result, Mapping):
        if "requests" not in result:
            raise InvalidInputError("Request parameters callback returned no 'requests'")
        resolves = result.get("responseResolves", result.get("response_resolves"))
        return result["requests"], resolves
    if isinstance(result, (list, tuple)) and len(result) == 2:
        return result[0], result[1]
    raise InvalidInputError(
        f"Request parameters callback must return (requests, response_resolves), got {type(result).__name__}"
    )


class AttestationOrchestrator:
    """
    Runs attestation tasks against an attestation network.

    To use the orchestrator you'll need:
    - A factory producing a fresh AttestationNetwork session per task
    - NetworkCredentials with a private key, chain id and RPC URL
    """

    def __init__(
        self,
        network_factory: NetworkFactory,
        credentials: NetworkCredentials,
        options: Optional[TaskOptions] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Initialize the orchestrator

        Args:
            network_factory: Zero-argument callable returning a new network session
            credentials: Identity and chain settings for the session handshake
            options: Task options (defaults to TaskOptions())
            logger: Optional logger instance for progress reporting
            sleep: Optional sleep function used between retries
        """
        self.network_factory = network_factory
        self.credentials = credentials
        self.options = options or TaskOptions()
        self.logger = logger or logging.getLogger(__name__)
        self.sleep = sleep

    def run(self, requests: Sequence[Any], response_resolves: Sequence[Any]) -> ZkVmRequestData:
        """
        Run one attestation task.

        Args:
            requests: HTTP call descriptors (Request or mappings)
            response_resolves: Per-request sequences of extraction rules

        Returns:
            ZkVmRequestData for the completed task

        Raises:
            InvalidInputError: If the inputs do not line up (no retries consumed)
            MissingConfigError: If credentials are absent or unusable
            ValidationError: If a regenerated input or the attested data is
                invalid (never retried)
            TaskExecutionError: If a phase fails; wraps the phase error
        """
        reqs, resolves = validate_task_input(requests, response_resolves)
        account = self._load_account()

        network = self.network_factory()
        started = time.monotonic()
        try:
            self._init(network, account)
            submit_result = self._submit(network)
            attest_result = self._attest(network, submit_result, reqs, resolves)
            task_result = self._poll(network, attest_result)
            artifact = assemble_zkvm_request_data(network, task_result, attest_result)
        except PhaseError as e:
            self.logger.error(f"Task failed in {e.phase} phase: {e}")
            raise TaskExecutionError(e.phase, e) from e
        finally:
            network.close()

        self.logger.info(f"Total time: {(time.monotonic() - started) * 1000:.0f}ms")
        return artifact

    def _load_account(self) -> LocalAccount:
        missing = self.credentials.missing()
        if missing:
            raise MissingConfigError(
                f"Missing required configuration: {', '.join(missing)}", missing=missing
            )
        try:
            return Account.from_key(self.credentials.private_key)
        except (ValueError, TypeError) as e:
            raise MissingConfigError(f"Invalid private key: {type(e).__name__}", missing=["private_key"]) from e

    def _call(self, fn: Callable[[], Any], deadline: Optional[float] = None) -> Any:
        return call_with_deadline(fn, deadline if deadline is not None else self.options.call_deadline_s)

    def _retry(self, fn: Callable[[], Any], policy: RetryPolicy, phase: str) -> Any:
        return retry_with_backoff(fn, policy, phase=phase, sleep=self.sleep, logger=self.logger)

    def _init(self, network: AttestationNetwork, account: LocalAccount) -> Any:
        self.logger.info("Initializing attestation network session...")
        try:
            result = self._call(lambda: network.init(account, int(self.credentials.chain_id), "native"))
        except Exception as e:
            raise InitError(f"Network init failed: {e}", cause=e) from e
        self.logger.info(f"Network session initialized: {result}")
        return result

    def _submit(self, network: AttestationNetwork) -> Dict[str, Any]:
        self.logger.info("Submitting task...")
        params = {"address": self.credentials.attest_address}
        try:
            result = self._retry(
                lambda: self._call(lambda: network.submit_task(dict(params))),
                self.options.submit_policy,
                "submit",
            )
        except RetryExhaustedError as e:
            raise SubmitError(f"submitTask failed: {e.last_error}", cause=e.last_error) from e.last_error
        self.logger.info(f"Task submitted: {result}")
        return result

    def _current_inputs(self, reqs: List[Request], resolves: List[List[ResponseResolve]]):
        callback = self.options.request_params_callback
        if callback is None:
            return reqs, resolves
        return validate_task_input(*_unpack_callback_result(callback()))

    def _attest_params(
        self,
        submit_result: Dict[str, Any],
        reqs: List[Request],
        resolves: List[List[ResponseResolve]],
    ) -> Dict[str, Any]:
        opts = self.options
        params = {
            "address": self.credentials.attest_address,
            **submit_result,
            "requests": [r.model_dump(by_alias=True) for r in reqs],
            "responseResolves": [
                [rr.model_dump(by_alias=True, exclude_none=True) for rr in group]
                for group in resolves
            ],
            "sslCipher": opts.ssl_cipher,
            "attMode": {"algorithmType": opts.algorithm_type},
            "noProxy": opts.no_proxy,
            "getAllJsonResponse": "true",
        }
        if opts.special_task is not None:
            params["specialTask"] = opts.special_task
        if opts.att_conditions is not None:
            params["attConditions"] = opts.att_conditions
        return params

    def _attest(
        self,
        network: AttestationNetwork,
        submit_result: Dict[str, Any],
        reqs: List[Request],
        resolves: List[List[ResponseResolve]],
    ) -> List[Dict[str, Any]]:
        timeout_ms = self.options.attest_timeout_ms
        deadline = timeout_ms / 1000
        if self.options.call_deadline_s is not None:
            deadline = min(deadline, self.options.call_deadline_s)

        def attempt() -> List[Dict[str, Any]]:
            current_reqs, current_resolves = self._current_inputs(reqs, resolves)
            params = self._attest_params(submit_result, current_reqs, current_resolves)
            self.logger.debug(f"Attest params: {_sanitize_params(params)}")
            result = self._call(lambda: network.attest(params, timeout_ms), deadline)
            if not isinstance(result, list) or not result:
                raise EmptyAttestationError("Attestation result invalid or empty")
            for index, entry in enumerate(result):
                attestation = entry.get("attestation") if isinstance(entry, Mapping) else None
                if not isinstance(attestation, Mapping) or not attestation:
                    raise EmptyAttestationError(f"Attestation entry {index} invalid or empty")
            return result

        self.logger.info("Running attestation...")
        try:
            result = self._retry(attempt, self.options.attest_policy, "attest")
        except RetryExhaustedError as e:
            raise AttestError(f"attest failed: {e.last_error}", cause=e.last_error) from e.last_error

        if self.options.expected_data:
            # Each request extracts its own keys; the task's data is their union
            merged: Dict[str, Any] = {}
            for entry in result:
                merged.update(parse_attestation_data(entry["attestation"].get("data")))
            check_attestation_conditions(merged, self.options.expected_data)
        self.logger.info(f"Attestation done for task {result[0].get('taskId')}")
        return result

    def _poll(self, network: AttestationNetwork, attest_result: List[Dict[str, Any]]) -> Any:
        first = attest_result[0]
        task_id = first.get("taskId")
        report_tx_hash = first.get("reportTxHash")

        self.logger.info("Verifying and polling task result...")
        try:
            result = self._retry(
                lambda: self._call(lambda: network.verify_and_poll_task_result(task_id, report_tx_hash)),
                self.options.poll_policy,
                "poll",
            )
        except RetryExhaustedError as e:
            raise PollError(f"verifyAndPollTaskResult failed: {e.last_error}", cause=e.last_error) from e.last_error
        self.logger.info(f"Verification done: {result}")
        return result


def _sanitize_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove sensitive data from attest params for logging

    Header values usually carry API keys or request signatures.
    """
    result = dict(params)
    sanitized = []
    for req in result.get("requests", []):
        req = dict(req)
        header = req.get("header")
        if isinstance(header, Mapping):
            req["header"] = {k: f"[REDACTED - {len(str(v))} chars]" for k, v in header.items()}
        elif header:
            req["header"] = f"[REDACTED - {len(str(header))} chars]"
        sanitized.append(req)
    result["requests"] = sanitized
    return result


def run_attestation_task(
    requests: Sequence[Any],
    response_resolves: Sequence[Any],
    credentials: NetworkCredentials,
    network: Union[AttestationNetwork, NetworkFactory],
    options: Optional[TaskOptions] = None,
    logger: Optional[logging.Logger] = None,
) -> ZkVmRequestData:
    """
    Run one attestation task; see AttestationOrchestrator.run.

    ``network`` may be a session instance or a factory returning one.
    """
    if isinstance(network, AttestationNetwork):
        instance = network
        factory: NetworkFactory = lambda: instance
    else:
        factory = network
    return AttestationOrchestrator(factory, credentials, options, logger=logger).run(
        requests, response_resolves
    )
