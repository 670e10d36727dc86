"""
HTTP client for a remote attestation network service.
"""
import logging
import time
import urllib.parse
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from eth_account.messages import encode_defunct
from web3 import Web3
from web3.exceptions import Web3Exception

from ..exceptions import NetworkConnectionError, NetworkResponseError
from ._rate_limited_log import rate_limited_log
from .transport import AttestationNetwork

logger = logging.getLogger(__name__)


def validate_service_url(url: str, name: str = "base_url") -> None:
    """
    Require https:// unless the host is localhost/127.0.0.1.

    Raises:
        ValueError: If the URL is insecure or malformed
    """
    parsed = urllib.parse.urlparse(url)
    host = parsed.netloc.split(':')[0] if parsed.netloc else ''
    is_local = host in ('localhost', '127.0.0.1')
    if not parsed.netloc:
        raise ValueError(f"Invalid {name}: {url!r}")
    if parsed.scheme != 'https' and not is_local:
        raise ValueError(f"{name} must use https:// for security (got: {parsed.scheme}://)")


class HttpAttestationNetwork(AttestationNetwork):
    """
    Attestation network reached over JSON/HTTP.

    Endpoints (relative to ``base_url``):
        POST /session                      session handshake
        POST /tasks                        submit a task
        POST /tasks/{id}/attest            run the attestation
        POST /tasks/{id}/verify            poll for the finalized result
        GET  /tasks/{id}/responses         plain JSON responses
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        retry_count: int = 3,
        session: Optional[requests.Session] = None,
        rpc_url: Optional[str] = None,
    ):
        """
        Args:
            base_url: Service URL (https, or http on localhost)
            timeout: Timeout for ordinary requests in seconds
            retry_count: Connection-level retries for idempotent requests
            session: Optional pre-built requests session
            rpc_url: Optional chain RPC endpoint; when set, the handshake checks
                that it serves the requested chain id
        """
        validate_service_url(base_url)
        if rpc_url:
            validate_service_url(rpc_url, "rpc_url")
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.w3 = Web3(Web3.HTTPProvider(rpc_url)) if rpc_url else None
        self.session_token: Optional[str] = None
        self.address: Optional[str] = None

        self.session = session or requests.Session()
        if session is None:
            # POSTs are never replayed by the adapter
            retries = Retry(
                total=retry_count,
                backoff_factor=0.5,
                status_forcelist=[500, 502, 503, 504],
                allowed_methods=["GET"],
                raise_on_status=False,
            )
            self.session.mount("http://", HTTPAdapter(max_retries=retries))
            self.session.mount("https://", HTTPAdapter(max_retries=retries))

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.session_token:
            headers["Authorization"] = f"Bearer {self.session_token}"
        return headers

    def _call(self, method: str, path: str, payload: Any = None, timeout: Optional[float] = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=timeout or self.timeout,
            )
        except requests.Timeout as e:
            raise NetworkConnectionError(f"Request to {path} timed out: {e}") from e
        except requests.RequestException as e:
            raise NetworkConnectionError(f"Request to {path} failed: {e}") from e

        if response.status_code >= 400:
            raise NetworkResponseError(
                f"{method} {path} returned {response.status_code}: {response.text[:200]}",
                error_code=str(response.status_code),
            )

        content_type = response.headers.get('Content-Type', '')
        if 'application/json' not in content_type:
            rate_limited_log(
                f"Unexpected Content-Type from {path}: {content_type} (expected application/json)",
                logger_instance=logger,
            )
        try:
            return response.json()
        except ValueError as e:
            raise NetworkResponseError(f"Invalid JSON from {path}: {e}") from e

    @classmethod
    def from_credentials(cls, base_url: str, credentials: Any, **kwargs) -> "HttpAttestationNetwork":
        """Build a client whose handshake checks the credentials' RPC endpoint"""
        return cls(base_url, rpc_url=credentials.rpc_url, **kwargs)

    def _check_chain(self, chain_id: int) -> None:
        if self.w3 is None:
            return
        try:
            rpc_chain_id = self.w3.eth.chain_id
        except (Web3Exception, requests.RequestException) as e:
            raise NetworkConnectionError(f"Chain RPC unavailable: {e}") from e
        if int(rpc_chain_id) != int(chain_id):
            raise NetworkResponseError(
                f"RPC endpoint serves chain {rpc_chain_id}, expected {chain_id}",
                error_code="CHAIN_MISMATCH",
            )

    def init(self, account: Any, chain_id: int, mode: str = "native") -> Dict[str, Any]:
        self._check_chain(chain_id)
        timestamp = int(time.time() * 1000)
        message = f"webproof-session:{account.address}:{chain_id}:{timestamp}"
        signed = account.sign_message(encode_defunct(text=message))

        result = self._call("POST", "/session", {
            "address": account.address,
            "chainId": chain_id,
            "mode": mode,
            "timestamp": timestamp,
            "signature": "0x" + bytes(signed.signature).hex(),
        })
        token = result.get("sessionToken") if isinstance(result, dict) else None
        if not token:
            raise NetworkResponseError(f"Missing sessionToken in handshake response: {result}")

        self.session_token = token
        self.address = account.address
        logger.info(f"Session established for {account.address[:10]}... on chain {chain_id}")
        return result

    def submit_task(self, params: Dict[str, Any]) -> Dict[str, Any]:
        result = self._call("POST", "/tasks", params)
        if not isinstance(result, dict) or "taskId" not in result:
            raise NetworkResponseError(f"Missing taskId in submit response: {result}")
        return result

    def attest(self, params: Dict[str, Any], timeout_ms: int) -> List[Dict[str, Any]]:
        task_id = params.get("taskId")
        if not task_id:
            raise NetworkResponseError("Attest parameters carry no taskId")
        result = self._call(
            "POST",
            f"/tasks/{urllib.parse.quote(str(task_id), safe='')}/attest",
            dict(params, timeoutMs=timeout_ms),
            timeout=timeout_ms / 1000,
        )
        if not isinstance(result, list):
            raise NetworkResponseError(f"Attest response must be a list, got {type(result).__name__}")
        return result

    def verify_and_poll_task_result(self, task_id: str, report_tx_hash: Optional[str] = None) -> Any:
        return self._call(
            "POST",
            f"/tasks/{urllib.parse.quote(str(task_id), safe='')}/verify",
            {"taskId": task_id, "reportTxHash": report_tx_hash},
        )

    def get_all_json_response(self, task_id: str) -> Any:
        return self._call("GET", f"/tasks/{urllib.parse.quote(str(task_id), safe='')}/responses")

    def close(self) -> None:
        try:
            self.session.close()
        finally:
            self.session_token = None
