"""
Interface to the remote attestation network.

The orchestrator only talks to the network through this interface, so the
session handshake, task submission, attestation and polling can be backed by
an HTTP service, an in-process stub or a test double.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class AttestationNetwork(ABC):
    """
    Abstract base class for attestation network clients.

    One instance represents one session; the orchestrator creates a fresh
    instance per task and closes it when the task ends.
    """

    @abstractmethod
    def init(self, account: Any, chain_id: int, mode: str = "native") -> Any:
        """
        Establish identity and session with the network.

        Args:
            account: eth_account LocalAccount identifying the caller
            chain_id: Chain the session is bound to
            mode: Payment/identity mode understood by the network

        Raises:
            NetworkError: If the handshake fails
        """
        pass

    @abstractmethod
    def submit_task(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Register a new task.

        Args:
            params: Task parameters; carries the ``address`` attestations are bound to

        Returns:
            Submit result (task id and network-specific tokens)
        """
        pass

    @abstractmethod
    def attest(self, params: Dict[str, Any], timeout_ms: int) -> List[Dict[str, Any]]:
        """
        Run the attestation exchange for a submitted task.

        Args:
            params: Submit result merged with requests, response resolves
                and transport options
            timeout_ms: Upper bound the network may spend on the exchange

        Returns:
            One attest result entry per request
        """
        pass

    @abstractmethod
    def verify_and_poll_task_result(self, task_id: str, report_tx_hash: Optional[str] = None) -> Any:
        """
        Poll the network until the task's result is finalized.

        Args:
            task_id: Task identifier from the attest result
            report_tx_hash: Hash of the transaction reporting the result

        Returns:
            Task result
        """
        pass

    @abstractmethod
    def get_all_json_response(self, task_id: str) -> Any:
        """
        Return the plain JSON responses captured for a task, or None.
        """
        pass

    def close(self) -> None:
        """Close any open connections or resources."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
