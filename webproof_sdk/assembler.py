"""
Packaging of a finished task into a persistable attestation record.
"""
import logging
from typing import Any, Dict, List, Sequence, Union

from .exceptions import AssemblyError
from .models import (
    VERIFICATION_TYPE, AttestationData, AttestResultEntry, PrivateData, ZkVmRequestData,
)
from .network.transport import AttestationNetwork

logger = logging.getLogger(__name__)


def assemble_zkvm_request_data(
    network: AttestationNetwork,
    task_result: Any,
    attest_result: Sequence[Union[AttestResultEntry, Dict[str, Any]]],
) -> ZkVmRequestData:
    """
    Build the final artifact from the attest result and the task's plain responses.

    Args:
        network: Session the task ran on; supplies the plain JSON responses
        task_result: Result of the poll phase (logged, not persisted)
        attest_result: Entries returned by the attest phase

    Returns:
        ZkVmRequestData owned by the caller

    Raises:
        AssemblyError: If the attest result is empty or the plain responses
            are unavailable
    """
    if not attest_result:
        raise AssemblyError("Attest result is empty")

    entries: List[AttestResultEntry] = [
        e if isinstance(e, AttestResultEntry) else AttestResultEntry.model_validate(e)
        for e in attest_result
    ]
    task_id = entries[0].task_id
    if not task_id:
        raise AssemblyError("Attest result carries no taskId")

    plain_response = network.get_all_json_response(task_id)
    if not plain_response:
        raise AssemblyError(f"Unable to get plain JSON response for task {task_id}")

    logger.debug(f"Assembling artifact for task {task_id} (task result: {task_result})")
    return ZkVmRequestData(
        attestationData=AttestationData(
            verification_type=VERIFICATION_TYPE,
            public_data=entries,
            private_data=PrivateData(plain_json_response=plain_response),
        ),
        requestid=task_id,
    )
