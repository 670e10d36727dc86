#!/usr/bin/env python3
"""
Simple example of using the WebProof SDK.

Runs an attestation task against the in-process stub network (or a real
network when ATTESTATION_NETWORK_URL is set), writes the artifact to disk and
verifies it offline.
"""
import logging
import os
import time

from webproof_sdk import (
    AttestationOrchestrator,
    NetworkCredentials,
    TaskExecutionError,
    TaskOptions,
    WebProofError,
    compute_commitment,
    verify_attestation,
)
from webproof_sdk.network import HttpAttestationNetwork, StubNetwork

ACCOUNT_URL = "https://api.example.com/account"
DEMO_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"


def main():
    """
    Demonstrate basic usage of the AttestationOrchestrator.

    This example shows how to:
    1. Build credentials and a network factory
    2. Regenerate signed request headers before every attest attempt
    3. Run the task and verify the resulting artifact
    """
    logging.basicConfig(level=logging.INFO)

    network_url = os.environ.get("ATTESTATION_NETWORK_URL")
    if network_url:
        credentials = NetworkCredentials.from_env()
        factory = lambda: HttpAttestationNetwork.from_credentials(network_url, credentials)
    else:
        credentials = NetworkCredentials(
            private_key=os.environ.get("PRIVATE_KEY", DEMO_KEY),
            chain_id=1,
            rpc_url="https://rpc.example.com",
        )
        stub = StubNetwork(responses={
            ACCOUNT_URL: {"transaction": {"amount": "-10", "currency": "GBP", "id": "tx-42"}},
        })
        factory = lambda: stub

    def signed_requests():
        # Request signatures expire, so a fresh timestamp is used per attempt
        requests = [{
            "url": ACCOUNT_URL,
            "method": "GET",
            "header": {"X-Timestamp": str(int(time.time() * 1000))},
        }]
        resolves = [[
            {"keyName": "amount", "parsePath": "$.transaction.amount"},
            {"keyName": "currency", "parsePath": "$.transaction.currency"},
        ]]
        return requests, resolves

    options = TaskOptions(
        request_params_callback=signed_requests,
        expected_data={"currency": "GBP"},
    )
    orchestrator = AttestationOrchestrator(factory, credentials, options)

    try:
        artifact = orchestrator.run(*signed_requests())
    except TaskExecutionError as e:
        print(f"Task failed in {e.phase} phase: {e.cause}")
        return
    except WebProofError as e:
        print(f"Task rejected: {e}")
        return

    with open("artifact.json", "w", encoding="utf-8") as f:
        f.write(artifact.to_json(indent=2))
    print(f"Artifact for task {artifact.requestid} written to artifact.json")

    entry = artifact.attestation_data.public_data[0]
    result = verify_attestation(artifact, expected_signer=entry.model_extra.get("attestor"))
    print(f"Recovered signer: {result.recovered_address} (ok={result.ok})")

    commitment = compute_commitment("-10", "GBP", "alice", "tx-42")
    print(f"Commitment: 0x{commitment:064x}")


if __name__ == "__main__":
    main()
