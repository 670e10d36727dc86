"""
Pytest fixtures for the WebProof SDK tests.
"""
import time

import pytest
from eth_account import Account

from webproof_sdk.config import NetworkCredentials
from webproof_sdk.network import StubNetwork
from webproof_sdk.network._rate_limited_log import clear_rate_limit_cache

# Constants for testing
TEST_RPC_URL = "https://rpc.example.com"
TEST_NETWORK_URL = "https://attest.example.com"
TEST_CHAIN_ID = 1
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_RECIPIENT = "0x1111111111111111111111111111111111111111"
TEST_URL = "https://api.example.com/account"
FIXED_TIMESTAMP_MS = 1700000000000


# Make time.sleep instantaneous so retries don't slow the suite down
@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture(autouse=True)
def _clear_log_cache():
    """Rate-limited log state must not leak between tests"""
    clear_rate_limit_cache()
    yield
    clear_rate_limit_cache()


@pytest.fixture
def credentials():
    return NetworkCredentials(
        private_key=TEST_PRIV_KEY,
        chain_id=TEST_CHAIN_ID,
        rpc_url=TEST_RPC_URL,
    )


@pytest.fixture
def test_account():
    """Create a deterministic test account"""
    return Account.from_key(TEST_PRIV_KEY)


@pytest.fixture
def sample_requests():
    return [{
        "url": TEST_URL,
        "method": "GET",
        "header": {"Authorization": "Bearer secret-token"},
        "body": "",
    }]


@pytest.fixture
def sample_resolves():
    return [[
        {"keyName": "amount", "parseType": "json", "parsePath": "$.transaction.amount"},
        {"keyName": "currency", "parseType": "json", "parsePath": "$.transaction.currency"},
    ]]


@pytest.fixture
def served_responses():
    """JSON payloads the stub network pretends to fetch"""
    return {
        TEST_URL: {
            "transaction": {"amount": "-10", "currency": "GBP", "id": "tx-42"},
        },
    }


@pytest.fixture
def stub_network(served_responses):
    return StubNetwork(responses=served_responses, clock=lambda: FIXED_TIMESTAMP_MS)


@pytest.fixture
def sample_attestation():
    """A well-formed attestation object as it appears in public_data"""
    return {
        "recipient": TEST_RECIPIENT,
        "request": [{
            "url": TEST_URL,
            "header": {},
            "method": "GET",
            "body": "",
        }],
        "responseResolves": [{
            "oneUrlResponseResolve": [
                {"keyName": "amount", "parseType": "json", "parsePath": "$.transaction.amount"},
            ],
        }],
        "data": '{"amount":"-10"}',
        "attConditions": "[]",
        "timestamp": FIXED_TIMESTAMP_MS,
        "additionParams": '{"algorithmType":"mpctls"}',
    }
