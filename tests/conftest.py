"""
Pytest fixtures for the Flashbot SDK tests.
"""
import pytest
from eth_account import Account

from flashbot_sdk.models import SendBundleParams
from flashbot_sdk.signer import LocalSigner
from flashbot_sdk.watcher._rate_limited_log import reset_rate_limits
from tests.test_helpers import (
    create_test_client,
    TEST_PRIV_KEY,
    TEST_TX_1,
    TEST_TX_2,
)


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Rate-limited warnings must not leak between tests."""
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def account():
    return Account.from_key(TEST_PRIV_KEY)


@pytest.fixture
def signer():
    return LocalSigner(TEST_PRIV_KEY)


@pytest.fixture
def client(signer):
    return create_test_client(signer=signer)


@pytest.fixture
def bundle_params():
    """Bundle with every optional send field populated."""
    return SendBundleParams(
        txs=[TEST_TX_1, TEST_TX_2],
        block_number=17_000_000,
        min_timestamp=1_700_000_000,
        max_timestamp=1_700_000_120,
        reverting_tx_hashes=["0x" + "ab" * 32],
        replacement_uuid="4f8c9bd8-4bde-4ba1-8c0e-0d3c3c0b3f12",
        builders=["flashbots", "Titan"],
    )


@pytest.fixture
def call_bundle_response():
    """Successful eth_callBundle answer."""
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {
            "bundleGasPrice": "476190476193",
            "bundleHash": "0x73b1e258c7a42fd0230b2fd05529c5d4b6fcb66c227783f8bece8aeacdd1db2e",
            "coinbaseDiff": "20000000000126000",
            "ethSentToCoinbase": "20000000000000000",
            "gasFees": "126000",
            "results": [
                {
                    "coinbaseDiff": "10000000000063000",
                    "ethSentToCoinbase": "10000000000000000",
                    "fromAddress": "0x02A727155aef8609c9f7F2179b2a1f560B39F5A0",
                    "gasFees": "63000",
                    "gasPrice": "476190476193",
                    "gasUsed": 21000,
                    "toAddress": "0x73625f59CAdc5009Cb458B751b3E7b6b48C06f2C",
                    "txHash": "0x669b4704a7d993a946cdd6e2f95233f308ce0c4649d2e04944e8299efcaa098a",
                    "value": "0x"
                },
                {
                    "coinbaseDiff": "10000000000063000",
                    "ethSentToCoinbase": "10000000000000000",
                    "fromAddress": "0x02A727155aef8609c9f7F2179b2a1f560B39F5A0",
                    "gasFees": "63000",
                    "gasPrice": "476190476193",
                    "gasUsed": 21000,
                    "toAddress": "0x73625f59CAdc5009Cb458B751b3E7b6b48C06f2C",
                    "txHash": "0xa839ee83465657cac01adc1d50d96c1b586ed498120a84a64749c0034b4f19fa",
                    "value": "0x"
                }
            ],
            "stateBlockNumber": 5221585,
            "totalGasUsed": 42000
        }
    }


@pytest.fixture
def send_bundle_response():
    return {
        "jsonrpc": "2.0",
        "id": 2,
        "result": {"bundleHash": "0x2228f5d8954ce31dc1601a8ba264dbd401bf1428388ce88238932815c5d6f23f"}
    }
