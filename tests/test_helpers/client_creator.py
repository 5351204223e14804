"""
Utility functions for creating test clients with consistent defaults.
"""
from typing import Optional

from flashbot_sdk.client import FlashbotClient
from flashbot_sdk.config import Relay
from flashbot_sdk.signer import LocalSigner

# Test constants used throughout tests
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_RELAY_URL = Relay.SEPOLIA.value
TEST_TX_1 = "0x02f8730181a0843b9aca00850ba43b7400825208941234567890123456789012345678901234567890"
TEST_TX_2 = "0x02f8730181a1843b9aca00850ba43b7400825208940987654321098765432109876543210987654321"
TEST_HASH_1 = "0x" + "11" * 32
TEST_HASH_2 = "0x" + "22" * 32
TEST_OTHER_HASH = "0x" + "ff" * 32


def create_test_client(
    relay=Relay.SEPOLIA,
    priv_key: Optional[str] = TEST_PRIV_KEY,
    signer=None,
    block_source=None,
    timeout: int = 5,
    **kwargs
) -> FlashbotClient:
    """
    Create a client instance for testing.

    Args:
        relay: Relay or URL to talk to
        priv_key: Private key string used when no signer is given
        signer: Signer instance
        block_source: Block source for inclusion waits
        timeout: Timeout in seconds
        **kwargs: Additional client parameters

    Returns:
        Configured FlashbotClient instance
    """
    if signer is None and priv_key:
        signer = LocalSigner(priv_key)

    return FlashbotClient(
        signer=signer,
        relay=relay,
        block_source=block_source,
        timeout=timeout,
        **kwargs
    )
