"""
Shared helpers for the Flashbot SDK tests.
"""
from .client_creator import (
    create_test_client,
    TEST_PRIV_KEY,
    TEST_RELAY_URL,
    TEST_TX_1,
    TEST_TX_2,
    TEST_HASH_1,
    TEST_HASH_2,
    TEST_OTHER_HASH,
)
from .block_source import FakeBlockSource

__all__ = [
    "create_test_client",
    "FakeBlockSource",
    "TEST_PRIV_KEY",
    "TEST_RELAY_URL",
    "TEST_TX_1",
    "TEST_TX_2",
    "TEST_HASH_1",
    "TEST_HASH_2",
    "TEST_OTHER_HASH",
]
