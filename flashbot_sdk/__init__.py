"""
Flashbot SDK - bundle submission and inclusion tracking for Flashbots-style relays.
"""
from .client import BundleHandle, FlashbotClient
from .config import HintName, Method, Relay
from .exceptions import (
    FlashbotError,
    InclusionCancelledError,
    InclusionTimeoutError,
    RelayError,
    SigningError,
    TransportError,
)
from .models import (
    BundleStats,
    CallBundleParams,
    CallBundleResult,
    InclusionOutcome,
    InclusionStatus,
    PrivateRawTransactionParams,
    PrivateTransactionParams,
    PrivateTxPreferences,
    SendBundleParams,
    SendBundleResult,
    UserStats,
)
from .signer import LocalSigner, RequestSigner, Signer
from .version import __version__
from .watcher import BlockSource, InclusionWatcher, Web3BlockSource

__all__ = [
    "FlashbotClient",
    "BundleHandle",
    "Relay",
    "Method",
    "HintName",
    "FlashbotError",
    "TransportError",
    "RelayError",
    "SigningError",
    "InclusionTimeoutError",
    "InclusionCancelledError",
    "BundleStats",
    "CallBundleParams",
    "CallBundleResult",
    "InclusionOutcome",
    "InclusionStatus",
    "PrivateRawTransactionParams",
    "PrivateTransactionParams",
    "PrivateTxPreferences",
    "SendBundleParams",
    "SendBundleResult",
    "UserStats",
    "Signer",
    "LocalSigner",
    "RequestSigner",
    "BlockSource",
    "Web3BlockSource",
    "InclusionWatcher",
    "__version__",
]
