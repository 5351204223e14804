"""
Relay endpoints, JSON-RPC method names and client defaults.
"""
import urllib.parse
from enum import Enum
from typing import Union

# Default HTTP timeout for relay calls, in seconds
DEFAULT_TIMEOUT = 30

JSONRPC_VERSION = "2.0"

SIGNATURE_HEADER = "X-Flashbots-Signature"


class Relay(str, Enum):
    """Public Flashbots relay endpoints, one per supported network."""
    MAINNET = "https://relay.flashbots.net"
    SEPOLIA = "https://relay-sepolia.flashbots.net"
    GOERLI = "https://relay-goerli.flashbots.net"

    @classmethod
    def from_name(cls, name: str) -> "Relay":
        """
        Look up a relay by network name (case-insensitive).

        Args:
            name: Network name, e.g. "mainnet" or "Sepolia"

        Returns:
            The matching Relay

        Raises:
            ValueError: If the network is unknown
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            known = ", ".join(member.name.lower() for member in cls)
            raise ValueError(f"Unknown relay network '{name}' (known: {known})")


class Method(str, Enum):
    """JSON-RPC methods understood by the relay."""
    GET_USER_STATS_V2 = "flashbots_getUserStatsV2"
    GET_BUNDLE_STATS_V2 = "flashbots_getBundleStatsV2"
    CANCEL_BUNDLE = "eth_cancelBundle"
    SEND_PRIVATE_RAW_TRANSACTION = "eth_sendPrivateRawTransaction"
    SEND_PRIVATE_TRANSACTION = "eth_sendPrivateTransaction"
    CALL_BUNDLE = "eth_callBundle"
    SEND_BUNDLE = "eth_sendBundle"


class HintName(str, Enum):
    """Data a private transaction may share with searchers."""
    CALLDATA = "calldata"
    LOGS = "logs"
    DEFAULT_LOGS = "default_logs"
    FUNCTION_SELECTOR = "function_selector"
    CONTRACT_ADDRESS = "contract_address"
    HASH = "hash"
    TX_HASH = "tx_hash"


# Builders registered with the Flashbots relay at the time of writing.
# Not enforced: the relay accepts names added after this list.
KNOWN_BUILDERS = frozenset({
    "default",
    "flashbots",
    "f1b.io",
    "rsync",
    "beaverbuild.org",
    "builder0x69",
    "Titan",
    "EigenPhi",
    "boba-builder",
    "Gambit Labs",
    "payload",
    "Loki",
    "BuildAI",
    "JetBuilder",
    "tbuilder",
    "penguinbuild",
    "bobthebuilder",
    "BTCS",
    "bloXroute",
})


def resolve_relay_url(relay: Union[Relay, str]) -> str:
    """
    Turn a Relay, a network name or a custom URL into a validated relay URL.

    Custom URLs must use https:// unless they point at a loopback host.

    Args:
        relay: Relay member, network name ("mainnet") or URL

    Returns:
        Relay URL string

    Raises:
        ValueError: If the URL is invalid or insecure
    """
    if isinstance(relay, Relay):
        return relay.value

    if "://" not in relay:
        return Relay.from_name(relay).value

    parsed = urllib.parse.urlparse(relay)
    host = parsed.hostname or ""
    is_local = host in ("localhost", "127.0.0.1", "::1")
    if not host:
        raise ValueError(f"Invalid relay URL '{relay}'")
    if parsed.scheme != "https" and not is_local:
        raise ValueError(f"Relay URL must use https:// for security (got: {parsed.scheme}://)")
    return relay
