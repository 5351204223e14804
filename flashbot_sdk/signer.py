"""
Request signing for relay authentication.

The relay authenticates every call through the ``X-Flashbots-Signature``
header: ``<address>:<signature>``, where the signature is an EIP-191 personal
message signature over the hex Keccak-256 digest of the exact request body.
"""
import logging
from typing import Any, Optional, Protocol, Union

from eth_account import Account
from eth_account.messages import SignableMessage, encode_defunct
from eth_account.signers.base import BaseAccount
from web3 import Web3

from .exceptions import SigningError

logger = logging.getLogger(__name__)


class Signer(Protocol):
    """Protocol for signing identities (local keys, hardware or remote signers)"""
    address: str

    def sign_message(self, signable_message: SignableMessage) -> Any:
        """Sign an EIP-191 message and return an object with a ``signature``"""
        ...


class LocalSigner:
    """Signer backed by an in-memory private key."""

    def __init__(self, private_key: str):
        self.account: BaseAccount = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self.account.address

    def sign_message(self, signable_message: SignableMessage) -> Any:
        return self.account.sign_message(signable_message)


def body_message(body: str) -> SignableMessage:
    """Build the EIP-191 message signed for a request body."""
    digest = Web3.to_hex(Web3.keccak(text=body))
    return encode_defunct(text=digest)


def _signature_hex(signed: Any) -> str:
    signature: Union[bytes, str] = getattr(signed, "signature", signed)
    if isinstance(signature, str):
        return signature if signature.startswith("0x") else "0x" + signature
    return Web3.to_hex(signature)


class RequestSigner:
    """
    Produces relay authentication tokens for serialized request bodies.

    Holds only a reference to the signing identity, so one instance can be
    shared across threads.
    """

    def __init__(self, signer: Signer, logger: Optional[logging.Logger] = None):
        if signer is None:
            raise ValueError("A signer must be provided")
        self.signer = signer
        self.logger = logger or logging.getLogger(__name__)

    @property
    def address(self) -> str:
        return self.signer.address

    def sign(self, body: str) -> str:
        """
        Sign a serialized request body.

        Args:
            body: The exact JSON string that will be posted to the relay

        Returns:
            Token of the form ``<address>:<0x-signature>``

        Raises:
            SigningError: If the signing identity fails
        """
        message = body_message(body)
        try:
            signed = self.signer.sign_message(message)
        except Exception as e:
            self.logger.error(f"Request signing failed: {e}")
            raise SigningError(f"Failed to sign relay request: {e}") from e

        return f"{self.address}:{_signature_hex(signed)}"
