"""
Exceptions for the Flashbot SDK.
"""
from typing import Optional


class FlashbotError(Exception):
    """Base exception for all SDK errors."""
    pass


class TransportError(FlashbotError):
    """
    Raised when the relay cannot be reached or answers with a non-2xx status.

    The response body is never parsed in this case.
    """

    def __init__(self, status_code: Optional[int], reason: str):
        self.status_code = status_code
        self.reason = reason
        if status_code is None:
            super().__init__(reason)
        else:
            super().__init__(f"{status_code} {reason}")


class RelayError(FlashbotError):
    """Raised when the relay answers HTTP 200 with an embedded error."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        self.message = message
        super().__init__(message if code is None else f"[{code}] {message}")


class SigningError(FlashbotError):
    """Raised when the signing identity fails to sign a request body."""
    pass


class InclusionTimeoutError(FlashbotError):
    """Raised when an inclusion wait exceeds its wall-clock timeout."""
    pass


class InclusionCancelledError(FlashbotError):
    """Raised when an inclusion wait is cancelled by the caller."""
    pass
