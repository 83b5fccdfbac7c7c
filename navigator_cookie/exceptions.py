"""Cookie store exceptions."""
from enum import Enum
from typing import Optional


class CookieStoreError(Exception):
    """Base exception for all cookie store errors."""


class ConfigError(CookieStoreError, ValueError):
    """Invalid store options, raised (or returned) at construction time."""


class SecretError(CookieStoreError, ValueError):
    """Secret key base is missing or too short.

    This is a deployment defect, never attacker input, so it always
    propagates to the caller.
    """


class TokenFailure(str, Enum):
    MALFORMED = "malformed"
    SIGNATURE = "signature"
    DECRYPT = "decrypt"


class TokenError(CookieStoreError):
    """A client supplied token could not be verified or decrypted.

    Only raised by the crypto primitives; the store turns it into an
    empty session.
    """

    def __init__(self, message: str, reason: Optional[TokenFailure] = None):
        super().__init__(message)
        self.reason = reason or TokenFailure.MALFORMED
