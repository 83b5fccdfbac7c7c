"""Navigator Cookie Session — session state stored in a signed, encrypted cookie.

Security Note (Threat Model):
    The cookie is fully controlled by the client. Every cookie is verified
    before it is decrypted or decoded, and any failure reads as an empty
    session. The secret key base never leaves the server.
"""

from .version import __version__
from .store import CookieStore, get_secret_key_base
from .keys import KeyGenerator, pbkdf2, validate_secret_key_base
from .config import (
    CookieStoreConfig,
    ConfigResult,
    KDFParams,
    KeyDigest,
    validate_options,
    generate_secret_key_base,
)
from .exceptions import (
    CookieStoreError,
    ConfigError,
    SecretError,
    TokenError,
    TokenFailure,
)

__all__ = [
    "__version__",
    "CookieStore",
    "get_secret_key_base",
    "KeyGenerator",
    "pbkdf2",
    "validate_secret_key_base",
    "CookieStoreConfig",
    "ConfigResult",
    "KDFParams",
    "KeyDigest",
    "validate_options",
    "generate_secret_key_base",
    "CookieStoreError",
    "ConfigError",
    "SecretError",
    "TokenError",
    "TokenFailure",
]
