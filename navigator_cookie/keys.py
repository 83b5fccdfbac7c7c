"""
Cookie Key Derivation — PBKDF2 key generation with a process-wide cache.

Each purpose (signing, encryption) gets its own key, derived from the
secret key base and the purpose salt. Derivation is deliberately slow, so
derived keys are cached by ``(secret fingerprint, salt, kdf params)``.

Security Note:
    The cache never holds the secret itself, only its SHA-256 fingerprint.
    Never log key material.
"""
import hashlib
import logging
import threading
from typing import Callable, Optional, Union
from collections import OrderedDict

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .conf import MIN_SECRET_LENGTH, key_cache_size
from .config import KDFParams, KeyDigest
from .exceptions import SecretError

logger = logging.getLogger("navigator.cookie")

_DIGESTS = {
    KeyDigest.SHA1: hashes.SHA1,
    KeyDigest.SHA224: hashes.SHA224,
    KeyDigest.SHA256: hashes.SHA256,
    KeyDigest.SHA384: hashes.SHA384,
    KeyDigest.SHA512: hashes.SHA512,
}

KDF = Callable[[bytes, str, KDFParams], bytes]


def validate_secret_key_base(secret: Union[bytes, str, None]) -> bytes:
    """Return the secret key base as bytes.

    Raises:
        SecretError: If the secret is missing or shorter than 64 bytes.
    """
    if secret is None:
        raise SecretError("cookie store expects secret_key_base to be set")
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    if not isinstance(secret, (bytes, bytearray)):
        raise SecretError(
            f"secret_key_base must be bytes or str, got {type(secret).__name__}"
        )
    if len(secret) < MIN_SECRET_LENGTH:
        raise SecretError(
            "cookie store expects secret_key_base to be at least "
            f"{MIN_SECRET_LENGTH} bytes"
        )
    return bytes(secret)


def pbkdf2(secret: bytes, salt: str, params: KDFParams) -> bytes:
    """Derive ``params.key_length`` bytes with PBKDF2-HMAC.

    Args:
        secret: Secret key base.
        salt: Purpose salt (signing or encryption salt).
        params: iterations, key length and digest.

    Returns:
        Derived key bytes.
    """
    kdf = PBKDF2HMAC(
        algorithm=_DIGESTS[params.digest](),
        length=params.key_length,
        salt=salt.encode("utf-8"),
        iterations=params.iterations,
    )
    return kdf.derive(secret)


class KeyGenerator:
    """Derives purpose keys and caches them for the process lifetime.

    The lock only guards the cache lookup and insertion; the derivation
    itself runs unlocked. Two threads missing the same entry may both
    derive it, but the first insertion wins and both return those bytes.

    Entries are evicted least-recently-used once ``max_size`` is reached;
    it defaults to COOKIE_KEY_CACHE_SIZE (256).
    """

    def __init__(self, max_size: Optional[int] = None, kdf: KDF = pbkdf2):
        if max_size is None:
            max_size = key_cache_size()
        if max_size < 1:
            raise ValueError("max_size must be a positive integer")
        self._max_size = max_size
        self._kdf = kdf
        self._cache: OrderedDict[tuple, bytes] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def derive(
        self,
        secret: Union[bytes, str, None],
        salt: str,
        params: KDFParams
    ) -> bytes:
        """Return the key for ``(secret, salt, params)``.

        Raises:
            SecretError: If the secret is missing or too short.
        """
        secret = validate_secret_key_base(secret)
        entry = (hashlib.sha256(secret).digest(), salt, params)
        with self._lock:
            key = self._cache.get(entry)
            if key is not None:
                self._cache.move_to_end(entry)
                self.hits += 1
                return key
            self.misses += 1
        key = self._kdf(secret, salt, params)
        with self._lock:
            key = self._cache.setdefault(entry, key)
            self._cache.move_to_end(entry)
            while len(self._cache) > self._max_size:
                self._cache.popitem(last=False)
        logger.debug(
            "Derived cookie key (iterations=%d, length=%d)",
            params.iterations, params.key_length,
        )
        return key
