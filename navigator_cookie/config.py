"""
Cookie Store Configuration — validated, immutable store options.

Options are checked once when the store is built; the resulting
``CookieStoreConfig`` is frozen and shared read-only by every request.

Security Note:
    Salts are not secret, but never log the secret key base or any
    derived key.
"""
import logging
import secrets
from enum import Enum
from typing import Any, Optional
from collections.abc import Mapping

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .conf import (
    DEFAULT_CIPHER_BACKEND,
    DEFAULT_KEY_DIGEST,
    DEFAULT_KEY_ITERATIONS,
    DEFAULT_KEY_LENGTH,
    MIN_SECRET_LENGTH,
    as_bool,
    options_from_env,
)
from .exceptions import ConfigError

logger = logging.getLogger("navigator.cookie")

CIPHER_BACKENDS = ("aesgcm", "chacha20")

_KNOWN_OPTIONS = frozenset({
    "encrypt",
    "encryption_salt",
    "signing_salt",
    "key_iterations",
    "key_length",
    "key_digest",
    "cipher_backend",
})


class KeyDigest(str, Enum):
    SHA1 = "sha1"
    SHA224 = "sha224"
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"


class KDFParams(BaseModel):
    """Cost parameters of the key derivation.

    Frozen (and therefore hashable) so it can be part of a key cache entry.
    """

    iterations: int = Field(default=DEFAULT_KEY_ITERATIONS, ge=1)
    key_length: int = Field(default=DEFAULT_KEY_LENGTH, ge=16, le=1024)
    digest: KeyDigest = Field(default=KeyDigest(DEFAULT_KEY_DIGEST))

    model_config = {"frozen": True}


class CookieStoreConfig(BaseModel):
    """Validated cookie store configuration."""

    encryption_enabled: bool = True
    encryption_salt: Optional[str] = None
    signing_salt: str
    kdf_params: KDFParams = Field(default_factory=KDFParams)
    cipher_backend: str = Field(default=DEFAULT_CIPHER_BACKEND)

    model_config = {"frozen": True}

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in CIPHER_BACKENDS:
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @model_validator(mode="after")
    def validate_encryption(self) -> "CookieStoreConfig":
        """Keep encryption_salt in sync with encryption_enabled."""
        if self.encryption_enabled:
            if self.encryption_salt is None:
                raise ValueError(
                    "encrypted cookie store expects encryption_salt"
                )
            length = self.kdf_params.key_length
            if length < 32:
                if self.cipher_backend == "chacha20" or length not in (16, 24):
                    raise ValueError(
                        f"key_length {length} cannot be used as a "
                        f"{self.cipher_backend} key"
                    )
        elif self.encryption_salt is not None:
            raise ValueError(
                "encryption_salt must not be set when encryption is disabled"
            )
        return self

    @classmethod
    def from_env(cls) -> "CookieStoreConfig":
        """Create CookieStoreConfig from COOKIE_* environment variables.

        Raises:
            ConfigError: If the environment does not hold valid options.
        """
        return validate_options(options_from_env()).unwrap()


class ConfigResult(BaseModel):
    """Outcome of ``validate_options``: either a config or the error."""

    config: Optional[CookieStoreConfig] = None
    error: Optional[ConfigError] = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> CookieStoreConfig:
        if self.error is not None:
            raise self.error
        return self.config


def validate_options(
    options: Optional[Mapping[str, Any]] = None,
    **kwargs
) -> ConfigResult:
    """Validate store options and build the immutable configuration.

    Never raises for bad options; the caller decides whether a failed
    result aborts startup.

    Args:
        options: mapping of store options (encrypt, encryption_salt,
            signing_salt, key_iterations, key_length, key_digest,
            cipher_backend). Keyword arguments override it.

    Returns:
        ConfigResult holding either the configuration or a ConfigError.
    """
    opts = {**(options or {}), **kwargs}
    unknown = set(opts) - _KNOWN_OPTIONS
    if unknown:
        logger.debug("Ignoring unknown cookie store options: %s", sorted(unknown))

    signing_salt = opts.get("signing_salt")
    if signing_salt is None:
        return ConfigResult(
            error=ConfigError("cookie store expects signing_salt as option")
        )
    encrypt = opts.get("encrypt", True)
    encrypt = as_bool(encrypt) if isinstance(encrypt, str) else bool(encrypt)
    encryption_salt = None
    if encrypt:
        encryption_salt = opts.get("encryption_salt")
        if encryption_salt is None:
            return ConfigResult(
                error=ConfigError(
                    "encrypted cookie store expects encryption_salt as option"
                )
            )
    try:
        config = CookieStoreConfig(
            encryption_enabled=encrypt,
            encryption_salt=encryption_salt,
            signing_salt=signing_salt,
            kdf_params=KDFParams(
                iterations=opts.get("key_iterations", DEFAULT_KEY_ITERATIONS),
                key_length=opts.get("key_length", DEFAULT_KEY_LENGTH),
                digest=opts.get("key_digest", DEFAULT_KEY_DIGEST),
            ),
            cipher_backend=opts.get("cipher_backend", DEFAULT_CIPHER_BACKEND),
        )
    except ValidationError as err:
        return ConfigResult(
            error=ConfigError(f"Invalid cookie store options: {err}")
        )
    return ConfigResult(config=config)


def generate_secret_key_base(length: int = MIN_SECRET_LENGTH) -> str:
    """Generate a random secret key base.

    This is a utility for operators to provision new deployments.

    Returns:
        urlsafe string carrying ``length`` random bytes.
    """
    if length < MIN_SECRET_LENGTH:
        raise ValueError(
            f"secret key base needs at least {MIN_SECRET_LENGTH} bytes"
        )
    return secrets.token_urlsafe(length)
