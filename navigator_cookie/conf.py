"""
Cookie Store Settings.

Defaults for the store options, overridable through environment variables:
    COOKIE_ENCRYPT = true|false
    COOKIE_ENCRYPTION_SALT = <string>
    COOKIE_SIGNING_SALT = <string>
    COOKIE_KEY_ITERATIONS = <integer>
    COOKIE_KEY_LENGTH = <integer>
    COOKIE_KEY_DIGEST = sha1|sha224|sha256|sha384|sha512
    COOKIE_CIPHER_BACKEND = aesgcm|chacha20
    COOKIE_KEY_CACHE_SIZE = <integer>
"""
import os

from .exceptions import ConfigError

# name of the secret key base on the request, the application or any context
SECRET_KEY_BASE = "secret_key_base"
MIN_SECRET_LENGTH = 64

DEFAULT_KEY_ITERATIONS = 1000
DEFAULT_KEY_LENGTH = 32
DEFAULT_KEY_DIGEST = "sha256"
DEFAULT_CIPHER_BACKEND = "aesgcm"

# browsers drop cookies bigger than this
MAX_COOKIE_SIZE = 4096

DEFAULT_KEY_CACHE_SIZE = 256


def as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def key_cache_size() -> int:
    """Read the derived key cache bound from COOKIE_KEY_CACHE_SIZE.

    Raises:
        ConfigError: If the variable is not a positive integer.
    """
    raw = os.environ.get("COOKIE_KEY_CACHE_SIZE")
    if raw is None:
        return DEFAULT_KEY_CACHE_SIZE
    try:
        size = int(raw)
    except ValueError:
        size = 0
    if size < 1:
        raise ConfigError(
            f"COOKIE_KEY_CACHE_SIZE must be a positive integer, got {raw!r}"
        )
    return size


def options_from_env() -> dict:
    """Collect store options from COOKIE_* environment variables.

    Only variables that are set end up in the result, so the option
    defaults still apply for the missing ones.
    """
    options: dict = {}
    env = os.environ
    if "COOKIE_ENCRYPT" in env:
        options["encrypt"] = as_bool(env["COOKIE_ENCRYPT"])
    for name, option in (
        ("COOKIE_ENCRYPTION_SALT", "encryption_salt"),
        ("COOKIE_SIGNING_SALT", "signing_salt"),
        ("COOKIE_KEY_ITERATIONS", "key_iterations"),
        ("COOKIE_KEY_LENGTH", "key_length"),
        ("COOKIE_KEY_DIGEST", "key_digest"),
        ("COOKIE_CIPHER_BACKEND", "cipher_backend"),
    ):
        if name in env:
            options[option] = env[name]
    return options
