"""
CookieStore — session state kept entirely inside a signed (and encrypted) cookie.

Store contract used by the session framework:
- ``init(options)`` — validate options into a ``CookieStoreConfig``
- ``get(context, cookie, config)`` — verify (and decrypt) a cookie into state
- ``put(context, sid, state, config)`` — turn state into a cookie value
- ``delete(context, sid, config)`` — nothing to delete server side

The session id arguments are ignored: there is no server side storage.

Security Note:
    Any cookie that fails verification, decryption or decoding is an empty
    session; callers never learn which check failed. Never log cookie
    values or secrets.
"""
import logging
from typing import Any, Optional, Union
from collections.abc import Mapping

from aiohttp import web

from .conf import MAX_COOKIE_SIZE, SECRET_KEY_BASE
from .config import CookieStoreConfig, validate_options
from .keys import KeyGenerator
from .crypto import encrypt_and_sign, sign, verify, verify_and_decrypt
from .codec import encode, decode
from .exceptions import TokenError

logger = logging.getLogger("navigator.cookie")


def get_secret_key_base(context: Any) -> Union[bytes, str, None]:
    """Resolve the secret key base from a request context.

    Accepts the secret itself, an aiohttp request (looked up on the
    request, then on its application), any mapping, or an object with a
    ``secret_key_base`` attribute.
    """
    if isinstance(context, (bytes, bytearray, str)):
        return context
    if isinstance(context, web.Request):
        secret = context.get(SECRET_KEY_BASE)
        if secret is None:
            secret = context.app.get(SECRET_KEY_BASE)
        return secret
    if isinstance(context, Mapping):
        return context.get(SECRET_KEY_BASE)
    return getattr(context, SECRET_KEY_BASE, None)


class CookieStore:
    """Client side session store.

    Keys are derived through the injected ``KeyGenerator``; share one
    generator between stores to share its cache.
    """

    def __init__(self, key_generator: Optional[KeyGenerator] = None):
        self._keys = key_generator if key_generator is not None else KeyGenerator()

    @property
    def key_generator(self) -> KeyGenerator:
        return self._keys

    def init(
        self,
        options: Optional[Mapping[str, Any]] = None,
        **kwargs
    ) -> CookieStoreConfig:
        """Validate store options.

        Raises:
            ConfigError: If signing_salt is missing, or encryption_salt is
                missing while encryption is enabled.
        """
        return validate_options(options, **kwargs).unwrap()

    def _derive(self, context: Any, salt: str, config: CookieStoreConfig) -> bytes:
        return self._keys.derive(
            get_secret_key_base(context), salt, config.kdf_params,
        )

    def get(
        self,
        context: Any,
        cookie: Optional[str],
        config: CookieStoreConfig
    ) -> tuple[None, dict]:
        """Load session state from a cookie value.

        Args:
            context: Request context exposing the secret key base.
            cookie: Cookie value sent by the client (untrusted).
            config: Store configuration.

        Returns:
            ``(None, state)``; state is empty for any invalid cookie.

        Raises:
            SecretError: If the secret key base is missing or too short.
        """
        sign_key = self._derive(context, config.signing_salt, config)
        try:
            if config.encryption_enabled:
                enc_key = self._derive(context, config.encryption_salt, config)
                payload = verify_and_decrypt(
                    cookie, enc_key, sign_key, config.cipher_backend,
                )
            else:
                payload = verify(cookie, sign_key)
        except TokenError as err:
            logger.debug("Session cookie rejected: %s", err.reason.value)
            return None, {}
        return None, decode(payload)

    def put(
        self,
        context: Any,
        sid: Any,
        state: Mapping[str, Any],
        config: CookieStoreConfig
    ) -> str:
        """Serialize session state into a cookie value.

        Args:
            context: Request context exposing the secret key base.
            sid: Ignored.
            state: Session data.
            config: Store configuration.

        Returns:
            Signed (and encrypted, when enabled) cookie value.

        Raises:
            SecretError: If the secret key base is missing or too short.
        """
        payload = encode(state)
        sign_key = self._derive(context, config.signing_salt, config)
        if config.encryption_enabled:
            enc_key = self._derive(context, config.encryption_salt, config)
            cookie = encrypt_and_sign(
                payload, enc_key, sign_key, config.cipher_backend,
            )
        else:
            cookie = sign(payload, sign_key)
        if len(cookie) > MAX_COOKIE_SIZE:
            logger.warning(
                "Session cookie is %d bytes, browsers may drop cookies over %d",
                len(cookie), MAX_COOKIE_SIZE,
            )
        return cookie

    def delete(self, context: Any, sid: Any, config: CookieStoreConfig) -> bool:
        """Nothing is stored server side; always succeeds."""
        return True
