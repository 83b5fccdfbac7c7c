"""
Cookie Crypto Core — signing, verification and authenticated encryption.

Token formats (both parts unpadded urlsafe base64, joined by "."):
- Signed:    b64(payload) . b64(HMAC-SHA256(sign_key, segment))
- Encrypted: b64(nonce 12B | ciphertext | tag 16B) . b64(HMAC-SHA256(sign_key, segment))

The signature always covers the ASCII segment and is checked, in constant
time, before anything is decoded or decrypted.

Security Note:
    Never log plaintext, ciphertext or key values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import os
import base64
import binascii
import logging

from cryptography.exceptions import InvalidSignature, InvalidTag
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from .exceptions import TokenError, TokenFailure

logger = logging.getLogger("navigator.cookie")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
CIPHER_KEY_LENGTH = 32
SEPARATOR = "."

_CIPHERS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------

def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(segment: str) -> bytes:
    """Decode a canonical unpadded urlsafe base64 segment.

    Raises:
        TokenError: If the segment is not valid, or not canonical (the
            unused trailing bits are not zero).
    """
    try:
        raw = segment.encode("ascii")
        data = base64.urlsafe_b64decode(raw + b"=" * (-len(raw) % 4))
    except (UnicodeEncodeError, binascii.Error, ValueError) as err:
        raise TokenError(
            f"invalid token encoding: {err}", TokenFailure.MALFORMED
        ) from err
    if _b64encode(data) != segment:
        raise TokenError("non canonical token encoding", TokenFailure.MALFORMED)
    return data


def _split(token: str) -> tuple[str, bytes]:
    """Split a token into its signed segment and the decoded signature."""
    if not isinstance(token, str) or not token:
        raise TokenError("empty or non string token", TokenFailure.MALFORMED)
    parts = token.split(SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise TokenError("token must have two segments", TokenFailure.MALFORMED)
    if not parts[0].isascii():
        raise TokenError("non ascii token segment", TokenFailure.MALFORMED)
    return parts[0], _b64decode(parts[1])


def _mac(key: bytes, segment: str) -> hmac.HMAC:
    h = hmac.HMAC(key, hashes.SHA256())
    h.update(segment.encode("ascii"))
    return h


def _verify_segment(segment: str, signature: bytes, key: bytes) -> None:
    try:
        _mac(key, segment).verify(signature)
    except InvalidSignature as err:
        raise TokenError(
            "token signature does not match", TokenFailure.SIGNATURE
        ) from err


def _cipher(key: bytes, backend: str):
    try:
        cipher_cls = _CIPHERS[backend]
    except KeyError:
        raise ValueError(f"Unsupported cipher backend: {backend}") from None
    if len(key) > CIPHER_KEY_LENGTH:
        key = key[:CIPHER_KEY_LENGTH]
    return cipher_cls(key)


# ---------------------------------------------------------------------------
# Message verifier (signed, readable cookies)
# ---------------------------------------------------------------------------

def sign(payload: bytes, key: bytes) -> str:
    """Sign a payload.

    Args:
        payload: Serialized session.
        key: Signing key.

    Returns:
        Signed token.
    """
    segment = _b64encode(payload)
    signature = _mac(key, segment).finalize()
    return f"{segment}{SEPARATOR}{_b64encode(signature)}"


def verify(token: str, key: bytes) -> bytes:
    """Verify a signed token and return its payload.

    Raises:
        TokenError: If the token is malformed or the signature is wrong.
    """
    segment, signature = _split(token)
    _verify_segment(segment, signature, key)
    return _b64decode(segment)


# ---------------------------------------------------------------------------
# Message encryptor (encrypted, then signed cookies)
# ---------------------------------------------------------------------------

def encrypt_and_sign(
    payload: bytes,
    enc_key: bytes,
    sign_key: bytes,
    backend: str = "aesgcm"
) -> str:
    """Encrypt a payload with an AEAD cipher and sign the result.

    Format: b64([nonce 12B][ciphertext + tag 16B]) . b64(signature)

    Args:
        payload: Serialized session.
        enc_key: Encryption key (the first 32 bytes are used when longer).
        sign_key: Signing key.
        backend: ``aesgcm`` or ``chacha20``.

    Returns:
        Encrypted and signed token.
    """
    cipher = _cipher(enc_key, backend)
    nonce = os.urandom(NONCE_SIZE)
    ct = cipher.encrypt(nonce, payload, None)
    return sign(nonce + ct, sign_key)


def verify_and_decrypt(
    token: str,
    enc_key: bytes,
    sign_key: bytes,
    backend: str = "aesgcm"
) -> bytes:
    """Verify the token signature, then decrypt it.

    Raises:
        TokenError: If the token is malformed, the signature is wrong or
            the ciphertext does not authenticate.
    """
    sealed = verify(token, sign_key)
    _min = NONCE_SIZE + TAG_SIZE
    if len(sealed) < _min:
        raise TokenError(
            f"ciphertext too short: {len(sealed)} bytes (minimum {_min})",
            TokenFailure.MALFORMED,
        )
    cipher = _cipher(enc_key, backend)
    try:
        return cipher.decrypt(sealed[:NONCE_SIZE], sealed[NONCE_SIZE:], None)
    except InvalidTag as err:
        raise TokenError(
            "token could not be decrypted", TokenFailure.DECRYPT
        ) from err
