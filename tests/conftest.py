"""Shared fixtures for the cookie store tests."""
import pytest

from navigator_cookie import CookieStore, KeyGenerator, pbkdf2


class CountingKDF:
    """KDF wrapper recording every real derivation."""

    def __init__(self):
        self.calls = []

    def __call__(self, secret, salt, params):
        self.calls.append(salt)
        return pbkdf2(secret, salt, params)


@pytest.fixture
def secret():
    """Secret key base of exactly 64 bytes."""
    return b"a" * 64


@pytest.fixture
def other_secret():
    return b"b" * 64


@pytest.fixture
def kdf():
    return CountingKDF()


@pytest.fixture
def store(kdf):
    """Store with its own key cache and an observable KDF."""
    return CookieStore(key_generator=KeyGenerator(kdf=kdf))


@pytest.fixture
def encrypted_config(store):
    return store.init({
        "encrypt": True,
        "encryption_salt": "enc",
        "signing_salt": "sig",
    })


@pytest.fixture
def signed_config(store):
    return store.init({"encrypt": False, "signing_salt": "sig"})
