"""
Tests for cookie store option validation.
"""
import pytest
from pydantic import ValidationError

from navigator_cookie import (
    ConfigError,
    CookieStoreConfig,
    KDFParams,
    KeyDigest,
    generate_secret_key_base,
    validate_options,
)


class TestValidateOptions:
    """Tests for validate_options()."""

    def test_defaults(self):
        """Test default kdf params and encryption."""
        result = validate_options(encryption_salt="enc", signing_salt="sig")
        assert result.ok
        config = result.config
        assert config.encryption_enabled is True
        assert config.encryption_salt == "enc"
        assert config.signing_salt == "sig"
        assert config.kdf_params.iterations == 1000
        assert config.kdf_params.key_length == 32
        assert config.kdf_params.digest is KeyDigest.SHA256
        assert config.cipher_backend == "aesgcm"

    def test_missing_signing_salt(self):
        """Test that signing_salt is always required."""
        result = validate_options({"encrypt": False})
        assert not result.ok
        assert isinstance(result.error, ConfigError)
        assert "signing_salt" in str(result.error)

    def test_missing_encryption_salt(self):
        """Test that encryption needs an encryption_salt."""
        result = validate_options({"signing_salt": "sig"})
        assert not result.ok
        assert "encryption_salt" in str(result.error)

    def test_unencrypted_without_encryption_salt(self):
        """Test encrypt=False works without encryption_salt."""
        result = validate_options({"encrypt": False, "signing_salt": "sig"})
        assert result.ok
        assert result.config.encryption_enabled is False
        assert result.config.encryption_salt is None

    @pytest.mark.parametrize("value, expected", [
        ("false", False),
        ("0", False),
        ("true", True),
        ("yes", True),
    ])
    def test_encrypt_as_string(self, value, expected):
        """Test string encrypt flags are parsed, not truth-tested."""
        result = validate_options(
            encrypt=value, encryption_salt="enc", signing_salt="sig"
        )
        assert result.ok
        assert result.config.encryption_enabled is expected

    def test_unencrypted_drops_encryption_salt(self):
        """Test encryption_salt is dropped when encryption is off."""
        config = validate_options(
            encrypt=False, encryption_salt="enc", signing_salt="sig"
        ).unwrap()
        assert config.encryption_salt is None

    def test_custom_kdf_params(self):
        """Test key_iterations, key_length and key_digest options."""
        config = validate_options(
            encryption_salt="enc",
            signing_salt="sig",
            key_iterations=10,
            key_length=64,
            key_digest="sha512",
        ).unwrap()
        assert config.kdf_params == KDFParams(
            iterations=10, key_length=64, digest=KeyDigest.SHA512
        )

    @pytest.mark.parametrize("options", [
        {"key_iterations": 0},
        {"key_length": 8},
        {"key_digest": "md5"},
        {"cipher_backend": "des"},
        {"key_length": 20},
        {"key_length": 16, "cipher_backend": "chacha20"},
    ])
    def test_invalid_options(self, options):
        """Test bad option values become a ConfigError."""
        result = validate_options(
            encryption_salt="enc", signing_salt="sig", **options
        )
        assert not result.ok
        assert isinstance(result.error, ConfigError)

    def test_short_key_without_encryption(self):
        """Test key lengths that no cipher takes are fine for signing only."""
        result = validate_options(encrypt=False, signing_salt="sig", key_length=20)
        assert result.ok

    def test_unknown_options_ignored(self):
        """Test that framework options pass through."""
        result = validate_options(
            encryption_salt="enc", signing_salt="sig", key="_my_app_session"
        )
        assert result.ok

    def test_unwrap_raises(self):
        """Test unwrap raises the carried error."""
        with pytest.raises(ConfigError):
            validate_options({}).unwrap()

    def test_result_frozen(self):
        result = validate_options(encryption_salt="enc", signing_salt="sig")
        with pytest.raises(ValidationError):
            result.error = ConfigError("late")


class TestCookieStoreConfig:
    """Tests for the configuration model."""

    def test_frozen(self):
        """Test configuration is immutable."""
        config = validate_options(encryption_salt="enc", signing_salt="sig").unwrap()
        with pytest.raises(ValidationError):
            config.signing_salt = "other"

    def test_kdf_params_hashable(self):
        """Test KDFParams can be used as a cache key."""
        assert hash(KDFParams()) == hash(KDFParams())

    def test_invariant_enforced_on_model(self):
        """Test encryption_salt must be set iff encryption is on."""
        with pytest.raises(ValidationError):
            CookieStoreConfig(signing_salt="sig", encryption_enabled=True)
        with pytest.raises(ValidationError):
            CookieStoreConfig(
                signing_salt="sig",
                encryption_enabled=False,
                encryption_salt="enc",
            )

    def test_from_env(self, monkeypatch):
        """Test loading options from COOKIE_* variables."""
        monkeypatch.setenv("COOKIE_ENCRYPT", "false")
        monkeypatch.setenv("COOKIE_SIGNING_SALT", "env-sig")
        monkeypatch.setenv("COOKIE_KEY_ITERATIONS", "2000")
        monkeypatch.delenv("COOKIE_ENCRYPTION_SALT", raising=False)
        config = CookieStoreConfig.from_env()
        assert config.encryption_enabled is False
        assert config.signing_salt == "env-sig"
        assert config.kdf_params.iterations == 2000

    def test_from_env_missing_salt(self, monkeypatch):
        """Test from_env fails loudly without salts."""
        monkeypatch.delenv("COOKIE_SIGNING_SALT", raising=False)
        with pytest.raises(ConfigError):
            CookieStoreConfig.from_env()


class TestGenerateSecretKeyBase:
    """Tests for generate_secret_key_base()."""

    def test_length(self):
        assert len(generate_secret_key_base().encode()) >= 64

    def test_random(self):
        assert generate_secret_key_base() != generate_secret_key_base()

    def test_too_short(self):
        with pytest.raises(ValueError):
            generate_secret_key_base(32)
