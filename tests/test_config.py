import logging
from unittest.mock import patch

import pytest

from docvault.utils.config import LEGACY_SALT, LEGACY_SECRET, LOG_FORMAT, VaultConfig, configure_logging
from docvault.utils.helper import format_file_size, mime_type_for


class TestVaultConfig:
    def test_defaults_match_existing_vaults(self):
        cfg = VaultConfig()
        assert cfg.secret == LEGACY_SECRET
        assert cfg.salt == LEGACY_SALT
        assert cfg.iterations == 100_000
        assert cfg.retention_days == 30
        assert LEGACY_SECRET not in repr(cfg)

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("DOCVAULT_RETENTION_DAYS", "14")
        monkeypatch.setenv("DOCVAULT_VIEW_TTL_SECONDS", "2.5")
        monkeypatch.setenv("DOCVAULT_SALT", "per-install")
        monkeypatch.setenv("DOCVAULT_KDF", "argon2id")
        monkeypatch.setenv("RETENTION_DAYS", "99")
        cfg = VaultConfig()
        assert cfg.retention_days == 14
        assert cfg.view_ttl_seconds == 2.5
        assert cfg.salt == b"per-install"
        assert cfg.kdf == "argon2id"

    @pytest.mark.parametrize("kwargs", [{"kdf": "scrypt"}, {"retention_days": 0}, {"view_ttl_seconds": 0}, {"log_level": "loud"}])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            VaultConfig(**kwargs)

    def test_configure_logging(self):
        with patch("logging.basicConfig") as basic_config:
            configure_logging(VaultConfig(log_level="debug"))
        basic_config.assert_called_once_with(level=logging.DEBUG, format=LOG_FORMAT)

    def test_invalid_environment_value_rejected(self, monkeypatch):
        monkeypatch.setenv("DOCVAULT_KDF", "scrypt")
        with pytest.raises(ValueError):
            VaultConfig()

    def test_keyword_arguments_override_environment(self, monkeypatch):
        monkeypatch.setenv("DOCVAULT_ITERATIONS", "5")
        assert VaultConfig(iterations=1000).iterations == 1000


class TestHelpers:
    @pytest.mark.parametrize("size,text", [(0, "0 Bytes"), (512, "512 Bytes"), (1024, "1 KB"),
                                           (1536, "1.5 KB"), (1048576, "1 MB")])
    def test_format_file_size(self, size, text):
        assert format_file_size(size) == text

    def test_mime_type_default(self):
        assert mime_type_for("noext") == "application/octet-stream"
        assert mime_type_for("a.PNG") == "image/png"
