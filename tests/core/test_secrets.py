"""Tests for zenjournal.core.secrets."""

import os

import pytest
import yaml

from zenjournal.core.config import Config
from zenjournal.core.exceptions import SecretNotFoundError
from zenjournal.core.secrets import EnvProvider, SecretsManager, SyncCredentials, YamlFileProvider


@pytest.fixture
def secrets_file(tmp_path):
    path = tmp_path / "secrets.yaml"
    path.write_text(yaml.dump({"sync": {"api_key": "file-key", "access_token": "file-token"}}))
    os.chmod(path, 0o600)
    return path


class TestEnvProvider:
    def test_nested_key(self, monkeypatch):
        monkeypatch.setenv("ZENJOURNAL_SYNC__API_KEY", "env-key")
        assert EnvProvider().get("sync.api_key") == "env-key"

    def test_env_name(self):
        assert EnvProvider("ZJ_").env_name("sync.access_token") == "ZJ_SYNC__ACCESS_TOKEN"

    def test_empty_value_is_missing(self, monkeypatch):
        monkeypatch.setenv("ZJ_TEST_SYNC__API_KEY", "")
        assert EnvProvider("ZJ_TEST_").get("sync.api_key") is None


class TestYamlFileProvider:
    def test_get(self, secrets_file):
        provider = YamlFileProvider(secrets_file)
        assert provider.get("sync.access_token") == "file-token"
        assert provider.get("sync.missing") is None
        # a section is not a secret
        assert provider.get("sync") is None

    def test_missing_file_is_empty(self, tmp_path):
        assert YamlFileProvider(tmp_path / "absent.yaml").get("sync.api_key") is None

    def test_malformed_file_is_empty(self, tmp_path):
        path = tmp_path / "secrets.yaml"
        path.write_text("sync: [unclosed")
        assert YamlFileProvider(path).get("sync.api_key") is None

    def test_read_once(self, secrets_file):
        provider = YamlFileProvider(secrets_file)
        assert provider.get("sync.api_key") == "file-key"
        secrets_file.write_text(yaml.dump({"sync": {"api_key": "changed"}}))
        assert provider.get("sync.api_key") == "file-key"


class TestSecretsManager:
    def test_first_provider_wins(self, monkeypatch, secrets_file):
        monkeypatch.setenv("ZENJOURNAL_SYNC__API_KEY", "env-key")
        manager = SecretsManager([EnvProvider(), YamlFileProvider(secrets_file)])
        assert manager.get("sync.api_key") == "env-key"
        assert manager.get("sync.access_token") == "file-token"

    def test_default(self, tmp_path):
        manager = SecretsManager([YamlFileProvider(tmp_path / "none.yaml")])
        assert manager.get("sync.api_key", "") == ""

    def test_require_raises(self, tmp_path):
        manager = SecretsManager([YamlFileProvider(tmp_path / "none.yaml")])
        with pytest.raises(SecretNotFoundError, match="YamlFileProvider"):
            manager.require("sync.api_key")


class TestSyncCredentials:
    def test_resolve_from_config_and_file(self, tmp_dir, secrets_file):
        config = Config(data_dir=tmp_dir, env_prefix="")
        config.set("sync.url", "https://x.supabase.co")
        creds = SyncCredentials.resolve(config, SecretsManager([YamlFileProvider(secrets_file)]))
        assert creds == SyncCredentials("https://x.supabase.co", "file-key", "file-token")
        assert creds.complete

    def test_incomplete_without_token(self, tmp_dir, tmp_path):
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.dump({"sync": {"url": "https://x", "api_key": "k"}}))
        config = Config(data_dir=tmp_dir, env_prefix="")
        creds = SyncCredentials.resolve(config, YamlFileProvider(path))
        assert creds.url == "https://x"
        assert not creds.complete
