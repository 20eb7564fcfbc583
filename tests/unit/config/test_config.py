"""Tests for Config Pydantic Settings."""

from pathlib import Path

import pytest

from regsync.config import Config


class TestConfigDefaults:
    def test_registry_defaults(self) -> None:
        config = Config()
        assert config.registry.image == "registry:2"
        assert config.registry.search_limit == 1024
        assert config.transfer.tls_verify is False
        assert config.sync.timeout is None

    def test_credentials_unset_by_default(self) -> None:
        config = Config()
        assert config.credentials.username is None
        assert config.credentials.password is None

    def test_env_prefix_is_regsync(self) -> None:
        assert Config.model_config.get("env_prefix") == "REGSYNC_"


class TestEnvironmentOverrides:
    def test_nested_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REGSYNC_REGISTRY__IMAGE", "mirror.local/registry:2.8")
        assert Config().registry.image == "mirror.local/registry:2.8"

    def test_default_registry_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEFAULT_REGISTRY_USERNAME", "ops")
        monkeypatch.setenv("DEFAULT_REGISTRY_PASSWORD", "")
        config = Config()
        assert config.credentials.username == "ops"
        assert config.credentials.password == ""

    def test_prefixed_credentials_win_over_default_env(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DEFAULT_REGISTRY_USERNAME", "ops")
        monkeypatch.setenv("REGSYNC_CREDENTIALS__USERNAME", "robot")
        assert Config().credentials.username == "robot"

    def test_yaml_config_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "regsync.yaml"
        config_file.write_text("registry:\n  ready_timeout: 5\ntransfer:\n  skopeo_binary: /opt/skopeo\n")
        monkeypatch.setenv("REGSYNC_CONFIG_FILE", str(config_file))
        config = Config()
        assert config.registry.ready_timeout == 5
        assert config.transfer.skopeo_binary == "/opt/skopeo"

    def test_env_beats_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "regsync.yaml"
        config_file.write_text("sync:\n  timeout: 60\n")
        monkeypatch.setenv("REGSYNC_CONFIG_FILE", str(config_file))
        monkeypatch.setenv("REGSYNC_SYNC__TIMEOUT", "30")
        assert Config().sync.timeout == 30
