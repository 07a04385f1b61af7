"""Tests for configuration loading."""

import json

import pytest

from code_migration.config import AppConfig, ClientConfig, ServerConfig
from code_migration.exceptions import ConfigurationError


class TestDefaults:
    def test_defaults(self):
        config = AppConfig()

        assert config.server.server_id == "unknown"
        assert config.server.port == 3001
        assert config.server.version == "1.0.0"
        assert config.client.timeout_seconds == 5.0

    def test_log_level_value(self):
        assert ServerConfig(log_level="debug").log_level_value == 10

    @pytest.mark.parametrize(
        "kwargs",
        [{"port": 0}, {"port": 70000}, {"version": " "}, {"log_level": "LOUD"}],
    )
    def test_invalid_server_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            ServerConfig(**kwargs)

    def test_invalid_timeout(self):
        with pytest.raises(ConfigurationError):
            ClientConfig(timeout_seconds=0)


class TestLoadFromFile:
    def test_yaml(self, tmp_path):
        path = tmp_path / "code-migration.yaml"
        path.write_text(
            "server:\n  server_id: server2\n  port: 3003\n  version: '3'\n"
            "client:\n  base_url: http://lb:8080/\n  timeout_seconds: 2\n"
        )

        config = AppConfig.load_from_file(path)

        assert config.server.server_id == "server2"
        assert config.server.port == 3003
        assert config.server.version == "3"
        assert config.client.base_url == "http://lb:8080"

    def test_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"server": {"version": "9"}}))

        assert AppConfig.load_from_file(path).server.version == "9"

    def test_numeric_version_is_string(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("server:\n  version: 2\n")

        assert AppConfig.load_from_file(path).server.version == "2"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            AppConfig.load_from_file(tmp_path / "missing.yaml")

    def test_unknown_keys(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("server:\n  colour: blue\n")

        with pytest.raises(ConfigurationError, match="colour"):
            AppConfig.load_from_file(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("server: [unclosed\n")

        with pytest.raises(ConfigurationError):
            AppConfig.load_from_file(path)


class TestEnvironment:
    def test_env_overrides(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("server:\n  server_id: from-file\n")

        config = AppConfig.load(
            path,
            environ={
                "SERVER_ID": "server1",
                "PORT": "3002",
                "CODE_VERSION": "5",
                "CODE_MIGRATION_URL": "http://lb",
                "CODE_MIGRATION_TIMEOUT": "1.5",
            },
        )

        assert config.server.server_id == "server1"
        assert config.server.port == 3002
        assert config.server.version == "5"
        assert config.client.base_url == "http://lb"
        assert config.client.timeout_seconds == 1.5

    def test_bad_port(self):
        with pytest.raises(ConfigurationError, match="PORT"):
            AppConfig().with_env({"PORT": "eighty"})

    def test_load_without_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        config = AppConfig.load(environ={})

        assert config == AppConfig()
