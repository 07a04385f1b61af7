"""
Configuration management for code-migration.

Example code-migration.yaml:
    server:
      server_id: server1
      port: 3001
      version: "1.0.0"
      cors_origin: "*"
      log_level: INFO

    client:
      base_url: http://localhost:3001
      timeout_seconds: 5
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = "code-migration.yaml"


@dataclass
class ServerConfig:
    """Configuration for the code-serving HTTP server."""

    server_id: str = "unknown"
    host: str = "127.0.0.1"
    port: int = 3001
    version: str = "1.0.0"
    cors_origin: str = "*"
    log_level: str = "INFO"

    def __post_init__(self):
        if not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise ConfigurationError(f"port must be between 1 and 65535, got {self.port!r}")
        if not str(self.version).strip():
            raise ConfigurationError("version must not be empty")
        self.version = str(self.version)
        if logging.getLevelName(str(self.log_level).upper()) == f"Level {str(self.log_level).upper()}":
            raise ConfigurationError(f"unknown log level: {self.log_level!r}")

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level.upper())


@dataclass
class ClientConfig:
    """Configuration for the migration client."""

    base_url: str = "http://localhost:3001"
    timeout_seconds: float = 5.0

    def __post_init__(self):
        if not self.timeout_seconds > 0:
            raise ConfigurationError(
                f"timeout_seconds must be positive, got {self.timeout_seconds!r}"
            )
        self.base_url = self.base_url.rstrip("/")


@dataclass
class AppConfig:
    """Top-level configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    client: ClientConfig = field(default_factory=ClientConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from a YAML or JSON file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path) as f:
                if config_path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to read {config_path}: {e}") from e

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppConfig":
        if not isinstance(data, dict):
            raise ConfigurationError("configuration root must be a mapping")
        return cls(
            server=_build(ServerConfig, data.get("server")),
            client=_build(ClientConfig, data.get("client")),
        )

    @classmethod
    def load(cls, config_path: Path | None = None, environ: dict[str, str] | None = None) -> "AppConfig":
        """Load from file when one is present, then apply environment overrides."""
        if config_path is None:
            default_path = Path.cwd() / DEFAULT_CONFIG_FILE
            config = cls.load_from_file(default_path) if default_path.exists() else cls()
        else:
            config = cls.load_from_file(config_path)
        return config.with_env(os.environ if environ is None else environ)

    def with_env(self, environ) -> "AppConfig":
        """Return a copy with SERVER_ID, PORT and related variables applied."""
        server = asdict(self.server)
        client = asdict(self.client)

        for env_name, key in (
            ("SERVER_ID", "server_id"),
            ("HOST", "host"),
            ("CODE_VERSION", "version"),
            ("CORS_ORIGIN", "cors_origin"),
            ("LOG_LEVEL", "log_level"),
        ):
            if environ.get(env_name):
                server[key] = environ[env_name]
        if environ.get("PORT"):
            server["port"] = _parse_number(int, "PORT", environ["PORT"])

        if environ.get("CODE_MIGRATION_URL"):
            client["base_url"] = environ["CODE_MIGRATION_URL"]
        if environ.get("CODE_MIGRATION_TIMEOUT"):
            client["timeout_seconds"] = _parse_number(
                float, "CODE_MIGRATION_TIMEOUT", environ["CODE_MIGRATION_TIMEOUT"]
            )

        return AppConfig(server=ServerConfig(**server), client=ClientConfig(**client))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _build(config_cls, data):
    if data is None:
        return config_cls()
    if not isinstance(data, dict):
        raise ConfigurationError(f"'{config_cls.__name__}' section must be a mapping")
    valid = {f.name for f in fields(config_cls)}
    unknown = set(data) - valid
    if unknown:
        raise ConfigurationError(
            f"unknown {config_cls.__name__} keys: {', '.join(sorted(unknown))}"
        )
    try:
        return config_cls(**data)
    except TypeError as e:
        raise ConfigurationError(str(e)) from e


def _parse_number(cast, name: str, raw: str):
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
