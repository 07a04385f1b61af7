"""
code-migration: ship small computations as source text and run them in a
client-side sandbox.

Features:
- FastAPI server generating count and Fibonacci functions
- Version-negotiated caching that omits source the client already holds
- Whitelisted-grammar sandbox with explicit output capture
- Append-only history of completed cycles
"""

import logging as _logging

DEFAULT_FORMAT = "[%(asctime)s] [{server_id}] %(levelname)s  %(message)s"

# Logs warnings and above to stderr by default
_logger = _logging.getLogger(__name__)
if not _logger.handlers:
    _handler = _logging.StreamHandler()
    _handler.setFormatter(_logging.Formatter(DEFAULT_FORMAT.format(server_id="unknown")))
    _logger.addHandler(_handler)
    _logger.setLevel(_logging.WARNING)


def configure_logging(
    level: int = _logging.WARNING,
    server_id: str = "unknown",
    format: str | None = None,
) -> None:
    """
    Configure logging for the code_migration package.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO).
        server_id: Identifier embedded in every log line.
        format: Log message format string; overrides the default layout.

    Example:
        import logging
        import code_migration

        code_migration.configure_logging(level=logging.INFO, server_id="server1")
    """
    logger = _logging.getLogger(__name__)
    logger.setLevel(level)

    formatter = _logging.Formatter(format or DEFAULT_FORMAT.format(server_id=server_id))
    for handler in logger.handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)


from code_migration.aggregator import History, combine
from code_migration.client import MigrationClient
from code_migration.config import AppConfig, ClientConfig, ServerConfig
from code_migration.exceptions import (
    BadResponseError,
    CodeMigrationError,
    ConfigurationError,
    ExecutionError,
    ProtocolError,
    SandboxViolationError,
    ServerUnavailableError,
    ServerUnreachableError,
    TransportError,
    TransportTimeoutError,
    UnknownKindError,
    ValidationError,
)
from code_migration.generator import CodeGenerator, validate_n
from code_migration.sandbox import ExecutorState, OutputCollector, SandboxExecutor
from code_migration.source_cache import SourceCache
from code_migration.transport import CodeClient
from code_migration.types import (
    MAX_N,
    CodeArtifact,
    ExecutionFailure,
    ExecutionOutcome,
    ExecutionRequest,
    HistoryRecord,
    Kind,
)
from code_migration.versioning import VersionCache, decide

__all__ = [
    "configure_logging",
    # Server
    "CodeGenerator",
    "VersionCache",
    "decide",
    "validate_n",
    # Client
    "CodeClient",
    "MigrationClient",
    "SandboxExecutor",
    "ExecutorState",
    "OutputCollector",
    "SourceCache",
    "History",
    "combine",
    # Types
    "MAX_N",
    "Kind",
    "CodeArtifact",
    "ExecutionRequest",
    "ExecutionOutcome",
    "ExecutionFailure",
    "HistoryRecord",
    # Configuration
    "AppConfig",
    "ClientConfig",
    "ServerConfig",
    # Errors
    "CodeMigrationError",
    "ConfigurationError",
    "ValidationError",
    "UnknownKindError",
    "TransportError",
    "TransportTimeoutError",
    "ServerUnreachableError",
    "ServerUnavailableError",
    "BadResponseError",
    "ProtocolError",
    "ExecutionError",
    "SandboxViolationError",
]

__version__ = "0.1.0"
