"""Sandboxed execution of migrated code."""

from .executor import ERROR_PREFIX, SAFE_BUILTINS, ExecutorState, SandboxExecutor
from .grammar import validate_call, validate_source
from .output import OutputCollector

__all__ = [
    "ERROR_PREFIX",
    "ExecutorState",
    "OutputCollector",
    "SAFE_BUILTINS",
    "SandboxExecutor",
    "validate_call",
    "validate_source",
]
