"""
Data types for code-migration.

These types travel between the server, the transport and the client-side
sandbox. Each can be rendered to a JSON-compatible dict and rebuilt from one.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .exceptions import UnknownKindError

MAX_N = 10000


class Kind(str, Enum):
    """The closed set of computations a server can ship."""

    COUNT = "count"
    FIBONACCI = "fibonacci"

    @classmethod
    def parse(cls, value: "str | Kind") -> "Kind":
        """Resolve a kind from its name or a route alias."""
        if isinstance(value, Kind):
            return value
        normalized = str(value).strip().lower()
        resolved = _KIND_ALIASES.get(normalized)
        if resolved is None:
            raise UnknownKindError(str(value))
        return resolved


_KIND_ALIASES = {
    "count": Kind.COUNT,
    "nau": Kind.COUNT,
    "fibonacci": Kind.FIBONACCI,
    "fib": Kind.FIBONACCI,
}


@dataclass(frozen=True)
class ExecutionRequest:
    """A client's request for one computation."""

    n: int
    kind: Kind
    client_version: str | None = None

    def __post_init__(self):
        if isinstance(self.n, bool) or not isinstance(self.n, int):
            raise TypeError(f"n must be an int, got {type(self.n).__name__}")
        if not 0 <= self.n <= MAX_N:
            raise ValueError(f"n must be between 0 and {MAX_N}, got {self.n}")
        object.__setattr__(self, "kind", Kind.parse(self.kind))


@dataclass(frozen=True)
class CodeArtifact:
    """Source text and call expression produced by the server for one request."""

    kind: Kind
    n: int
    call_expression: str
    version: str
    cached: bool = False
    source_text: str | None = None
    server: str | None = None

    def __post_init__(self):
        if self.cached and self.source_text is not None:
            raise ValueError("cached artifacts must not carry source text")
        if not self.cached and self.source_text is None:
            raise ValueError("non-cached artifacts must carry source text")

    def to_dict(self) -> dict[str, Any]:
        """Render as the HTTP response body."""
        data: dict[str, Any] = {}
        if self.source_text is not None:
            data["code"] = self.source_text
        data["call"] = self.call_expression
        if self.server is not None:
            data["server"] = self.server
        data["version"] = self.version
        data["cached"] = self.cached
        return data

    @classmethod
    def from_dict(cls, data: dict, kind: "Kind | str", n: int) -> "CodeArtifact":
        code = data.get("code")
        cached = bool(data.get("cached", code is None))
        return cls(
            kind=Kind.parse(kind),
            n=n,
            call_expression=data["call"],
            version=str(data.get("version") or ""),
            cached=cached,
            source_text=None if cached else code,
            server=data.get("server"),
        )


@dataclass(frozen=True)
class ExecutionFailure:
    """Error captured while running sandboxed code."""

    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message}


@dataclass(frozen=True)
class ExecutionOutcome:
    """Captured output lines and the optional execution error."""

    output_lines: tuple[str, ...] = ()
    error: ExecutionFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "output_lines": list(self.output_lines),
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass(frozen=True)
class HistoryRecord:
    """Immutable snapshot of one completed migration cycle."""

    artifact: CodeArtifact
    outcome: ExecutionOutcome
    server_elapsed_ms: float
    client_elapsed_ms: float
    timestamp: datetime

    @property
    def kind(self) -> Kind:
        return self.artifact.kind

    @property
    def n(self) -> int:
        return self.artifact.n

    @property
    def total_ms(self) -> float:
        return self.server_elapsed_ms + self.client_elapsed_ms

    @property
    def succeeded(self) -> bool:
        return self.outcome.succeeded

    @property
    def result(self) -> str | None:
        """Final output line, the value of a Fibonacci term or the last count."""
        return self.outcome.output_lines[-1] if self.outcome.output_lines else None

    @property
    def total_numbers(self) -> int:
        return 0 if not self.succeeded else len(self.outcome.output_lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "n": self.n,
            "server": self.artifact.server,
            "version": self.artifact.version,
            "cached": self.artifact.cached,
            "call": self.artifact.call_expression,
            "outcome": self.outcome.to_dict(),
            "server_elapsed_ms": self.server_elapsed_ms,
            "client_elapsed_ms": self.client_elapsed_ms,
            "timestamp": self.timestamp.isoformat(),
        }
