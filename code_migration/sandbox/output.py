"""Explicit output sinks for sandboxed code."""

from collections.abc import Callable


class OutputCollector:
    """
    Collects one line per print call made by sandboxed code.

    An optional echo callable receives every line as it is emitted, for
    callers that want to mirror output somewhere else.
    """

    def __init__(self, echo: Callable[[str], None] | None = None):
        self._lines: list[str] = []
        self._echo = echo

    def emit(self, *values, sep: str = " ") -> None:
        line = sep.join(str(value) for value in values)
        self._lines.append(line)
        if self._echo is not None:
            self._echo(line)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)
