"""
Result aggregation for completed migration cycles.
"""

import math
import threading
from collections.abc import Iterator
from datetime import datetime

from .types import CodeArtifact, ExecutionOutcome, HistoryRecord


def combine(
    artifact: CodeArtifact,
    outcome: ExecutionOutcome,
    server_elapsed_ms: float,
    client_elapsed_ms: float,
    timestamp: datetime | None = None,
) -> HistoryRecord:
    """
    Merge artifact, outcome and timings into a history record.

    Raises:
        ValueError: If either elapsed value is negative or NaN.
    """
    if math.isnan(server_elapsed_ms) or server_elapsed_ms < 0:
        raise ValueError(f"server_elapsed_ms must be >= 0, got {server_elapsed_ms}")
    if math.isnan(client_elapsed_ms) or client_elapsed_ms < 0:
        raise ValueError(f"client_elapsed_ms must be >= 0, got {client_elapsed_ms}")
    return HistoryRecord(
        artifact=artifact,
        outcome=outcome,
        server_elapsed_ms=float(server_elapsed_ms),
        client_elapsed_ms=float(client_elapsed_ms),
        timestamp=timestamp or datetime.now(),
    )


class History:
    """Append-only record sequence, most recent first."""

    def __init__(self):
        self._records: list[HistoryRecord] = []
        self._lock = threading.Lock()

    def add(self, record: HistoryRecord) -> None:
        with self._lock:
            self._records.insert(0, record)

    @property
    def latest(self) -> HistoryRecord | None:
        with self._lock:
            return self._records[0] if self._records else None

    def to_list(self) -> list[dict]:
        return [record.to_dict() for record in self]

    def __iter__(self) -> Iterator[HistoryRecord]:
        with self._lock:
            snapshot = list(self._records)
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __getitem__(self, index: int) -> HistoryRecord:
        with self._lock:
            return self._records[index]
