"""
Client-side store of shipped source text.

Keys are (kind, version) pairs. A miss on a cached response is a protocol
violation and raises ProtocolError instead of falling back.
"""

import logging
import threading

from .exceptions import ProtocolError
from .types import CodeArtifact, Kind

logger = logging.getLogger(__name__)


class SourceCache:
    """Caller-owned mapping of (kind, version) -> source text."""

    def __init__(self):
        self._entries: dict[tuple[Kind, str], str] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _key(kind: Kind | str, version: str) -> tuple[Kind, str]:
        return (Kind.parse(kind), str(version))

    def store(self, kind: Kind | str, version: str, source_text: str) -> None:
        key = self._key(kind, version)
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = source_text
        logger.debug(f"stored source for {Kind.parse(kind).value}@{version}")

    def remember(self, artifact: CodeArtifact) -> None:
        """Store the source of a full (non-cached) artifact."""
        if artifact.source_text is not None:
            self.store(artifact.kind, artifact.version, artifact.source_text)

    def get(self, kind: Kind | str, version: str) -> str | None:
        with self._lock:
            source = self._entries.get(self._key(kind, version))
            if source is None:
                self._misses += 1
            else:
                self._hits += 1
        return source

    def resolve(self, kind: Kind | str, version: str) -> str:
        """Return cached source or raise ProtocolError."""
        source = self.get(kind, version)
        if source is None:
            raise ProtocolError(Kind.parse(kind).value, str(version))
        return source

    def version_for(self, kind: Kind | str) -> str | None:
        """
        Return the version to declare for a kind.

        When several versions are held, the most recently stored one wins.
        """
        kind = Kind.parse(kind)
        with self._lock:
            versions = [v for (k, v) in self._entries if k is kind]
        return versions[-1] if versions else None

    def evict(self, kind: Kind | str | None = None) -> int:
        """Drop entries for one kind, or everything. Returns the count removed."""
        with self._lock:
            if kind is None:
                removed = len(self._entries)
                self._entries.clear()
                return removed
            kind = Kind.parse(kind)
            doomed = [key for key in self._entries if key[0] is kind]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def get_stats(self) -> dict[str, int]:
        with self._lock:
            return {"size": len(self._entries), "hits": self._hits, "misses": self._misses}

    def __contains__(self, key: tuple) -> bool:
        kind, version = key
        with self._lock:
            return self._key(kind, version) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
