"""
Client-side migration cycle.

One cycle fetches code for (kind, n), resolves or stores its source,
executes it in the sandbox and appends a history record. Steps run in
order; only transport, validation and protocol failures abort a cycle.
"""

import logging
from collections.abc import Callable
from time import perf_counter

from .aggregator import History, combine
from .config import ClientConfig
from .generator import validate_n
from .sandbox import OutputCollector, SandboxExecutor
from .source_cache import SourceCache
from .transport import CodeClient
from .types import CodeArtifact, ExecutionRequest, HistoryRecord, Kind

logger = logging.getLogger(__name__)

StepCallback = Callable[[str, str], None]


class MigrationClient:
    """
    Drives request -> transport -> execute -> record cycles.

    Runs one cycle at a time; timings are read back from the transport and
    the executor after each step.
    """

    def __init__(
        self,
        transport: CodeClient | None = None,
        source_cache: SourceCache | None = None,
        history: History | None = None,
        on_step: StepCallback | None = None,
    ):
        self.transport = transport or CodeClient()
        self.source_cache = source_cache if source_cache is not None else SourceCache()
        self.executor = SandboxExecutor(self.source_cache)
        self.history = history if history is not None else History()
        self.on_step = on_step

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs) -> "MigrationClient":
        return cls(
            transport=CodeClient(base_url=config.base_url, timeout=config.timeout_seconds),
            **kwargs,
        )

    def _step(self, step: str, message: str) -> None:
        logger.info(f"[{step}] {message}")
        if self.on_step is not None:
            self.on_step(step, message)

    def fetch(self, request: ExecutionRequest) -> tuple[CodeArtifact, float]:
        """Fetch the artifact for a request, storing shipped source. Returns (artifact, elapsed ms)."""
        started = perf_counter()
        artifact = self.transport.get_code(request.kind, request.n, request.client_version)
        # Prefer the transport's own measurement of the HTTP round trip
        elapsed_ms = getattr(self.transport, "last_elapsed_ms", None)
        if elapsed_ms is None:
            elapsed_ms = (perf_counter() - started) * 1000.0

        if artifact.cached:
            self._step("fetch", f"server {artifact.server or '?'} confirmed cached version {artifact.version}")
        else:
            self.source_cache.remember(artifact)
            self._step("fetch", f"server {artifact.server or '?'} returned source for version {artifact.version}")
        return artifact, elapsed_ms

    def run(
        self,
        kind: Kind | str,
        n: int,
        use_cache: bool = True,
        sink: OutputCollector | None = None,
    ) -> HistoryRecord:
        """
        Run one full migration cycle.

        Args:
            kind: Computation kind.
            n: Parameter for the computation.
            use_cache: Declare the locally held version so the server can
                omit source already present.
            sink: Optional output sink passed through to the executor.

        Raises:
            TransportError: The request failed before code was received.
            ValidationError: n is out of range, locally or per the server.
            ProtocolError: A cached response has no local source.
        """
        kind = Kind.parse(kind)
        n = validate_n(n)
        client_version = self.source_cache.version_for(kind) if use_cache else None
        request = ExecutionRequest(n=n, kind=kind, client_version=client_version)

        self._step("request", f"GET /{kind.value}/{n}")
        artifact, server_elapsed_ms = self.fetch(request)

        self._step("execute", f"running {artifact.call_expression}")
        outcome = self.executor.execute(artifact, sink=sink)
        client_elapsed_ms = self.executor.last_execution_time * 1000.0

        record = combine(artifact, outcome, server_elapsed_ms, client_elapsed_ms)
        self.history.add(record)
        self._step(
            "done",
            f"server {server_elapsed_ms:.2f}ms + client {client_elapsed_ms:.2f}ms",
        )
        return record
