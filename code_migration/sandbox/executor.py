"""
Sandboxed execution of migrated code.

Shipped source is checked against the whitelisted grammar, then evaluated
together with its call expression in a fresh namespace. The namespace
sees only a minimal builtins table whose ``print`` writes to an explicit
output sink, so the process-wide stdout is never touched.
"""

import logging
import threading
import time
from enum import Enum
from typing import Any

from ..exceptions import ProtocolError
from ..source_cache import SourceCache
from ..types import CodeArtifact, ExecutionFailure, ExecutionOutcome
from .grammar import validate_call, validate_source
from .output import OutputCollector

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Execution Error: "

SAFE_BUILTINS: dict[str, Any] = {
    "range": range,
    "isinstance": isinstance,
    "int": int,
    "str": str,
    "len": len,
    "abs": abs,
    "min": min,
    "max": max,
    "ValueError": ValueError,
    "TypeError": TypeError,
    # print is bound per execution to the output sink
}


class ExecutorState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    EXECUTING = "executing"
    DONE = "done"
    FAILED = "failed"


class SandboxExecutor:
    """
    Evaluates code artifacts in isolated namespaces.

    Cached artifacts are resolved against the caller's SourceCache; a miss
    raises ProtocolError. Any failure while running the code is captured in
    the returned outcome instead of being raised.
    """

    def __init__(self, source_cache: SourceCache | None = None):
        self.source_cache = source_cache if source_cache is not None else SourceCache()
        self._lock = threading.Lock()
        self._state = ExecutorState.IDLE
        self.last_execution_time: float | None = None

    @property
    def state(self) -> ExecutorState:
        return self._state

    def execute(
        self, artifact: CodeArtifact, sink: OutputCollector | None = None
    ) -> ExecutionOutcome:
        """
        Run an artifact and capture its output.

        Args:
            artifact: Code artifact received from the server.
            sink: Output sink for emitted lines. A fresh collector is used
                when omitted.

        Returns:
            ExecutionOutcome with the lines emitted by this call. When the
            code fails, the last line is "Execution Error: <message>".

        Raises:
            ProtocolError: If the artifact is cached and no matching source
                is held locally.
        """
        sink = sink if sink is not None else OutputCollector()
        with self._lock:
            start_time = time.perf_counter()
            first_line = len(sink)

            self._state = ExecutorState.LOADING
            try:
                source = self._load_source(artifact)
            except ProtocolError:
                self._state = ExecutorState.FAILED
                logger.error(
                    f"cached response for {artifact.kind.value}@{artifact.version} has no local source"
                )
                raise

            self._state = ExecutorState.EXECUTING
            failure = None
            completed = False
            try:
                try:
                    result = self._run(source, artifact.call_expression, sink)
                    if result is not None:
                        sink.emit(result)
                except Exception as e:
                    failure = ExecutionFailure(str(e) or type(e).__name__)
                    logger.warning(f"execution of {artifact.call_expression} failed: {failure.message}")
                    sink.emit(f"{ERROR_PREFIX}{failure.message}")
                completed = True
            finally:
                # Anything escaping above (KeyboardInterrupt, SystemExit) leaves FAILED
                self._state = ExecutorState.DONE if completed and failure is None else ExecutorState.FAILED
                self.last_execution_time = time.perf_counter() - start_time

            return ExecutionOutcome(output_lines=tuple(sink.lines[first_line:]), error=failure)

    def _load_source(self, artifact: CodeArtifact) -> str:
        if artifact.cached:
            return self.source_cache.resolve(artifact.kind, artifact.version)
        return artifact.source_text

    def _run(self, source: str, call_expression: str, sink: OutputCollector) -> Any:
        module, functions = validate_source(source)
        call = validate_call(call_expression, functions)

        namespace: dict[str, Any] = {
            "__builtins__": {**SAFE_BUILTINS, "print": sink.emit},
            "__name__": "__sandbox__",
        }
        exec(compile(module, "<migrated>", "exec"), namespace, namespace)
        return eval(compile(call, "<call>", "eval"), namespace, namespace)
