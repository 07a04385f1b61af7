"""
Server-side code generation.

Each kind maps to a fixed function template. The template text depends only
on the kind, so it can be cached by clients per server version; only the
call expression carries the requested n.
"""

import logging
import re

from .exceptions import ValidationError
from .types import MAX_N, CodeArtifact, Kind

logger = logging.getLogger(__name__)

BOUND_MESSAGE = f"Parameter n must be an integer between 0 and {MAX_N}"

_INTEGER_LITERAL = re.compile(r"^[+-]?[0-9]+$")

COUNT_SOURCE = '''\
def printCountToN(n):
    if not isinstance(n, int) or n < 0:
        raise ValueError("N must be an integer >= 0")
    for i in range(n + 1):
        print(i)
'''

FIBONACCI_SOURCE = '''\
def fibonacci(n):
    if n == 0:
        return 0
    if n == 1:
        return 1
    prev, curr = 0, 1
    for _ in range(2, n + 1):
        prev, curr = curr, prev + curr
    return curr
'''

TEMPLATES: dict[Kind, tuple[str, str]] = {
    Kind.COUNT: ("printCountToN", COUNT_SOURCE),
    Kind.FIBONACCI: ("fibonacci", FIBONACCI_SOURCE),
}


def validate_n(value) -> int:
    """
    Coerce and validate a requested n.

    Accepts ints and base-10 integer strings. Raises ValidationError for
    anything else, or for values outside [0, MAX_N].
    """
    if isinstance(value, bool):
        raise ValidationError(BOUND_MESSAGE)
    if isinstance(value, int):
        n = value
    elif isinstance(value, str) and _INTEGER_LITERAL.match(value.strip()):
        text = value.strip()
        negative = text.startswith("-")
        if len(text.lstrip("+-").lstrip("0")) > len(str(MAX_N)):
            # Too many digits to be in range; also avoids the int() digit limit
            if negative:
                raise ValidationError(f"{BOUND_MESSAGE} (n must be >= 0)")
            raise ValidationError(f"{BOUND_MESSAGE} (n must be <= {MAX_N})")
        n = int(text)
    else:
        raise ValidationError(BOUND_MESSAGE)

    if n < 0:
        raise ValidationError(f"{BOUND_MESSAGE} (n must be >= 0)")
    if n > MAX_N:
        raise ValidationError(f"{BOUND_MESSAGE} (n must be <= {MAX_N})")
    return n


def source_for(kind: Kind | str) -> str:
    """Return the function source shipped for a kind."""
    return TEMPLATES[Kind.parse(kind)][1]


def call_expression_for(kind: Kind | str, n: int) -> str:
    return f"{TEMPLATES[Kind.parse(kind)][0]}({n})"


class CodeGenerator:
    """Produces deterministic source text and call expressions."""

    def __init__(self, version: str, server_id: str | None = None):
        self.version = version
        self.server_id = server_id

    def generate(self, n, kind: Kind | str) -> CodeArtifact:
        """
        Build the full artifact for (n, kind).

        Args:
            n: Requested parameter, an int or its textual form.
            kind: Computation kind or one of its route aliases.

        Returns:
            A non-cached CodeArtifact carrying the source text.

        Raises:
            ValidationError: If n is not an integer in [0, MAX_N].
            UnknownKindError: If kind is not supported.
        """
        kind = Kind.parse(kind)
        try:
            n = validate_n(n)
        except ValidationError:
            logger.warning(f"invalid parameter n={n!r}")
            raise
        logger.info(f"validated n={n}")

        source = source_for(kind)
        logger.info(f"generated {len(source)}-byte {kind.value} function")
        return CodeArtifact(
            kind=kind,
            n=n,
            call_expression=call_expression_for(kind, n),
            version=self.version,
            cached=False,
            source_text=source,
            server=self.server_id,
        )
