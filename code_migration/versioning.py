"""
Version negotiation for shipped source text.

Clients declare the version of the source they hold; the server omits the
source when that matches its own version. Source text depends only on the
kind, so the call expression is the only part that must always be sent.
"""

import dataclasses
import logging

from .generator import CodeGenerator
from .types import CodeArtifact, Kind

logger = logging.getLogger(__name__)


def decide(client_version: str | None, server_version: str) -> bool:
    """Return True when the response must include the source text."""
    return client_version != server_version


class VersionCache:
    """Applies the include-source decision to generated artifacts."""

    def __init__(self, generator: CodeGenerator):
        self.generator = generator

    @property
    def server_version(self) -> str:
        return self.generator.version

    def decide(self, client_version: str | None) -> bool:
        return decide(client_version, self.server_version)

    def build(self, kind: Kind | str, n, client_version: str | None = None) -> CodeArtifact:
        """Generate the artifact for a request and strip the source if cached."""
        artifact = self.generator.generate(n, kind)
        if self.decide(client_version):
            logger.info(
                f"client version {client_version!r} != {self.server_version!r}, sending source"
            )
            return artifact
        logger.info(f"client holds version {self.server_version!r}, sending call only")
        return dataclasses.replace(artifact, cached=True, source_text=None)
