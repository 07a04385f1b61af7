"""
Pytest configuration and fixtures for code-migration tests.
"""

import os

import pytest
from hypothesis import Verbosity, settings

from code_migration.generator import CodeGenerator
from code_migration.sandbox import SandboxExecutor
from code_migration.source_cache import SourceCache
from code_migration.types import CodeArtifact, Kind
from code_migration.versioning import VersionCache

# Configure hypothesis settings for property-based testing
settings.register_profile(
    "default",
    max_examples=50,
    verbosity=Verbosity.normal,
    deadline=None,  # Large n values run thousands of iterations
)

settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "dev",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))

SERVER_VERSION = "1.0.0"


@pytest.fixture
def generator():
    return CodeGenerator(version=SERVER_VERSION, server_id="test-server")


@pytest.fixture
def version_cache(generator):
    return VersionCache(generator)


@pytest.fixture
def source_cache():
    return SourceCache()


@pytest.fixture
def executor(source_cache):
    return SandboxExecutor(source_cache)


class InProcessTransport:
    """Serves artifacts from a VersionCache, round-tripping the JSON body."""

    def __init__(self, version: str = SERVER_VERSION):
        self.version_cache = VersionCache(CodeGenerator(version=version, server_id="server1"))
        self.requests = []

    def get_code(self, kind, n, client_version=None):
        self.requests.append((Kind.parse(kind), n, client_version))
        body = self.version_cache.build(kind, n, client_version).to_dict()
        return CodeArtifact.from_dict(body, kind=kind, n=n)

    def health(self):
        return {"status": "ok", "timestamp": 0, "server": "server1", "version": self.version_cache.server_version}


@pytest.fixture
def make_transport():
    return InProcessTransport
