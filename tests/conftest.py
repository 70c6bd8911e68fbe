"""Test fixtures and configuration."""

import hashlib
import math
import re
import sys
from pathlib import Path

import pytest

# Add src directory to path (package root)
pkg_dir = Path(__file__).parent.parent / "src" / "lexindex"
sys.path.insert(0, str(pkg_dir.parent))

from lexindex.ingestion.chunking import chunk_profile_for  # noqa: E402
from lexindex.storage.embeddings import Embedder  # noqa: E402
from lexindex.storage.vector_store import InMemoryVectorStore  # noqa: E402

_WORD_RE = re.compile(r"[A-Za-z0-9]+")


class FakeEmbedder(Embedder):
    """Deterministic bag-of-words embedding over hashed buckets."""

    def __init__(self, dimensions: int = 64):
        self.dimensions = dimensions
        self.calls = 0

    async def embed(self, text: str) -> list[float]:
        self.calls += 1
        vec = [0.0] * self.dimensions
        for word in _WORD_RE.findall(text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self.dimensions
            vec[bucket] += 1.0
        norm = math.sqrt(sum(v * v for v in vec)) or 1.0
        return [v / norm for v in vec]


class ScriptedStore(InMemoryVectorStore):
    """
    In-memory store whose inserts fail on demand.

    fail_when(call_number, doc) returns an error message to raise, or None
    to let the insert through. call_number starts at 1.
    """

    def __init__(self, fail_when=None, max_payload_bytes=None):
        super().__init__(FakeEmbedder(), max_payload_bytes=max_payload_bytes)
        self.fail_when = fail_when or (lambda n, doc: None)
        self.insert_calls = 0

    async def _add_document(self, doc):
        self.insert_calls += 1
        message = self.fail_when(self.insert_calls, doc)
        if message:
            raise RuntimeError(message)
        await super()._add_document(doc)


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def memory_store(embedder):
    store = InMemoryVectorStore(embedder)
    store.open()
    yield store
    store.close()


@pytest.fixture
def scripted_store():
    """Factory for opened ScriptedStore instances."""

    def _make(fail_when=None, max_payload_bytes=None):
        store = ScriptedStore(fail_when=fail_when, max_payload_bytes=max_payload_bytes)
        store.open()
        return store

    return _make


@pytest.fixture
def fast_profile():
    """Document profile without pacing delays."""
    return chunk_profile_for("document", success_delay_s=0.0, failure_delay_s=0.0)


@pytest.fixture
def fast_micro_profile():
    return chunk_profile_for("micro", success_delay_s=0.0, failure_delay_s=0.0)


# Pytest configuration
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
