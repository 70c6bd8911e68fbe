"""
Vector store adapters: the similarity-search collaborator chunks are
inserted into and queried against.

Stores are created by the caller and used between open() and close();
nothing here is a process-wide singleton.
"""

from __future__ import annotations

import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from lexindex.core.errors import (
    PayloadTooLargeError,
    StoreClosedError,
    StoreInsertError,
    is_payload_error,
)
from lexindex.ingestion.utils import size_in_bytes
from lexindex.observability.metrics import (
    VECTOR_DB_REQUESTS,
    VECTOR_DB_REQUEST_DURATION,
    VECTOR_DB_RESULTS,
)
from .embeddings import Embedder

logger = logging.getLogger(__name__)


@dataclass
class StoreDocument:
    page_content: str
    metadata: dict[str, Any] = field(default_factory=dict)


class VectorStore(ABC):
    """Base class handling lifecycle, error classification and metrics."""

    name = "vector_store"

    def __init__(self):
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> "VectorStore":
        self._open = True
        logger.info("%s: opened", self.name)
        return self

    def close(self) -> None:
        self._open = False
        logger.info("%s: closed", self.name)

    def __enter__(self) -> "VectorStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if not self._open:
            raise StoreClosedError(
                f"{self.name} is not open", context={"store": self.name}
            )

    async def add_documents(self, documents: list[StoreDocument]) -> None:
        """
        Insert documents one at a time.

        Raises PayloadTooLargeError when the backend refuses a document for
        its size, StoreInsertError for any other failure.
        """
        self._ensure_open()
        for doc in documents:
            start_s = time.perf_counter()
            try:
                await self._add_document(doc)
                VECTOR_DB_REQUESTS.labels("add", "success").inc()
            except StoreInsertError:
                VECTOR_DB_REQUESTS.labels("add", "error").inc()
                raise
            except Exception as exc:
                VECTOR_DB_REQUESTS.labels("add", "error").inc()
                raise self._classify(exc, doc) from exc
            finally:
                VECTOR_DB_REQUEST_DURATION.labels("add").observe(
                    max(time.perf_counter() - start_s, 0.0)
                )

    async def similarity_search(
        self, query: str, k: int = 4
    ) -> list[tuple[StoreDocument, float]]:
        """Return up to k (document, score) pairs, best match first."""
        self._ensure_open()
        start_s = time.perf_counter()
        try:
            results = await self._search(query, int(k))
            VECTOR_DB_REQUESTS.labels("query", "success").inc()
        except Exception:
            VECTOR_DB_REQUESTS.labels("query", "error").inc()
            raise
        finally:
            VECTOR_DB_REQUEST_DURATION.labels("query").observe(
                max(time.perf_counter() - start_s, 0.0)
            )
        VECTOR_DB_RESULTS.labels("query").observe(len(results))
        return results

    def _classify(self, exc: Exception, doc: StoreDocument) -> StoreInsertError:
        context = {
            "store": self.name,
            "chunk_id": doc.metadata.get("chunk_id"),
            "bytes": size_in_bytes(doc.page_content),
        }
        if is_payload_error(exc):
            return PayloadTooLargeError(
                f"{self.name} rejected document as too large: {exc}",
                context=context,
                original_error=exc,
            )
        return StoreInsertError(
            f"{self.name} insert failed: {exc}",
            context=context,
            original_error=exc,
        )

    @abstractmethod
    async def _add_document(self, doc: StoreDocument) -> None:
        """Backend-specific single insert."""

    @abstractmethod
    async def _search(
        self, query: str, k: int
    ) -> list[tuple[StoreDocument, float]]:
        """Backend-specific similarity query."""


def cosine_similarity(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryVectorStore(VectorStore):
    """
    Process-scoped store with brute-force cosine search. A document whose
    chunk_id is already stored replaces the earlier record.
    Contents are dropped on close().
    """

    name = "memory"

    def __init__(self, embedder: Embedder, max_payload_bytes: Optional[int] = None):
        super().__init__()
        self.embedder = embedder
        self.max_payload_bytes = max_payload_bytes
        self._records: list[tuple[StoreDocument, list[float]]] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def documents(self) -> list[StoreDocument]:
        return [doc for doc, _ in self._records]

    def close(self) -> None:
        self._records.clear()
        super().close()

    async def _add_document(self, doc: StoreDocument) -> None:
        size = size_in_bytes(doc.page_content)
        if self.max_payload_bytes is not None and size > self.max_payload_bytes:
            raise PayloadTooLargeError(
                f"Payload of {size} bytes exceeds {self.max_payload_bytes} bytes",
                context={"bytes": size, "limit": self.max_payload_bytes},
            )
        vector = await self.embedder.embed(doc.page_content)
        # Upsert by chunk_id, same as the Pinecone index.
        chunk_id = doc.metadata.get("chunk_id")
        if chunk_id is not None:
            for i, (existing, _) in enumerate(self._records):
                if existing.metadata.get("chunk_id") == chunk_id:
                    self._records[i] = (doc, vector)
                    return
        self._records.append((doc, vector))

    async def _search(
        self, query: str, k: int
    ) -> list[tuple[StoreDocument, float]]:
        if not self._records or k <= 0:
            return []
        query_vec = await self.embedder.embed(query)
        scored = [
            (doc, cosine_similarity(query_vec, vec)) for doc, vec in self._records
        ]
        scored.sort(key=lambda x: x[1], reverse=True)
        return scored[:k]
