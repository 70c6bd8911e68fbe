from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from pinecone import Pinecone

from lexindex.core.config import settings
from lexindex.core.errors import StoreClosedError
from lexindex.ingestion.utils import sha1_text
from .embeddings import Embedder
from .vector_store import StoreDocument, VectorStore


logger = logging.getLogger(__name__)


def init_index(api_key: str, index_name: str) -> Any | None:
    if not api_key or not index_name:
        return None
    pc = Pinecone(api_key=api_key)
    return pc.Index(index_name)


def _extract_matches(res: Any) -> list[Any]:
    """Extract matches from Pinecone response (handles both dict and object responses)."""
    if isinstance(res, dict):
        return res.get("matches", []) or []
    return getattr(res, "matches", []) or []


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class PineconeVectorStore(VectorStore):
    """
    Pinecone-backed store: one vector per document in a namespace, with the
    chunk text kept in metadata for retrieval display.
    """

    name = "pinecone"

    def __init__(
        self,
        embedder: Embedder,
        index: Any = None,
        namespace: Optional[str] = None,
        *,
        api_key: Optional[str] = None,
        index_name: Optional[str] = None,
    ):
        super().__init__()
        self.embedder = embedder
        self.index = index
        self.namespace = namespace or settings.namespace_documents
        self._api_key = api_key or settings.pinecone_api_key
        self._index_name = index_name or settings.pinecone_index

    def open(self) -> "PineconeVectorStore":
        if self.index is None:
            self.index = init_index(self._api_key, self._index_name)
        if self.index is None:
            raise StoreClosedError(
                "Pinecone index not configured; cannot open store.",
                context={"index": self._index_name},
            )
        return super().open()

    async def _add_document(self, doc: StoreDocument) -> None:
        vector = await self.embedder.embed(doc.page_content)
        meta: dict[str, Any] = {
            k: v for k, v in doc.metadata.items() if v is not None
        }
        meta["text"] = doc.page_content
        vec_id = str(doc.metadata.get("chunk_id") or sha1_text(doc.page_content))
        await asyncio.to_thread(
            self.index.upsert,
            vectors=[{"id": vec_id, "values": vector, "metadata": meta}],
            namespace=self.namespace,
        )

    async def _search(
        self, query: str, k: int
    ) -> list[tuple[StoreDocument, float]]:
        vector = await self.embedder.embed(query)
        res = await asyncio.to_thread(
            self.index.query,
            namespace=self.namespace,
            vector=vector,
            top_k=k,
            include_metadata=True,
        )
        results: list[tuple[StoreDocument, float]] = []
        for match in _extract_matches(res):
            meta = dict(_field(match, "metadata") or {})
            text = str(meta.pop("text", "") or "")
            score = float(_field(match, "score", 0.0) or 0.0)
            results.append((StoreDocument(page_content=text, metadata=meta), score))
        return results
