"""Search hit dataclass and utilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from lexindex.storage.vector_store import StoreDocument


@dataclass
class SearchHit:
    """Represents a retrieved chunk with its score and origin."""

    id: str
    source: str
    score: float
    text: str
    chunk_index: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "source": self.source,
            "score": self.score,
            "text": self.text,
            "chunk_index": self.chunk_index,
        }

    @classmethod
    def from_store_result(
        cls, doc: StoreDocument, score: float, index: int
    ) -> SearchHit:
        """Create SearchHit from a (document, score) store result."""
        metadata = doc.metadata or {}
        source = (
            metadata.get("source")
            or metadata.get("filename")
            or metadata.get("doc_id")
            or "unknown"
        )
        chunk_index = metadata.get("chunk_index")

        return cls(
            id=str(metadata.get("chunk_id") or f"h{index + 1}"),
            source=str(source),
            score=float(score),
            text=doc.page_content,
            chunk_index=int(chunk_index) if isinstance(chunk_index, (int, float)) else None,
        )
