from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .utils import size_in_bytes, size_in_kb, stable_doc_id_from_text


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class RawDocument:
    text: str
    doc_id: str
    source: str = "uploaded_document"
    uploaded_at: str = field(default_factory=_utcnow_iso)
    doc_type: str = "legal_document"

    @classmethod
    def from_text(cls, text: str, metadata: dict[str, Any] = None) -> RawDocument:
        meta = metadata or {}
        uploaded_at = meta.get("uploaded_at") or meta.get("uploadedAt")
        if isinstance(uploaded_at, datetime):
            uploaded_at = uploaded_at.isoformat()
        return cls(
            text=text,
            doc_id=meta.get("doc_id") or stable_doc_id_from_text(text),
            source=meta.get("source") or "uploaded_document",
            uploaded_at=uploaded_at or _utcnow_iso(),
            doc_type=meta.get("type") or meta.get("doc_type") or "legal_document",
        )

    @property
    def size_bytes(self) -> int:
        return size_in_bytes(self.text)


@dataclass(frozen=True)
class Chunk:
    doc_id: str
    chunk_id: str
    text: str
    chunk_index: int
    total_chunks: int
    source: str
    original_size: int
    uploaded_at: str
    doc_type: str
    chunked: bool = True
    reduced: bool = False
    micro_chunk: bool = False

    @property
    def chunk_size_chars(self) -> int:
        return len(self.text)

    @property
    def chunk_size_bytes(self) -> int:
        return size_in_bytes(self.text)

    def to_metadata(self) -> dict[str, Any]:
        meta: dict[str, Any] = {
            "doc_id": self.doc_id,
            "chunk_id": self.chunk_id,
            "source": self.source,
            "uploaded_at": self.uploaded_at,
            "type": self.doc_type,
            "original_size": self.original_size,
            "chunked": self.chunked,
        }
        if self.chunked:
            meta.update(
                {
                    "chunk_index": self.chunk_index,
                    "total_chunks": self.total_chunks,
                    "chunk_size_chars": self.chunk_size_chars,
                    "chunk_size_bytes": self.chunk_size_bytes,
                }
            )
        if self.reduced:
            meta["reduced"] = True
        if self.micro_chunk:
            meta["micro_chunk"] = True
        return meta


@dataclass(frozen=True)
class IngestionResult:
    success: bool
    chunks_processed: int
    total_chunks: int
    errors: int
    original_size_kb: float
    doc_id: str = ""
    micro_chunked: bool = False

    @classmethod
    def for_document(
        cls,
        document: RawDocument,
        *,
        processed: int,
        total: int,
        errors: int,
        micro_chunked: bool = False,
    ) -> IngestionResult:
        return cls(
            success=processed > 0,
            chunks_processed=processed,
            total_chunks=total,
            errors=errors,
            original_size_kb=size_in_kb(document.size_bytes),
            doc_id=document.doc_id,
            micro_chunked=micro_chunked,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "chunks_processed": self.chunks_processed,
            "total_chunks": self.total_chunks,
            "errors": self.errors,
            "original_size_kb": self.original_size_kb,
            "doc_id": self.doc_id,
            "micro_chunked": self.micro_chunked,
        }
