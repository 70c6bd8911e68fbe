from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any

from lexindex.core.config import settings
from lexindex.core.errors import (
    ChunkTooLargeError,
    IngestionFailedError,
    InvalidInputError,
    is_payload_error,
)
from lexindex.observability.metrics import (
    INGESTION_CHUNKS,
    INGESTION_DURATION,
    INGESTION_REQUESTS,
)
from lexindex.storage.vector_store import StoreDocument, VectorStore
from .chunking import ChunkProfile, build_chunks, chunk_document, chunk_profile_for
from .models import Chunk, IngestionResult, RawDocument
from .utils import size_in_bytes, size_in_kb

logger = logging.getLogger(__name__)


async def _insert_chunk(store: VectorStore, chunk: Chunk) -> None:
    await store.add_documents(
        [StoreDocument(page_content=chunk.text, metadata=chunk.to_metadata())]
    )


async def _insert_with_recovery(
    store: VectorStore, chunk: Chunk, profile: ChunkProfile
) -> str:
    """
    Insert one chunk. A payload-size rejection gets one more try with the
    chunk cut down to profile.recovery_chars. Returns "inserted" or
    "recovered"; raises the original error when recovery is not possible.
    """
    try:
        await _insert_chunk(store, chunk)
        return "inserted"
    except Exception as exc:
        if not is_payload_error(exc) or not profile.recovery_chars:
            raise
        reduced_text = chunk.text[: profile.recovery_chars].strip()
        if not reduced_text or size_in_bytes(reduced_text) > profile.byte_ceiling:
            raise
        logger.info(
            "Chunk %d/%d rejected for size; retrying with %d chars",
            chunk.chunk_index + 1,
            chunk.total_chunks,
            len(reduced_text),
        )
        await _insert_chunk(store, replace(chunk, text=reduced_text, reduced=True))
        return "recovered"


async def _insert_chunks(
    store: VectorStore,
    chunks: list[Chunk],
    profile: ChunkProfile,
    *,
    allow_fallback: bool,
) -> tuple[int, int]:
    """
    Insert chunks strictly one after another, pacing between inserts.
    Per-chunk failures are counted and never stop the loop, except a
    payload rejection of the first attempted chunk when allow_fallback is
    set: that is re-raised so the caller can switch to micro-chunks.
    """
    processed = 0
    errors = 0
    attempted = 0
    total = len(chunks)

    for i, chunk in enumerate(chunks):
        is_last = i == total - 1
        if chunk.chunk_size_bytes > profile.byte_ceiling:
            errors += 1
            INGESTION_CHUNKS.labels(profile.name, "skipped").inc()
            logger.warning(
                "Skipping chunk %d/%d: %d bytes exceeds ceiling %d",
                i + 1,
                total,
                chunk.chunk_size_bytes,
                profile.byte_ceiling,
            )
            continue

        attempted += 1
        try:
            status = await _insert_with_recovery(store, chunk, profile)
        except Exception as exc:
            errors += 1
            INGESTION_CHUNKS.labels(profile.name, "failed").inc()
            logger.warning(
                "Chunk %d/%d failed (%s): %s",
                i + 1,
                total,
                type(exc).__name__,
                exc,
            )
            if allow_fallback and attempted == 1 and is_payload_error(exc):
                raise
            if not is_last:
                await asyncio.sleep(profile.failure_delay_s)
            continue

        processed += 1
        INGESTION_CHUNKS.labels(profile.name, status).inc()
        logger.debug("Chunk %d/%d %s", i + 1, total, status)
        if not is_last:
            await asyncio.sleep(profile.success_delay_s)

    return processed, errors


async def _single_insert(
    store: VectorStore, document: RawDocument, profile: ChunkProfile
) -> IngestionResult:
    size = document.size_bytes
    if size > profile.byte_ceiling:
        raise ChunkTooLargeError(
            f"Document of {size} bytes exceeds the hard ceiling of "
            f"{profile.byte_ceiling} bytes",
            context={"doc_id": document.doc_id, "bytes": size},
        )

    chunk = build_chunks(document, [document.text.strip()], chunked=False)[0]
    try:
        await _insert_chunk(store, chunk)
    except Exception as exc:
        INGESTION_CHUNKS.labels("single", "failed").inc()
        if is_payload_error(exc):
            raise
        raise IngestionFailedError(
            f"Could not insert document {document.doc_id}",
            result=IngestionResult.for_document(
                document, processed=0, total=1, errors=1
            ),
            context={"doc_id": document.doc_id, "error": str(exc)},
            original_error=exc,
        ) from exc

    INGESTION_CHUNKS.labels("single", "inserted").inc()
    return IngestionResult.for_document(document, processed=1, total=1, errors=0)


async def _chunked_insert(
    store: VectorStore,
    document: RawDocument,
    profile: ChunkProfile,
    *,
    allow_fallback: bool = True,
) -> IngestionResult:
    chunks = chunk_document(document, profile)
    processed, errors = await _insert_chunks(
        store, chunks, profile, allow_fallback=allow_fallback
    )
    return IngestionResult.for_document(
        document,
        processed=processed,
        total=len(chunks),
        errors=errors,
        micro_chunked=profile.micro,
    )


async def ingest_document(
    store: VectorStore,
    text: str,
    metadata: dict[str, Any] = None,
    *,
    profile: ChunkProfile = None,
    micro_profile: ChunkProfile = None,
    small_doc_threshold_bytes: int = None,
) -> IngestionResult:
    """
    Load extracted document text into a vector store.

    Small documents go in as one piece; larger ones are split and inserted
    chunk by chunk. If the store rejects the first insert for its size the
    document is re-split into micro-chunks and loaded again.

    Returns:
      IngestionResult; partial success is a normal return.

    Raises:
      InvalidInputError for missing/empty text, ChunkTooLargeError for a
      small document over the ceiling, IngestionFailedError when nothing
      could be inserted.
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidInputError(
            "Document text must be a non-empty string",
            context={"type": type(text).__name__},
        )

    profile = profile or chunk_profile_for("document")
    micro_profile = micro_profile or chunk_profile_for("micro")
    if small_doc_threshold_bytes is None:
        small_doc_threshold_bytes = int(settings.small_doc_threshold_bytes)

    document = RawDocument.from_text(text, metadata)
    size = document.size_bytes
    path = "single" if size < small_doc_threshold_bytes else "chunked"

    t0 = time.perf_counter()
    logger.info(
        "Ingesting doc_id=%s source=%s size=%.2fKB path=%s",
        document.doc_id,
        document.source,
        size_in_kb(size),
        path,
    )

    try:
        if path == "single":
            result = await _single_insert(store, document, profile)
        else:
            result = await _chunked_insert(store, document, profile)
    except (IngestionFailedError, ChunkTooLargeError):
        INGESTION_REQUESTS.labels(path, "failed").inc()
        raise
    except Exception as exc:
        if not is_payload_error(exc):
            INGESTION_REQUESTS.labels(path, "failed").inc()
            raise
        logger.warning(
            "Store rejected %s insert for size (%s); falling back to micro-chunks",
            path,
            exc,
        )
        path = "micro"
        result = await _chunked_insert(
            store, document, micro_profile, allow_fallback=False
        )

    elapsed = time.perf_counter() - t0
    INGESTION_DURATION.labels(path).observe(elapsed)

    if result.chunks_processed == 0:
        INGESTION_REQUESTS.labels(path, "failed").inc()
        logger.error(
            "Ingestion failed doc_id=%s: 0/%d chunks inserted (%s path)",
            document.doc_id,
            result.total_chunks,
            path,
        )
        raise IngestionFailedError(
            f"No chunks of document {document.doc_id} could be inserted",
            result=result,
            context=result.to_dict(),
        )

    outcome = "success" if result.errors == 0 else "partial"
    INGESTION_REQUESTS.labels(path, outcome).inc()
    logger.info(
        "Ingested doc_id=%s chunks=%d/%d errors=%d path=%s elapsed=%.2fs",
        document.doc_id,
        result.chunks_processed,
        result.total_chunks,
        result.errors,
        path,
        elapsed,
    )
    return result
