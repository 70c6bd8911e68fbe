from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace

from lexindex.core.config import settings
from .models import Chunk, RawDocument
from .utils import size_in_bytes

logger = logging.getLogger(__name__)

PAGE_BREAK = "\f"
DEFAULT_BYTE_CEILING = 30000

# form feed, or the separator line pdf2json-style extractors put between pages
_PAGE_BREAK_RE = re.compile(r"\f|-{4,}Page \(\d+\) Break-{4,}")

# a boundary cut is taken only past this share of the window
_PAGE_BREAK_MIN_RATIO = 0.5
_PARAGRAPH_MIN_RATIO = 0.7
_SENTENCE_MIN_RATIO = 0.8

SHRINK_FLOOR_CHARS = 1000
SHRINK_STEP_RATIO = 0.1


@dataclass(frozen=True)
class ChunkProfile:
    """One chunking granularity plus the insert pacing that goes with it."""

    name: str
    chunk_chars: int
    overlap_chars: int
    byte_ceiling: int
    success_delay_s: float = 0.0
    failure_delay_s: float = 0.0
    recovery_chars: int = None
    micro: bool = False

    def __post_init__(self):
        _validate_window(self.chunk_chars, self.overlap_chars)


def chunk_profile_for(kind: str, **overrides) -> ChunkProfile:
    profiles = {
        "document": ChunkProfile(
            name="document",
            chunk_chars=int(settings.chunk_chars),
            overlap_chars=int(settings.chunk_overlap_chars),
            byte_ceiling=int(settings.chunk_byte_ceiling),
            success_delay_s=settings.pacing_delay_ms / 1000.0,
            failure_delay_s=settings.failure_delay_ms / 1000.0,
            recovery_chars=int(settings.recovery_chunk_chars),
        ),
        "micro": ChunkProfile(
            name="micro",
            chunk_chars=int(settings.micro_chunk_chars),
            overlap_chars=int(settings.micro_chunk_overlap_chars),
            byte_ceiling=int(settings.micro_chunk_byte_ceiling),
            success_delay_s=settings.micro_pacing_delay_ms / 1000.0,
            failure_delay_s=settings.micro_pacing_delay_ms / 1000.0,
            micro=True,
        ),
        "knowledge": ChunkProfile(
            name="knowledge",
            chunk_chars=int(settings.knowledge_chunk_chars),
            overlap_chars=int(settings.knowledge_chunk_overlap_chars),
            byte_ceiling=int(settings.chunk_byte_ceiling),
        ),
    }
    prof = profiles.get(kind)
    if prof is None:
        raise ValueError(f"Unknown chunk profile: {kind}")
    if overrides:
        prof = replace(prof, **overrides)
    return prof


def _validate_window(max_chunk_chars: int, overlap_chars: int) -> None:
    if max_chunk_chars <= 0:
        raise ValueError("max_chunk_chars must be > 0")
    if overlap_chars < 0:
        raise ValueError("overlap_chars must be >= 0")
    if overlap_chars >= max_chunk_chars:
        raise ValueError("overlap_chars must be smaller than max_chunk_chars")


def _cut_point(text: str, start: int, end: int) -> int:
    """
    Pick where the window [start, end) should really end, preferring a page
    break, then a paragraph break, then a sentence end.
    """
    window = text[start:end]
    size = len(window)

    page_break = None
    for m in _PAGE_BREAK_RE.finditer(window):
        page_break = m
    if page_break is not None and page_break.start() > size * _PAGE_BREAK_MIN_RATIO:
        return start + page_break.end()

    paragraph = window.rfind("\n\n")
    if paragraph > size * _PARAGRAPH_MIN_RATIO:
        return start + paragraph

    sentence = window.rfind(". ")
    if sentence > size * _SENTENCE_MIN_RATIO:
        return start + sentence + 1

    return end


def chunk_spans(
    text: str, max_chunk_chars: int, overlap_chars: int
) -> list[tuple[int, int]]:
    """
    Character windows the splitter walks, in document order.
    Window N+1 starts at end_N minus the overlap, which is clamped to half
    of window N so the cursor always moves forward.
    """
    _validate_window(max_chunk_chars, overlap_chars)
    spans: list[tuple[int, int]] = []
    n = len(text)
    start = 0
    while start < n:
        end = min(start + max_chunk_chars, n)
        if end < n:
            end = _cut_point(text, start, end)
        spans.append((start, end))
        if end >= n:
            break

        overlap = min(overlap_chars, (end - start) // 2)
        next_start = end - overlap
        if next_start <= start:
            next_start = end
        start = next_start
    return spans


def shrink_chunk(chunk: str, byte_ceiling: int) -> str:
    """
    Trim the tail of an oversized chunk, 10% at a time, until it fits the
    byte ceiling or reaches the 1000-character floor.
    """
    while size_in_bytes(chunk) > byte_ceiling and len(chunk) > SHRINK_FLOOR_CHARS:
        keep = max(SHRINK_FLOOR_CHARS, int(len(chunk) * (1 - SHRINK_STEP_RATIO)))
        chunk = chunk[:keep].strip()
    return chunk


def split_text(
    text: str,
    max_chunk_chars: int,
    overlap_chars: int,
    byte_ceiling: int = DEFAULT_BYTE_CEILING,
) -> list[str]:
    """
    Split text into trimmed pieces that each fit byte_ceiling.

    Small text comes back as a single piece. Pieces that are empty, or that
    stay over the ceiling after shrinking, are dropped. Always returns at
    least one element.
    """
    _validate_window(max_chunk_chars, overlap_chars)
    if size_in_bytes(text) <= byte_ceiling and len(text) <= max_chunk_chars:
        return [text.strip()]

    pieces: list[str] = []
    for start, end in chunk_spans(text, max_chunk_chars, overlap_chars):
        piece = text[start:end].strip()
        if not piece:
            continue

        if size_in_bytes(piece) > byte_ceiling:
            before = size_in_bytes(piece)
            piece = shrink_chunk(piece, byte_ceiling)
            logger.info(
                "Shrunk chunk at chars %d-%d from %d to %d bytes",
                start,
                end,
                before,
                size_in_bytes(piece),
            )

        if size_in_bytes(piece) > byte_ceiling:
            logger.warning(
                "Size violation: dropping chunk at chars %d-%d (%d bytes > %d)",
                start,
                end,
                size_in_bytes(piece),
                byte_ceiling,
            )
            continue
        pieces.append(piece)

    return pieces or [""]


def build_chunks(
    document: RawDocument,
    pieces: list[str],
    *,
    chunked: bool = True,
    micro: bool = False,
) -> list[Chunk]:
    pieces = [p for p in pieces if p]
    total = len(pieces)
    prefix = "m" if micro else "c"
    return [
        Chunk(
            doc_id=document.doc_id,
            chunk_id=f"{document.doc_id}-{prefix}{index:04d}",
            text=piece,
            chunk_index=index,
            total_chunks=total,
            source=document.source,
            original_size=document.size_bytes,
            uploaded_at=document.uploaded_at,
            doc_type=document.doc_type,
            chunked=chunked,
            micro_chunk=micro,
        )
        for index, piece in enumerate(pieces)
    ]


def chunk_document(document: RawDocument, profile: ChunkProfile) -> list[Chunk]:
    pieces = split_text(
        document.text,
        profile.chunk_chars,
        profile.overlap_chars,
        byte_ceiling=profile.byte_ceiling,
    )
    chunks = build_chunks(document, pieces, micro=profile.micro)
    logger.info(
        "Split doc_id=%s into %d %s chunks (chunk_chars=%d overlap=%d ceiling=%d)",
        document.doc_id,
        len(chunks),
        profile.name,
        profile.chunk_chars,
        profile.overlap_chars,
        profile.byte_ceiling,
    )
    return chunks
