from __future__ import annotations

import json
import logging
import os
from typing import Any

from lexindex.core.config import settings
from lexindex.ingestion.chunking import chunk_profile_for, split_text
from .vector_store import StoreDocument, VectorStore

logger = logging.getLogger(__name__)


def load_knowledge_entries(path: str) -> list[dict[str, Any]]:
    """
    Read the reference knowledge file: a JSON list of strings or of objects
    with a "text" (or "content") field plus optional "id"/"title"/"category".
    """
    if not path or not os.path.exists(path):
        logger.warning("Knowledge base file not found: %s", path)
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Failed to load knowledge base from %s: %s", path, exc)
        return []
    if not isinstance(data, list):
        logger.warning("Knowledge base at %s is not a JSON list", path)
        return []

    entries: list[dict[str, Any]] = []
    for i, item in enumerate(data):
        if isinstance(item, str):
            item = {"text": item}
        if not isinstance(item, dict):
            continue
        text = (item.get("text") or item.get("content") or "").strip()
        if not text:
            continue
        entries.append(
            {
                "id": str(item.get("id") or f"kb-{i:04d}"),
                "title": item.get("title") or "",
                "category": item.get("category") or "",
                "text": text,
            }
        )
    return entries


async def seed_knowledge_base(store: VectorStore, path: str | None = None) -> int:
    path = path or settings.knowledge_base_path
    entries = load_knowledge_entries(path)
    if not entries:
        logger.info("No knowledge base entries found at %s", path)
        return 0

    profile = chunk_profile_for("knowledge")
    documents: list[StoreDocument] = []
    for entry in entries:
        pieces = [
            p
            for p in split_text(
                entry["text"],
                profile.chunk_chars,
                profile.overlap_chars,
                byte_ceiling=profile.byte_ceiling,
            )
            if p
        ]
        for index, piece in enumerate(pieces):
            documents.append(
                StoreDocument(
                    page_content=piece,
                    metadata={
                        "chunk_id": f"{entry['id']}-{index:04d}",
                        "source": "knowledge_base",
                        "title": entry["title"],
                        "category": entry["category"],
                        "chunk_index": index,
                        "total_chunks": len(pieces),
                    },
                )
            )

    await store.add_documents(documents)
    logger.info(
        "Seeded knowledge base: %d entries, %d chunks", len(entries), len(documents)
    )
    return len(documents)


async def query_knowledge_base(
    store: VectorStore, query: str, k: int = 3
) -> list[tuple[StoreDocument, float]]:
    return await store.similarity_search(query, k)
