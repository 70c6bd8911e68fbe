"""Follow-up question retrieval over an ingested document."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from lexindex.storage.vector_store import VectorStore
from .evidence import SearchHit

logger = logging.getLogger(__name__)

CONTEXTUAL_WORDS = ("that", "this", "it", "above", "previous", "earlier", "before")
_CONTEXTUAL_RE = re.compile(
    r"\b(?:" + "|".join(CONTEXTUAL_WORDS) + r")\b", re.IGNORECASE
)

ANSWER_PREVIEW_CHARS = 150


def _message_text(message: dict[str, Any]) -> str:
    parts = message.get("parts")
    if parts:
        first = parts[0] or {}
        return str(first.get("text") or "")
    return str(message.get("content") or "")


def extract_conversation_context(
    history: Optional[list[dict[str, Any]]], max_messages: int = 4
) -> str:
    """
    Summarise the tail of a chat history as "Previous question/answer" lines.
    Answers are cut to their first 150 characters.
    """
    if not history:
        return ""

    lines: list[str] = []
    for msg in history[-max_messages:]:
        content = _message_text(msg).strip()
        if not content:
            continue
        if msg.get("role") == "user":
            lines.append(f"Previous question: {content}")
        else:
            lines.append(
                f"Previous answer: {content[:ANSWER_PREVIEW_CHARS]}..."
            )
    return "\n".join(lines)


def enhance_query(question: str, conversation_context: str) -> str:
    """Prefix the conversation when the question points back at it."""
    if conversation_context and _CONTEXTUAL_RE.search(question or ""):
        return f"{conversation_context}\n\nCurrent question: {question}"
    return question


async def search_document(
    store: VectorStore,
    question: str,
    history: Optional[list[dict[str, Any]]] = None,
    k: int = 4,
) -> list[SearchHit]:
    context = extract_conversation_context(history)
    query = enhance_query(question, context)
    if query is not question:
        logger.debug("Expanded follow-up question with conversation context")
    results = await store.similarity_search(query, k)
    return [
        SearchHit.from_store_result(doc, score, i)
        for i, (doc, score) in enumerate(results)
    ]


def format_context(hits: list[SearchHit]) -> str:
    return "\n\n".join(
        f"[Context {i + 1}]: {hit.text}" for i, hit in enumerate(hits)
    )
