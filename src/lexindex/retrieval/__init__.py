"""Retrieval over ingested documents."""

from .evidence import SearchHit
from .query import (
    enhance_query,
    extract_conversation_context,
    format_context,
    search_document,
)

__all__ = [
    "SearchHit",
    "enhance_query",
    "extract_conversation_context",
    "format_context",
    "search_document",
]
