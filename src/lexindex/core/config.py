from __future__ import annotations

import os
from dataclasses import dataclass
from dotenv import load_dotenv


load_dotenv(override=False)

_BASE_DIR = os.path.dirname(__file__)
_PROJECT_ROOT = os.path.abspath(os.path.join(_BASE_DIR, "..", "..", ".."))


def _get_env(name: str, default: str = None) -> str:
    v = os.getenv(name, default)
    if v is None:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return v


@dataclass(frozen=True)
class Settings:
    # OpenAI (embeddings only)
    openai_api_key: str = _get_env("OPENAI_API_KEY", "")
    openai_base_url: str = _get_env("OPENAI_BASE_URL", "")
    embedding_model: str = _get_env("EMBEDDING_MODEL", "text-embedding-3-small")
    request_timeout_s: float = float(_get_env("REQUEST_TIMEOUT_S", "30"))
    embedding_max_attempts: int = int(_get_env("EMBEDDING_MAX_ATTEMPTS", "3"))
    embedding_backoff_s: float = float(_get_env("EMBEDDING_BACKOFF_S", "0.7"))

    # Pinecone
    pinecone_api_key: str = _get_env("PINECONE_API_KEY", "")
    pinecone_index: str = _get_env("PINECONE_INDEX", "lexindex-documents")
    namespace_documents: str = _get_env(
        "PINECONE_NAMESPACE_DOCUMENTS", "Documents"
    )
    namespace_knowledge: str = _get_env(
        "PINECONE_NAMESPACE_KNOWLEDGE", "KnowledgeBase"
    )

    # Document chunking (byte thresholds are tuned against the embedding
    # backend's payload limit)
    small_doc_threshold_bytes: int = int(
        _get_env("SMALL_DOC_THRESHOLD_BYTES", "15000")
    )
    chunk_chars: int = int(_get_env("CHUNK_CHARS", "15000"))
    chunk_overlap_chars: int = int(_get_env("CHUNK_OVERLAP_CHARS", "200"))
    chunk_byte_ceiling: int = int(_get_env("CHUNK_BYTE_CEILING", "30000"))
    recovery_chunk_chars: int = int(_get_env("RECOVERY_CHUNK_CHARS", "10000"))
    pacing_delay_ms: int = int(_get_env("PACING_DELAY_MS", "300"))
    failure_delay_ms: int = int(_get_env("FAILURE_DELAY_MS", "500"))

    # Micro-chunk fallback
    micro_chunk_chars: int = int(_get_env("MICRO_CHUNK_CHARS", "8000"))
    micro_chunk_overlap_chars: int = int(
        _get_env("MICRO_CHUNK_OVERLAP_CHARS", "50")
    )
    micro_chunk_byte_ceiling: int = int(
        _get_env("MICRO_CHUNK_BYTE_CEILING", "25000")
    )
    micro_pacing_delay_ms: int = int(_get_env("MICRO_PACING_DELAY_MS", "200"))

    # Knowledge base
    knowledge_base_path: str = _get_env(
        "KNOWLEDGE_BASE_PATH",
        os.path.join(_PROJECT_ROOT, "data", "knowledge_base.json"),
    )
    knowledge_chunk_chars: int = int(_get_env("KNOWLEDGE_CHUNK_CHARS", "1000"))
    knowledge_chunk_overlap_chars: int = int(
        _get_env("KNOWLEDGE_CHUNK_OVERLAP_CHARS", "200")
    )


settings = Settings()
