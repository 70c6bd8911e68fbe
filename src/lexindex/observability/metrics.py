from __future__ import annotations

from prometheus_client import Counter, Histogram


INGESTION_REQUESTS = Counter(
    "ingestion_requests_total",
    "Document ingestion calls",
    ["path", "outcome"],
)
INGESTION_CHUNKS = Counter(
    "ingestion_chunks_total",
    "Chunks handled during ingestion",
    ["path", "status"],
)
INGESTION_DURATION = Histogram(
    "ingestion_duration_seconds",
    "Document ingestion duration in seconds",
    ["path"],
)

EMBEDDING_REQUESTS = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["model", "status"],
)
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["model"],
)

VECTOR_DB_REQUESTS = Counter(
    "vector_db_requests_total",
    "Vector database requests",
    ["operation", "status"],
)
VECTOR_DB_REQUEST_DURATION = Histogram(
    "vector_db_request_duration_seconds",
    "Vector database request duration in seconds",
    ["operation"],
)
VECTOR_DB_RESULTS = Histogram(
    "vector_db_query_results",
    "Vector database results per query",
    ["operation"],
)
