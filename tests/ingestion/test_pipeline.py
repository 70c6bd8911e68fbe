"""
Ingestion coordinator tests against in-memory stores with scripted failures.
"""

import asyncio

import pytest

from lexindex.core.errors import (
    ChunkTooLargeError,
    IngestionFailedError,
    InvalidInputError,
    PayloadTooLargeError,
)
from lexindex.ingestion import pipeline
from lexindex.ingestion.chunking import build_chunks, chunk_profile_for
from lexindex.ingestion.models import RawDocument
from lexindex.ingestion.pipeline import ingest_document
from lexindex.ingestion.utils import size_in_bytes


def _run(coro):
    return asyncio.run(coro)


@pytest.mark.parametrize("bad", [None, "", "   \n\t", 42, b"bytes"])
def test_invalid_input_rejected(memory_store, bad):
    with pytest.raises(InvalidInputError):
        _run(ingest_document(memory_store, bad))
    assert len(memory_store) == 0


def test_small_document_inserted_whole(memory_store, fast_profile):
    text = "This Agreement is made between the Landlord and the Tenant. " * 80
    assert size_in_bytes(text) < 15000

    result = _run(
        ingest_document(
            memory_store, text, {"source": "lease.txt"}, profile=fast_profile
        )
    )

    assert result.success is True
    assert result.chunks_processed == 1
    assert result.total_chunks == 1
    assert result.errors == 0
    assert len(memory_store) == 1
    stored = memory_store.documents[0]
    assert stored.page_content == text.strip()
    assert stored.metadata["chunked"] is False
    assert stored.metadata["source"] == "lease.txt"


def test_small_document_over_ceiling_fails(memory_store, fast_profile):
    text = "x" * 40000
    with pytest.raises(ChunkTooLargeError):
        _run(
            ingest_document(
                memory_store,
                text,
                profile=fast_profile,
                small_doc_threshold_bytes=100000,
            )
        )
    assert len(memory_store) == 0


def test_large_document_is_chunked_in_order(memory_store, fast_profile):
    text = "x" * 40000

    result = _run(ingest_document(memory_store, text, profile=fast_profile))

    assert result.success is True
    assert result.chunks_processed == 3
    assert result.total_chunks == 3
    assert result.errors == 0
    assert result.original_size_kb == 40.0
    indices = [d.metadata["chunk_index"] for d in memory_store.documents]
    assert indices == [0, 1, 2]
    assert all(d.metadata["total_chunks"] == 3 for d in memory_store.documents)
    assert all(len(d.page_content) <= 15000 for d in memory_store.documents)


def test_partial_failures_are_tolerated(scripted_store):
    store = scripted_store(
        fail_when=lambda n, doc: "Service unavailable" if n % 3 == 0 else None
    )
    profile = chunk_profile_for(
        "document",
        chunk_chars=1000,
        overlap_chars=0,
        success_delay_s=0.0,
        failure_delay_s=0.0,
    )
    text = "abcdefghij" * 1000

    result = _run(
        ingest_document(store, text, profile=profile, small_doc_threshold_bytes=0)
    )

    assert result.total_chunks == 10
    assert result.chunks_processed == 7
    assert result.errors == 3
    assert result.success is True
    assert len(store) == 7


def test_total_failure_raises_with_result(scripted_store, fast_profile):
    store = scripted_store(fail_when=lambda n, doc: "connection reset")

    with pytest.raises(IngestionFailedError) as excinfo:
        _run(ingest_document(store, "y" * 40000, profile=fast_profile))

    result = excinfo.value.result
    assert result.success is False
    assert result.chunks_processed == 0
    assert result.errors == result.total_chunks == 3


def test_single_insert_failure_is_fatal(scripted_store, fast_profile):
    store = scripted_store(fail_when=lambda n, doc: "invalid api key")

    with pytest.raises(IngestionFailedError) as excinfo:
        _run(ingest_document(store, "short contract text", profile=fast_profile))

    assert excinfo.value.result.chunks_processed == 0
    assert store.insert_calls == 1


def test_oversized_chunks_recovered_by_truncation(scripted_store, fast_profile):
    store = scripted_store(max_payload_bytes=12000)

    result = _run(ingest_document(store, "z" * 40000, profile=fast_profile))

    assert result.chunks_processed == 3
    assert result.errors == 0
    assert result.micro_chunked is False
    # the 10400-char tail chunk fits the store as is
    reduced = [d.metadata.get("reduced", False) for d in store.documents]
    assert reduced == [True, True, False]
    assert [len(d.page_content) for d in store.documents] == [10000, 10000, 10400]


def test_payload_rejection_falls_back_to_micro_chunks(
    scripted_store, fast_profile, fast_micro_profile
):
    store = scripted_store(max_payload_bytes=9000)

    result = _run(
        ingest_document(
            store,
            "w" * 40000,
            profile=fast_profile,
            micro_profile=fast_micro_profile,
        )
    )

    assert result.micro_chunked is True
    assert result.total_chunks == 6
    assert result.chunks_processed == 6
    assert result.errors == 0
    assert len(store) == 6
    assert all(d.metadata["micro_chunk"] for d in store.documents)
    assert all(size_in_bytes(d.page_content) <= 25000 for d in store.documents)


def test_single_insert_payload_rejection_falls_back_to_micro(
    scripted_store, fast_profile, fast_micro_profile
):
    store = scripted_store(
        fail_when=lambda n, doc: (
            "413 Request Entity Too Large" if len(doc.page_content) > 9000 else None
        )
    )

    result = _run(
        ingest_document(
            store,
            "v" * 12000,
            profile=fast_profile,
            micro_profile=fast_micro_profile,
        )
    )

    assert result.micro_chunked is True
    assert result.chunks_processed == 2
    assert [d.metadata["chunk_index"] for d in store.documents] == [0, 1]


def test_pacing_delays_between_inserts(monkeypatch, scripted_store):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(pipeline.asyncio, "sleep", fake_sleep)
    store = scripted_store(
        fail_when=lambda n, doc: "upstream timeout" if n == 2 else None
    )
    profile = chunk_profile_for(
        "document", success_delay_s=0.3, failure_delay_s=0.5
    )

    result = _run(ingest_document(store, "u" * 40000, profile=profile))

    assert result.chunks_processed == 2
    assert result.errors == 1
    assert delays == [0.3, 0.5]


def test_recovery_skipped_when_truncated_chunk_still_too_big(scripted_store):
    store = scripted_store(fail_when=lambda n, doc: "Payload too large")
    profile = chunk_profile_for(
        "document", byte_ceiling=4000, recovery_chars=5000
    )
    document = RawDocument.from_text("x" * 6000, {"doc_id": "lease"})
    chunk = build_chunks(document, [document.text])[0]

    with pytest.raises(PayloadTooLargeError):
        _run(pipeline._insert_with_recovery(store, chunk, profile))

    assert store.insert_calls == 1
    assert len(store) == 0


def test_chunks_over_ceiling_are_skipped_and_counted(scripted_store):
    store = scripted_store()
    profile = chunk_profile_for(
        "document", byte_ceiling=1000, success_delay_s=0.0, failure_delay_s=0.0
    )
    document = RawDocument.from_text("placeholder", {"doc_id": "nda"})
    chunks = build_chunks(document, ["a" * 100, "b" * 5000, "c" * 100])

    processed, errors = _run(
        pipeline._insert_chunks(store, chunks, profile, allow_fallback=True)
    )

    assert (processed, errors) == (2, 1)
    assert store.insert_calls == 2
    assert [d.metadata["chunk_id"] for d in store.documents] == ["nda-c0000", "nda-c0002"]


def test_micro_path_paces_after_failures_too(monkeypatch, scripted_store):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(pipeline.asyncio, "sleep", fake_sleep)
    store = scripted_store(
        fail_when=lambda n, doc: (
            "upstream timeout" if doc.metadata["chunk_id"].endswith("m0001") else None
        ),
        max_payload_bytes=9000,
    )
    profile = chunk_profile_for("document", success_delay_s=0.3, failure_delay_s=0.5)

    result = _run(
        ingest_document(
            store, "w" * 40000, profile=profile, micro_profile=chunk_profile_for("micro")
        )
    )

    assert result.micro_chunked is True
    assert result.total_chunks == 6
    assert result.chunks_processed == 5
    assert result.errors == 1
    assert delays == [0.2] * 5
