"""Chunking and size-bounded vector-store ingestion for uploaded legal documents."""

__version__ = "0.1.0"
