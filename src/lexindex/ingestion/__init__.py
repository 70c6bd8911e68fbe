"""Document text extraction, chunking and store ingestion."""
