from __future__ import annotations

import hashlib


def size_in_bytes(text: str) -> int:
    """UTF-8 encoded length of text; multi-byte characters count in full."""
    if not text:
        return 0
    return len(text.encode("utf-8", errors="surrogatepass"))


def size_in_kb(num_bytes: int) -> float:
    return round(num_bytes / 1000.0, 2)


def sha1_text(s: str) -> str:
    return hashlib.sha1(s.encode("utf-8", errors="surrogatepass")).hexdigest()


def stable_doc_id_from_text(text: str) -> str:
    return sha1_text(text)


def normalize_newlines(s: str) -> str:
    return s.replace("\r\n", "\n").replace("\r", "\n")
