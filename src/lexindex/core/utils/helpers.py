from __future__ import annotations

import logging
import time
from typing import Any

from openai import OpenAI

from lexindex.core.config import settings
from lexindex.observability.metrics import (
    EMBEDDING_REQUESTS,
    EMBEDDING_REQUEST_DURATION,
)


logger = logging.getLogger(__name__)


def make_openai_client() -> OpenAI:
    """
    Supports both OpenAI and OpenAI-compatible gateways.
    - OPENAI_API_KEY is required
    - OPENAI_BASE_URL optional
    """
    kwargs: dict[str, Any] = {"api_key": settings.openai_api_key}
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url
    return OpenAI(**kwargs)


# -----------------------------
# Embeddings
# -----------------------------


def get_embedding(client: OpenAI, text: str, model: str) -> list[float]:
    text = (text or "").replace("\n", " ")
    start_s = time.perf_counter()
    try:
        resp = client.embeddings.create(
            model=model,
            input=text,
            timeout=settings.request_timeout_s,
        )
    except Exception:
        EMBEDDING_REQUESTS.labels(model, "error").inc()
        EMBEDDING_REQUEST_DURATION.labels(model).observe(
            max(time.perf_counter() - start_s, 0.0)
        )
        raise
    EMBEDDING_REQUESTS.labels(model, "success").inc()
    EMBEDDING_REQUEST_DURATION.labels(model).observe(
        max(time.perf_counter() - start_s, 0.0)
    )
    return resp.data[0].embedding
