"""Embedding collaborators used by the vector stores."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from openai import OpenAI

from lexindex.core.config import settings
from lexindex.core.errors import PayloadTooLargeError, is_payload_error
from lexindex.core.utils.async_utils import RetryPolicy, retry_async
from lexindex.core.utils.helpers import get_embedding, make_openai_client

logger = logging.getLogger(__name__)


class Embedder(ABC):
    """Turns text into a dense vector."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""


class OpenAIEmbedder(Embedder):
    """
    Embeddings through the OpenAI embeddings API.

    The sync client call runs in a worker thread. Transient failures are
    retried under the retry policy; payload-size failures are not, since
    sending the same text again cannot succeed.
    """

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.client = client or make_openai_client()
        self.model = model or settings.embedding_model
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.embedding_max_attempts,
            backoff_per_attempt_s=settings.embedding_backoff_s,
        )

    async def embed(self, text: str) -> list[float]:
        try:
            return await retry_async(
                self.retry_policy,
                asyncio.to_thread,
                get_embedding,
                self.client,
                text,
                self.model,
                retry_if=lambda exc: not is_payload_error(exc),
            )
        except Exception as exc:
            if is_payload_error(exc) and not isinstance(exc, PayloadTooLargeError):
                raise PayloadTooLargeError(
                    f"Embedding request rejected as too large: {exc}",
                    context={"model": self.model, "chars": len(text or "")},
                    original_error=exc,
                ) from exc
            raise
