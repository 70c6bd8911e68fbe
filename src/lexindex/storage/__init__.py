from .embeddings import Embedder, OpenAIEmbedder
from .knowledge_base import (
    load_knowledge_entries,
    query_knowledge_base,
    seed_knowledge_base,
)
from .pinecone import PineconeVectorStore, init_index
from .vector_store import InMemoryVectorStore, StoreDocument, VectorStore

__all__ = [
    "Embedder",
    "OpenAIEmbedder",
    "VectorStore",
    "InMemoryVectorStore",
    "PineconeVectorStore",
    "StoreDocument",
    "init_index",
    "load_knowledge_entries",
    "seed_knowledge_base",
    "query_knowledge_base",
]
