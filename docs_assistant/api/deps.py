"""
Shared service instances for the API layer.

Routers receive these through FastAPI `Depends`, so tests can swap them
with `app.dependency_overrides`.
"""

import logging
from functools import lru_cache
from typing import Callable, List, Optional

from openai import OpenAI

from docs_assistant.config import (
    EMBED_MODEL,
    EMBED_PROVIDER,
    RATE_LIMIT_REQUESTS,
    RATE_LIMIT_WINDOW_MS,
    RETRIEVAL_LIMIT,
    RETRIEVAL_MODE,
    SIMILARITY_THRESHOLD,
    STORE_BACKEND,
    STORE_MAX_RETRIES,
    STORE_RETRY_BACKOFF_FACTOR,
    STORE_RETRY_BASE_DELAY_MS,
    get_client_by_provider,
    get_groq,
    get_supabase,
)
from docs_assistant.utils.document_store import DocumentStore, InMemoryDocumentStore, SupabaseDocumentStore
from docs_assistant.utils.rag import Retriever, create_embedding
from docs_assistant.utils.rate_limit import RateGovernor
from docs_assistant.utils.store_gateway import StoreGateway

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_document_store() -> DocumentStore:
    """Create and cache the document store selected by STORE_BACKEND."""
    if STORE_BACKEND == "supabase":
        return SupabaseDocumentStore(get_supabase())
    elif STORE_BACKEND == "memory":
        logger.warning("[STORE] Using in-memory document store, data is not persisted")
        return InMemoryDocumentStore()
    else:
        raise ValueError(f"Unsupported store backend: {STORE_BACKEND}. Must be 'supabase' or 'memory'.")


@lru_cache(maxsize=1)
def get_store_gateway() -> StoreGateway:
    return StoreGateway(
        store_factory=get_document_store,
        max_retries=STORE_MAX_RETRIES,
        base_delay_ms=STORE_RETRY_BASE_DELAY_MS,
        backoff_factor=STORE_RETRY_BACKOFF_FACTOR,
    )


def get_embed_fn() -> Optional[Callable[[str], List[float]]]:
    """Query embedder for vector retrieval, or None in lexical mode."""
    if RETRIEVAL_MODE != "vector":
        return None

    def embed(text: str) -> List[float]:
        # Client is built on first use; a missing key fails the vector step only
        embed_client = get_client_by_provider(EMBED_PROVIDER)
        return create_embedding(text, embed_client, EMBED_MODEL).embedding

    return embed


@lru_cache(maxsize=1)
def get_retriever() -> Retriever:
    return Retriever(
        get_store_gateway(),
        mode=RETRIEVAL_MODE,
        embed_fn=get_embed_fn(),
        limit=RETRIEVAL_LIMIT,
        similarity_threshold=SIMILARITY_THRESHOLD,
    )


@lru_cache(maxsize=1)
def get_rate_governor() -> RateGovernor:
    return RateGovernor(limit=RATE_LIMIT_REQUESTS, window_ms=RATE_LIMIT_WINDOW_MS)


def get_chat_client() -> OpenAI:
    return get_groq()
