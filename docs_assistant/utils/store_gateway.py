"""
Store Gateway

Wraps every document-store query in a retry policy. Transient failures
(connection/transport timeouts) are retried with exponential backoff; any
other failure, and the last transient one, propagates to the caller.
"""

import logging
import time
from typing import Callable, List, Optional, Sequence, TypeVar

import httpx

from docs_assistant.config import EMBED_DIMENSIONS
from docs_assistant.models import DocumentChunk, DocumentMetadata, DocumentSection
from docs_assistant.models.embeddings import fit_to_dimension, placeholder_embedding
from docs_assistant.utils.document_store import DocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_MESSAGE_SIGNATURES = ("timeout", "timed out", "fetch failed")


def is_transient_error(error: BaseException) -> bool:
    """
    Check whether an error looks like a connection/transport timeout.

    Walks the __cause__ / __context__ chain, since client libraries often
    wrap the underlying transport error.
    """
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, (httpx.TimeoutException, TimeoutError)):
            return True
        message = str(current).lower()
        if any(signature in message for signature in TRANSIENT_MESSAGE_SIGNATURES):
            return True
        current = current.__cause__ or current.__context__
    return False


class StoreGateway:
    """
    Retry-wrapped access to a DocumentStore.

    Delay before retry n (0-based) is base_delay_ms * backoff_factor ** n.

    Pass either a ready `store` or a `store_factory`. The factory runs on the
    first query, so a misconfigured backend fails that query instead of the
    caller that builds the gateway.
    """

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        max_retries: int = 3,
        base_delay_ms: int = 5000,
        backoff_factor: float = 1.5,
        embed_dimensions: int = EMBED_DIMENSIONS,
        sleep: Callable[[float], None] = time.sleep,
        store_factory: Optional[Callable[[], DocumentStore]] = None,
    ):
        if store is None and store_factory is None:
            raise ValueError("StoreGateway needs a store or a store_factory")

        self._store = store
        self._store_factory = store_factory
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.backoff_factor = backoff_factor
        self.embed_dimensions = embed_dimensions
        self._sleep = sleep

    @property
    def store(self) -> DocumentStore:
        if self._store is None:
            self._store = self._store_factory()
        return self._store

    @store.setter
    def store(self, store: DocumentStore) -> None:
        self._store = store

    def backoff_delay_ms(self, attempt: int) -> float:
        return self.base_delay_ms * (self.backoff_factor**attempt)

    def _retry(self, operation: str, fn: Callable[[], T]) -> T:
        for attempt in range(self.max_retries + 1):
            try:
                return fn()
            except Exception as e:
                if not is_transient_error(e) or attempt == self.max_retries:
                    raise

                delay_ms = self.backoff_delay_ms(attempt)
                logger.warning(
                    f"[STORE] {operation} timed out, retrying in {delay_ms:.0f}ms "
                    f"(attempt {attempt + 1}/{self.max_retries}): {e}"
                )
                self._sleep(delay_ms / 1000)

        raise RuntimeError(f"{operation}: max retries exceeded")

    # ===============================
    # QUERIES
    # ===============================
    def vector_search(self, embedding: Sequence[float], threshold: float, limit: int) -> List[DocumentChunk]:
        """Similarity search. The query is zero-padded to the stored dimension like inserted vectors."""
        query = fit_to_dimension(embedding, self.embed_dimensions)
        return self._retry("vector_search", lambda: self.store.vector_search(query, threshold, limit))

    def keyword_search(self, tokens: Sequence[str], limit: int) -> List[DocumentChunk]:
        return self._retry("keyword_search", lambda: self.store.keyword_search(tokens, limit))

    def list_all(self, limit: int) -> List[DocumentChunk]:
        return self._retry("list_all", lambda: self.store.list_all(limit))

    def list_distinct_metadata(self) -> List[DocumentMetadata]:
        return self._retry("list_distinct_metadata", lambda: self.store.list_distinct_metadata())

    def get_by_slug(self, slug: str) -> List[DocumentChunk]:
        return self._retry("get_by_slug", lambda: self.store.get_by_slug(slug))

    def count(self) -> int:
        return self._retry("count", lambda: self.store.count())

    # ===============================
    # INGESTION
    # ===============================
    def delete_by_prefix(self, slug_prefix: str) -> int:
        return self._retry("delete_by_prefix", lambda: self.store.delete_by_prefix(slug_prefix))

    def insert(self, section: DocumentSection, embedding: Optional[Sequence[float]] = None) -> DocumentChunk:
        """
        Insert a section, storing a placeholder vector when no embedding is given.

        Raises:
            ValueError: If the embedding is longer than the store dimension
        """
        if embedding is None:
            vector = placeholder_embedding(self.embed_dimensions)
        else:
            vector = fit_to_dimension(embedding, self.embed_dimensions)
        return self._retry("insert", lambda: self.store.insert(section, vector))
