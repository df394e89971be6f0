"""
Document Store Backends

Query contract the retrieval core requires of the knowledge-base store, with
a Supabase implementation (document_chunks table + RPC functions defined in
rag/schema.sql) and a process-local implementation for local runs and tests.

Stores raise on failure; retrying is the StoreGateway's job.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Sequence

import numpy as np
from supabase import Client

from docs_assistant.config import RPCFunctions, Tables
from docs_assistant.models import DocumentChunk, DocumentMetadata, DocumentSection
from docs_assistant.models.embeddings import is_placeholder_embedding

logger = logging.getLogger(__name__)

CHUNK_COLUMNS = "id, title, content, slug, section, created_at"


class DocumentStore(ABC):
    """Query interface over the stored document chunks."""

    @abstractmethod
    def vector_search(self, embedding: Sequence[float], threshold: float, limit: int) -> List[DocumentChunk]:
        """Chunks with cosine similarity > threshold, most similar first."""

    @abstractmethod
    def keyword_search(self, tokens: Sequence[str], limit: int) -> List[DocumentChunk]:
        """Chunks whose content or title contains any token, by match count desc then id asc."""

    @abstractmethod
    def list_all(self, limit: int) -> List[DocumentChunk]:
        """First `limit` chunks by id."""

    @abstractmethod
    def list_distinct_metadata(self) -> List[DocumentMetadata]:
        """Distinct (title, slug, section) triples ordered by section, title."""

    @abstractmethod
    def get_by_slug(self, slug: str) -> List[DocumentChunk]:
        """All chunks with this exact slug, by id."""

    @abstractmethod
    def delete_by_prefix(self, slug_prefix: str) -> int:
        """Delete chunks whose slug starts with the prefix. Returns rows deleted."""

    @abstractmethod
    def insert(self, section: DocumentSection, embedding: Sequence[float]) -> DocumentChunk:
        """Insert one chunk and return it with its store-assigned id."""

    @abstractmethod
    def count(self) -> int:
        """Total number of stored chunks."""


# ===============================
# SUPABASE
# ===============================
class SupabaseDocumentStore(DocumentStore):
    """Supabase/Postgres (pgvector) store. Ranking runs inside the RPC functions."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def vector_search(self, embedding, threshold, limit):
        result = self.supabase.rpc(
            RPCFunctions.MATCH_DOCUMENT_CHUNKS,
            {"query_embedding": list(embedding), "match_threshold": threshold, "match_count": limit},
        ).execute()
        return [DocumentChunk(**row) for row in result.data]

    def keyword_search(self, tokens, limit):
        result = self.supabase.rpc(
            RPCFunctions.SEARCH_DOCUMENT_CHUNKS_BY_KEYWORDS,
            {"keywords": list(tokens), "match_count": limit},
        ).execute()
        return [DocumentChunk(**row) for row in result.data]

    def list_all(self, limit):
        result = self.supabase.table(Tables.DOCUMENT_CHUNKS).select(CHUNK_COLUMNS).order("id").limit(limit).execute()
        return [DocumentChunk(**row) for row in result.data]

    def list_distinct_metadata(self):
        result = self.supabase.rpc(RPCFunctions.LIST_DOCUMENT_METADATA, {}).execute()
        return [DocumentMetadata(**row) for row in result.data]

    def get_by_slug(self, slug):
        result = self.supabase.table(Tables.DOCUMENT_CHUNKS).select(CHUNK_COLUMNS).eq("slug", slug).order("id").execute()
        return [DocumentChunk(**row) for row in result.data]

    def delete_by_prefix(self, slug_prefix):
        result = self.supabase.table(Tables.DOCUMENT_CHUNKS).delete().like("slug", f"{slug_prefix}%").execute()
        return len(result.data or [])

    def insert(self, section, embedding):
        record = section.model_dump()
        record["embedding"] = list(embedding)
        result = self.supabase.table(Tables.DOCUMENT_CHUNKS).insert(record).execute()
        return DocumentChunk(**result.data[0])

    def count(self):
        result = self.supabase.table(Tables.DOCUMENT_CHUNKS).select("id", count="exact").limit(1).execute()
        return result.count or 0


# ===============================
# IN-MEMORY
# ===============================
class InMemoryDocumentStore(DocumentStore):
    """
    Process-local store with the same query semantics as the Supabase RPCs.

    Not durable; intended for local development and tests.
    """

    def __init__(self):
        self._chunks: Dict[int, DocumentChunk] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def _ordered(self) -> List[DocumentChunk]:
        with self._lock:
            return [self._chunks[chunk_id] for chunk_id in sorted(self._chunks)]

    @staticmethod
    def _public(chunk: DocumentChunk, **extra) -> DocumentChunk:
        return chunk.model_copy(update={"embedding": None, **extra})

    def vector_search(self, embedding, threshold, limit):
        query = np.asarray(embedding, dtype=float)
        query_norm = np.linalg.norm(query)
        if query_norm == 0:
            return []

        scored = []
        for chunk in self._ordered():
            # Placeholder vectors have no direction; cosine similarity is undefined for them
            if is_placeholder_embedding(chunk.embedding):
                continue
            vector = np.asarray(chunk.embedding, dtype=float)
            similarity = float(np.dot(query, vector) / (query_norm * np.linalg.norm(vector)))
            if similarity > threshold:
                scored.append((similarity, chunk))

        scored.sort(key=lambda item: (-item[0], item[1].id))
        return [self._public(chunk, similarity=similarity) for similarity, chunk in scored[:limit]]

    def keyword_search(self, tokens, limit):
        tokens = [token.lower() for token in tokens]
        if not tokens:
            return []

        scored = []
        for chunk in self._ordered():
            content = chunk.content.lower()
            title = chunk.title.lower()
            if not any(token in content or token in title for token in tokens):
                continue
            relevance = sum(1 for token in tokens if token in content)
            scored.append((relevance, chunk))

        scored.sort(key=lambda item: (-item[0], item[1].id))
        return [self._public(chunk, relevance=relevance) for relevance, chunk in scored[:limit]]

    def list_all(self, limit):
        return [self._public(chunk) for chunk in self._ordered()[:limit]]

    def list_distinct_metadata(self):
        seen = {}
        for chunk in self._ordered():
            key = (chunk.title, chunk.slug, chunk.section)
            seen.setdefault(key, DocumentMetadata(title=chunk.title, slug=chunk.slug, section=chunk.section))
        return sorted(seen.values(), key=lambda meta: (meta.section, meta.title, meta.slug))

    def get_by_slug(self, slug):
        return [self._public(chunk) for chunk in self._ordered() if chunk.slug == slug]

    def delete_by_prefix(self, slug_prefix):
        with self._lock:
            doomed = [chunk_id for chunk_id, chunk in self._chunks.items() if chunk.slug.startswith(slug_prefix)]
            for chunk_id in doomed:
                del self._chunks[chunk_id]
        return len(doomed)

    def insert(self, section, embedding):
        with self._lock:
            chunk = DocumentChunk(
                id=self._next_id,
                embedding=list(embedding),
                created_at=datetime.now(timezone.utc),
                **section.model_dump(),
            )
            self._chunks[chunk.id] = chunk
            self._next_id += 1
        logger.debug(f"[STORE] Inserted chunk {chunk.id} ({chunk.slug})")
        return self._public(chunk)

    def count(self):
        with self._lock:
            return len(self._chunks)
