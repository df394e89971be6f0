"""
Document Chunk Models

Models for the documentation chunks stored in the knowledge base and the
projections returned by retrieval.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DocumentSection(BaseModel):
    """
    A section parsed out of a source document, ready to be stored.

    Produced by the chunker; the store assigns id, embedding and timestamps.
    """

    title: str = Field(min_length=1, description="Human-readable label, e.g. '<document> - <header>'")
    content: str = Field(min_length=1, description="Trimmed text body of the section")
    slug: str = Field(min_length=1, description="Stable identifier derived from source filename + header")
    section: str = Field(min_length=1, description="Header text, or the 'introduction' / 'main' sentinel")


class DocumentChunk(BaseModel):
    """
    Document chunk as stored in the knowledge base.
    """

    # ========================================================================
    # Identity
    # ========================================================================
    id: int = Field(..., description="Store-assigned, monotonically increasing id")
    slug: str = Field(min_length=1, description="Stable identifier used for re-import and direct lookup")

    # ========================================================================
    # Content
    # ========================================================================
    title: str = Field(min_length=1, description="Human-readable label")
    content: str = Field(min_length=1, description="Text content of the chunk")
    section: str = Field(description="Category/header label used for grouping")

    # ========================================================================
    # Metadata
    # ========================================================================
    embedding: Optional[list[float]] = Field(None, description="Fixed-length vector; not selected by every query")
    similarity: Optional[float] = Field(None, description="Cosine similarity, set by vector search only")
    relevance: Optional[int] = Field(None, ge=0, description="Keyword match count, set by keyword search only")
    created_at: Optional[datetime] = Field(None, description="Store-assigned creation timestamp")


class DocumentMetadata(BaseModel):
    """Distinct (title, slug, section) triple used for navigation."""

    title: str
    slug: str
    section: str


class RAGContext(BaseModel):
    """Retrieved context handed to the prompt composer. Never persisted."""

    content: str
    title: str
    section: str
    slug: str

    @classmethod
    def from_chunk(cls, chunk: DocumentChunk) -> "RAGContext":
        return cls(content=chunk.content, title=chunk.title, section=chunk.section, slug=chunk.slug)
