"""
Pydantic Models Package

This package contains all Pydantic models for the documentation assistant.
"""

from .chat import AddDocumentationRequest, ChatMessage, ChatRequest
from .chunk import DocumentChunk, DocumentMetadata, DocumentSection, RAGContext
from .embeddings import Embedding
from .rate_limit import RateLimitResult, RateRecord

__all__ = [
    "AddDocumentationRequest",
    "ChatMessage",
    "ChatRequest",
    "DocumentChunk",
    "DocumentMetadata",
    "DocumentSection",
    "Embedding",
    "RAGContext",
    "RateLimitResult",
    "RateRecord",
]

__version__ = "1.0.0"
