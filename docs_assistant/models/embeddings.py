"""
Embedding Models

Models for embedding generation and helpers that keep stored vectors at the
fixed dimensionality of the document_chunks schema.
Default: 1536 dimensions (text-embedding-3-small)
"""

from typing import Optional, Sequence

from pydantic import BaseModel, Field, model_validator


class Embedding(BaseModel):
    """
    Response from embedding generation.

    Supports any vector length; use fit_to_dimension() before storing.
    """

    # ========================================================================
    # Output
    # ========================================================================
    embedding: list[float] = Field(..., min_length=1, description="Embedding vector of variable dimensions")

    # ========================================================================
    # Metadata
    # ========================================================================
    text: Optional[str] = Field(None, description="Original text that was embedded")
    model: str = Field(description="Model used for generation")
    dimension: int = Field(..., ge=1, description="Dimension of the embedding vector")
    tokens_used: Optional[int] = Field(None, ge=0, description="Number of tokens used")

    @model_validator(mode="after")
    def validate_embedding_length(self):
        """Validate that embedding length matches the dimension."""
        if len(self.embedding) != self.dimension:
            raise ValueError(f"Embedding length ({len(self.embedding)}) does not match dimension ({self.dimension})")
        return self


def placeholder_embedding(dimension: int) -> list[float]:
    """All-zero vector stored when embeddings are not computed (text search only)."""
    return [0.0] * dimension


def is_placeholder_embedding(vector: Optional[Sequence[float]]) -> bool:
    """True for missing or all-zero vectors, which carry no semantic information."""
    return not vector or not any(vector)


def fit_to_dimension(vector: Sequence[float], dimension: int) -> list[float]:
    """
    Zero-pad a vector up to the schema dimension.

    Raises:
        ValueError: If the vector is longer than the dimension
    """
    if len(vector) > dimension:
        raise ValueError(f"Embedding length ({len(vector)}) exceeds the store dimension ({dimension})")
    return [float(v) for v in vector] + [0.0] * (dimension - len(vector))
