import logging
import random
import re
import time
from typing import Callable, List, Optional, Sequence, Union

from openai import APIError, OpenAI, RateLimitError
from voyageai.client import Client as VoyageAI

from docs_assistant.config import RETRIEVAL_LIMIT, SIMILARITY_THRESHOLD
from docs_assistant.models import DocumentChunk, DocumentSection, Embedding, RAGContext
from docs_assistant.models.embeddings import is_placeholder_embedding
from docs_assistant.utils.store_gateway import StoreGateway

logger = logging.getLogger(__name__)

# (query, gateway, limit) -> ranked chunks, or [] to fall through to the next strategy
RetrievalStrategy = Callable[[str, StoreGateway, int], List[DocumentChunk]]


# ===============================
# EMBEDDING FUNCTIONS
# ===============================
def create_embedding(text: str, embed_client: Union[OpenAI, VoyageAI], embed_model: str) -> Embedding:
    """Generate an embedding with OpenAI or Voyage AI. Returns an Embedding with text and vector."""
    if isinstance(embed_client, OpenAI):
        response = embed_client.embeddings.create(
            model=embed_model,
            input=text,
        )
        if not response.data:
            raise ValueError("OpenAI embedding returned no data")
        vec = response.data[0].embedding
        usage = getattr(response, "usage", None)
        tokens_used = usage.total_tokens if usage else None
    elif isinstance(embed_client, VoyageAI):
        response = embed_client.embed(
            model=embed_model,
            texts=[text],
        )
        vec = response.embeddings[0]
        tokens_used = getattr(response, "total_tokens", None)
    else:
        raise ValueError(f"Unsupported embed client: {type(embed_client)}. Must be OpenAI or VoyageAI.")

    return Embedding(text=text, embedding=vec, model=embed_model, dimension=len(vec), tokens_used=tokens_used)


def create_embeddings_batch(
    sections: List[DocumentSection],
    embed_client: Union[OpenAI, VoyageAI],
    embed_model: str,
    max_retries: int,
    initial_backoff: float,
    max_backoff: float,
) -> List[Embedding]:
    """
    Generate embeddings in batch with retries.

    Args:
        sections: Parsed sections to embed
        max_retries: Maximum number of attempts
        initial_backoff: Initial wait time in seconds
        max_backoff: Upper bound for a single wait

    Returns:
        List of Embedding objects, in the same order as the sections
    """
    texts = [section.content for section in sections]

    for attempt in range(max_retries):
        try:
            if isinstance(embed_client, OpenAI):
                response = embed_client.embeddings.create(model=embed_model, input=texts)
                ordered = sorted(response.data, key=lambda item: item.index)
                vectors = [item.embedding for item in ordered]
            else:
                response = embed_client.embed(model=embed_model, texts=texts)
                vectors = response.embeddings

            return [Embedding(embedding=vec, model=embed_model, dimension=len(vec)) for vec in vectors]

        except RateLimitError:
            if attempt == max_retries - 1:
                raise

            sleep_time = min(initial_backoff * (2**attempt) + random.uniform(0, 1), max_backoff)
            logger.warning(f"[RAG] Rate limit in batch, waiting {sleep_time:.1f}s (attempt {attempt + 1}/{max_retries})")
            time.sleep(sleep_time)

        except APIError:
            if attempt == max_retries - 1:
                raise

            sleep_time = min(initial_backoff * (2**attempt), max_backoff)
            logger.warning(f"[RAG] API error in batch, retrying in {sleep_time:.1f}s (attempt {attempt + 1}/{max_retries})")
            time.sleep(sleep_time)

    raise Exception(f"Could not generate batch embeddings after {max_retries} attempts")


# ===============================
# RETRIEVAL STRATEGIES
# ===============================
def extract_keywords(query: str) -> List[str]:
    """
    Normalize a query into search tokens.

    Lowercases, strips everything except [a-z0-9] and whitespace, and drops
    single-character tokens.

    Example:
        extract_keywords("Who won the 2004 title? (Arsenal!)")
        -> ["who", "won", "the", "2004", "title", "arsenal"]
    """
    cleaned = re.sub(r"[^a-z0-9\s]", "", query.lower())
    return [word for word in cleaned.split() if len(word) > 1]


def keyword_strategy(query: str, gateway: StoreGateway, limit: int) -> List[DocumentChunk]:
    """Any-token match on content or title, ranked by content match count then id."""
    keywords = extract_keywords(query)
    if not keywords:
        logger.info("[RAG] No usable keywords in query")
        return []

    logger.info(f"[RAG] Searching with keywords: {', '.join(keywords)}")
    results = gateway.keyword_search(keywords, limit)
    logger.info(f"[RAG] Found {len(results)} matching documents")
    return results


def generic_strategy(query: str, gateway: StoreGateway, limit: int) -> List[DocumentChunk]:
    """First chunks by insertion order, so generation always has some framing."""
    logger.info("[RAG] Returning general context")
    return gateway.list_all(limit)


def make_vector_strategy(
    embed_fn: Optional[Callable[[str], Sequence[float]]],
    threshold: float = SIMILARITY_THRESHOLD,
) -> RetrievalStrategy:
    """
    Build a similarity-search strategy around an embedding function.

    Yields nothing when the query cannot be embedded or embeds to an all-zero
    vector, so the chain moves on to keyword search.
    """

    def vector_strategy(query: str, gateway: StoreGateway, limit: int) -> List[DocumentChunk]:
        if embed_fn is None:
            return []
        try:
            query_embedding = embed_fn(query)
        except Exception:
            logger.exception("[RAG] Embedding failed, falling back to keyword search")
            return []
        if is_placeholder_embedding(query_embedding):
            logger.warning("[RAG] Query embedding is empty, skipping vector search")
            return []
        results = gateway.vector_search(query_embedding, threshold, limit)
        logger.info(f"[RAG] Vector search found {len(results)} results above {threshold}")
        return results

    return vector_strategy


# ===============================
# RETRIEVER
# ===============================
class Retriever:
    """
    Runs an ordered chain of retrieval strategies until one returns results.

    Modes:
        lexical: keyword search -> generic context (default, no embedding calls)
        vector:  vector search -> keyword search -> generic context
    """

    def __init__(
        self,
        gateway: StoreGateway,
        mode: str = "lexical",
        embed_fn: Optional[Callable[[str], Sequence[float]]] = None,
        limit: int = RETRIEVAL_LIMIT,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
    ):
        if mode not in ("lexical", "vector"):
            raise ValueError(f"Unsupported retrieval mode: {mode}. Must be 'lexical' or 'vector'.")

        self.gateway = gateway
        self.mode = mode
        self.limit = limit

        self.strategies: List[RetrievalStrategy] = [keyword_strategy, generic_strategy]
        if mode == "vector":
            self.strategies.insert(0, make_vector_strategy(embed_fn, similarity_threshold))

    def search(self, query: str, limit: Optional[int] = None) -> List[DocumentChunk]:
        """Run the strategy chain. Store errors propagate."""
        limit = limit if limit is not None else self.limit
        if limit <= 0:
            return []
        for strategy in self.strategies:
            results = strategy(query, self.gateway, limit)
            if results:
                return _dedupe(results)[:limit]
        return []

    def retrieve(self, query: str, limit: Optional[int] = None) -> List[RAGContext]:
        """
        Retrieve ranked context for a query.

        Store failures are logged and degrade to an empty context list.
        """
        try:
            chunks = self.search(query, limit)
        except Exception:
            logger.exception("[RAG] Retrieval failed, continuing without context")
            return []

        return [RAGContext.from_chunk(chunk) for chunk in chunks]


def _dedupe(chunks: List[DocumentChunk]) -> List[DocumentChunk]:
    seen = set()
    unique = []
    for chunk in chunks:
        if chunk.id not in seen:
            seen.add(chunk.id)
            unique.append(chunk)
    return unique
