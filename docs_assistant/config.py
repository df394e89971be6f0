"""
Centralized configuration for the documentation assistant.

All environment variables, constants, and client factories live here.
Other modules import from this file instead of reading env vars directly.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv
from openai import OpenAI
from supabase import Client, create_client
from supabase.client import ClientOptions
from voyageai.client import Client as VoyageAI

# Load .env once at import time
load_dotenv()

# =============================================================================
# Environment Variables
# =============================================================================

# Supabase (document store)
SUPABASE_URL = os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY")

# "supabase" for the hosted store, "memory" for a process-local store (local runs)
STORE_BACKEND = os.getenv("STORE_BACKEND", "supabase").lower()
STORE_TIMEOUT_SECONDS = float(os.getenv("STORE_TIMEOUT_SECONDS", "60"))
STORE_MAX_RETRIES = int(os.getenv("STORE_MAX_RETRIES", "3"))
STORE_RETRY_BASE_DELAY_MS = int(os.getenv("STORE_RETRY_BASE_DELAY_MS", "5000"))
STORE_RETRY_BACKOFF_FACTOR = 1.5

# Groq (chat generation, OpenAI-compatible API)
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
GROQ_BASE_URL = "https://api.groq.com/openai/v1"
CHAT_MODEL = os.getenv("CHAT_MODEL", "llama-3.1-8b-instant")
CHAT_MAX_TOKENS = int(os.getenv("CHAT_MAX_TOKENS", "1000"))
CHAT_TEMPERATURE = float(os.getenv("CHAT_TEMPERATURE", "0.7"))

# Embeddings (only used in vector retrieval mode and for `--embed` imports)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
VOYAGE_API_KEY = os.getenv("VOYAGE_API_KEY")
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "openai")  # "openai" or "voyage"
EMBED_MODEL = os.getenv("EMBED_MODEL", "text-embedding-3-small")
EMBED_DIMENSIONS = int(os.getenv("EMBED_DIMENSIONS", "1536"))

# Retrieval
RETRIEVAL_MODE = os.getenv("RETRIEVAL_MODE", "lexical").lower()  # "lexical" or "vector"
RETRIEVAL_LIMIT = int(os.getenv("RETRIEVAL_LIMIT", "5"))
SIMILARITY_THRESHOLD = float(os.getenv("SIMILARITY_THRESHOLD", "0.7"))

# Rate limiting (in-process, per client address)
RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "10"))
RATE_LIMIT_WINDOW_MS = int(os.getenv("RATE_LIMIT_WINDOW_MS", "60000"))

# Prompt framing
KNOWLEDGE_BASE_NAME = os.getenv("KNOWLEDGE_BASE_NAME", "Premier League knowledge base (1992-2025)")

# =============================================================================
# Constants
# =============================================================================

# Chunks shorter than these (after trimming) are dropped during import
MIN_INTRO_LENGTH = 50
MIN_SECTION_LENGTH = 30
MAX_HEADER_SLUG_LENGTH = 50

SUGGESTED_TOPICS = [
    "Premier League champions by year",
    "Team statistics and title wins",
    'Famous moments like "Invincibles" or "Aguero moment"',
    "Relegation and promotion rules",
]


class Tables:
    """Database table names."""

    DOCUMENT_CHUNKS = "document_chunks"


class RPCFunctions:
    """Supabase RPC function names (see rag/schema.sql)."""

    MATCH_DOCUMENT_CHUNKS = "match_document_chunks"
    SEARCH_DOCUMENT_CHUNKS_BY_KEYWORDS = "search_document_chunks_by_keywords"
    LIST_DOCUMENT_METADATA = "list_document_metadata"


class ChunkSections:
    """Sentinel section labels assigned by the chunker."""

    MAIN = "main"
    INTRODUCTION = "introduction"


# =============================================================================
# Client Factories (lazy, cached)
# =============================================================================


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Create and cache the Supabase client."""
    if not SUPABASE_URL:
        raise ValueError("SUPABASE_URL (or NEXT_PUBLIC_SUPABASE_URL) must be set in environment variables")
    if not SUPABASE_KEY:
        raise ValueError("SUPABASE_SERVICE_KEY (or SUPABASE_SERVICE_ROLE_KEY) must be set in environment variables")
    options = ClientOptions(postgrest_client_timeout=STORE_TIMEOUT_SECONDS)
    return create_client(SUPABASE_URL, SUPABASE_KEY, options=options)


@lru_cache(maxsize=1)
def get_groq() -> OpenAI:
    """Create and cache the Groq client (OpenAI-compatible)."""
    if not GROQ_API_KEY:
        raise ValueError("GROQ_API_KEY must be set in environment variables")
    return OpenAI(api_key=GROQ_API_KEY, base_url=GROQ_BASE_URL, timeout=30.0)


@lru_cache(maxsize=2)
def get_client_by_provider(provider: str) -> OpenAI | VoyageAI:
    """
    Get embedding client based on provider name. Cached to avoid recreating clients.

    Args:
        provider: Provider name ('openai' or 'voyage')

    Returns:
        OpenAI or VoyageAI client for the specified provider
    """
    if provider == "openai":
        if not OPENAI_API_KEY:
            raise ValueError("OPENAI_API_KEY must be set to use OpenAI embeddings")
        return OpenAI(api_key=OPENAI_API_KEY, timeout=30.0)
    elif provider == "voyage":
        if not VOYAGE_API_KEY:
            raise ValueError("VOYAGE_API_KEY must be set to use Voyage AI embeddings")
        return VoyageAI(api_key=VOYAGE_API_KEY, timeout=30.0)
    else:
        raise ValueError(f"Unsupported provider: {provider}. Must be 'openai' or 'voyage'.")
