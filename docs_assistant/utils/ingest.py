"""
Markdown ingestion: parse a file into sections and (re)write them to the store.

Re-importing the same file first deletes every chunk whose slug starts with
the file's base slug, so imports are idempotent per source document.
"""

import logging
from pathlib import Path
from typing import List, Optional

from docs_assistant.config import EMBED_DIMENSIONS, EMBED_MODEL, EMBED_PROVIDER, get_client_by_provider
from docs_assistant.models import DocumentSection, Embedding
from docs_assistant.utils.chunker import document_identity, parse_markdown_sections
from docs_assistant.utils.rag import create_embeddings_batch
from docs_assistant.utils.store_gateway import StoreGateway

logger = logging.getLogger(__name__)

# Batch configuration
BATCH_SIZE = 20  # Number of texts per embedding request
MAX_RETRIES = 5
INITIAL_BACKOFF = 1.0  # seconds
MAX_BACKOFF = 60.0


class MarkdownImportError(Exception):
    """Raised when an import run cannot complete."""


def embed_sections(sections: List[DocumentSection], batch_size: int = BATCH_SIZE) -> List[Embedding]:
    """Embed all sections in batches with the configured provider."""
    embed_client = get_client_by_provider(EMBED_PROVIDER)
    embeddings = []
    total_batches = (len(sections) + batch_size - 1) // batch_size

    for i in range(0, len(sections), batch_size):
        batch_num = i // batch_size + 1
        batch = sections[i : i + batch_size]
        logger.info(f"[IMPORT] Embedding batch {batch_num}/{total_batches} ({len(batch)} sections)")
        embeddings.extend(create_embeddings_batch(batch, embed_client, EMBED_MODEL, MAX_RETRIES, INITIAL_BACKOFF, MAX_BACKOFF))

    return embeddings


def import_markdown_text(content: str, source_name: str, gateway: StoreGateway, embed: bool = False) -> int:
    """
    Import markdown text, replacing chunks previously imported from the same source.

    Args:
        content: Raw markdown
        source_name: Source filename; determines title and slug prefix
        gateway: Store gateway to write through
        embed: Generate real embeddings instead of zero vectors

    Returns:
        Number of chunks inserted

    Raises:
        MarkdownImportError: If the document has no importable content (after
            clearing chunks from any previous import of it)
    """
    sections = parse_markdown_sections(content, source_name)
    logger.info(f"[IMPORT] Found {len(sections)} sections to import")

    embeddings: Optional[List[Embedding]] = None
    if embed and sections:
        logger.info(f"[IMPORT] Generating embeddings with {EMBED_MODEL} ({EMBED_DIMENSIONS} dims)")
        embeddings = embed_sections(sections)

    _, base_slug = document_identity(source_name)
    deleted = gateway.delete_by_prefix(base_slug)
    if deleted:
        logger.info(f"[IMPORT] Cleared {deleted} existing chunks for '{base_slug}'")

    # Chunks from an earlier import are cleared even when nothing replaces them
    if not sections:
        raise MarkdownImportError(f"No sections found in {source_name}")

    for i, section in enumerate(sections):
        vector = embeddings[i].embedding if embeddings else None
        chunk = gateway.insert(section, vector)
        logger.info(f"[IMPORT] Imported chunk {chunk.id}: {section.section[:40]}")

    return len(sections)


def import_markdown_file(file_path: str, gateway: StoreGateway, embed: bool = False) -> int:
    """
    Import one markdown file.

    Raises:
        MarkdownImportError: If the file is missing or has no importable content
    """
    path = Path(file_path)
    if not path.is_file():
        raise MarkdownImportError(f"File not found: {file_path}")

    content = path.read_text(encoding="utf-8")
    logger.info(f"[IMPORT] Read {len(content)} characters from {path.name}")

    return import_markdown_text(content, path.name, gateway, embed=embed)
