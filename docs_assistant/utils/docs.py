"""
Documentation actions used by the docs API: query context, navigation,
full-document reconstruction, and manual documentation entry.

Each action returns a result dict ({"success": ..., "data"/"error": ...})
instead of raising, so the API layer can map it straight to a response.
"""

import logging
from typing import Any, Dict, List

from docs_assistant.models import AddDocumentationRequest, DocumentSection, RAGContext
from docs_assistant.utils.rag import Retriever
from docs_assistant.utils.store_gateway import StoreGateway

logger = logging.getLogger(__name__)

DOCUMENT_CHUNK_SEPARATOR = "\n\n"


def get_query_context(retriever: Retriever, query: str) -> List[RAGContext]:
    """Relevant context for a query; blank queries get none."""
    if not query.strip():
        return []
    return retriever.retrieve(query)


def get_documentation_nav(gateway: StoreGateway) -> Dict[str, Any]:
    """
    Group all documents by section for navigation.

    Returns:
        {"success": True, "data": {section: [{"title": ..., "slug": ...}, ...]}}
    """
    try:
        docs = gateway.list_distinct_metadata()
    except Exception:
        logger.exception("[DOCS] Error fetching documentation nav")
        return {"success": False, "error": "Failed to fetch navigation", "data": {}}

    grouped: Dict[str, List[Dict[str, str]]] = {}
    for doc in docs:
        grouped.setdefault(doc.section, []).append({"title": doc.title, "slug": doc.slug})

    return {"success": True, "data": grouped}


def get_document_content(gateway: StoreGateway, slug: str) -> Dict[str, Any]:
    """Rebuild a document from its chunks, concatenated in id order."""
    try:
        chunks = gateway.get_by_slug(slug)
    except Exception:
        logger.exception(f"[DOCS] Error fetching document {slug}")
        return {"success": False, "error": "Failed to fetch document"}

    if not chunks:
        return {"success": False, "error": "Document not found"}

    return {
        "success": True,
        "data": {
            "title": chunks[0].title,
            "content": DOCUMENT_CHUNK_SEPARATOR.join(chunk.content for chunk in chunks),
            "section": chunks[0].section,
            "slug": slug,
        },
    }


def add_documentation(gateway: StoreGateway, request: AddDocumentationRequest) -> Dict[str, Any]:
    """Insert a single documentation entry with a placeholder embedding."""
    section = DocumentSection(
        title=request.title,
        content=request.content,
        slug=request.slug,
        section=request.section,
    )

    try:
        chunk = gateway.insert(section)
    except Exception:
        logger.exception("[DOCS] Error adding documentation")
        return {"success": False, "error": "Failed to add documentation"}

    logger.info(f"[DOCS] Added documentation chunk {chunk.id} ({chunk.slug})")
    return {"success": True, "data": {"id": chunk.id, "slug": chunk.slug}}
