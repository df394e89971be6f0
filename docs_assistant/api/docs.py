"""
Documentation endpoints: navigation, single documents, manual entries, context lookup
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from docs_assistant.api.deps import get_retriever, get_store_gateway
from docs_assistant.models import AddDocumentationRequest, RAGContext
from docs_assistant.utils.docs import add_documentation, get_document_content, get_documentation_nav, get_query_context
from docs_assistant.utils.rag import Retriever
from docs_assistant.utils.store_gateway import StoreGateway

router = APIRouter(prefix="/api/docs")


@router.get("")
def documentation_nav(gateway: StoreGateway = Depends(get_store_gateway)):
    """All documents grouped by section."""
    result = get_documentation_nav(gateway)
    if not result["success"]:
        raise HTTPException(status_code=503, detail=result["error"])
    return result


@router.get("/context", response_model=list[RAGContext])
def query_context(q: str = Query("", max_length=2000), retriever: Retriever = Depends(get_retriever)):
    """Context chunks the chat endpoint would use for this query."""
    return get_query_context(retriever, q)


@router.get("/{slug}")
def document_content(slug: str, gateway: StoreGateway = Depends(get_store_gateway)):
    result = get_document_content(gateway, slug)
    if not result["success"]:
        status_code = 404 if result["error"] == "Document not found" else 503
        raise HTTPException(status_code=status_code, detail=result["error"])
    return result


@router.post("", status_code=201)
def create_documentation(request_body: AddDocumentationRequest, gateway: StoreGateway = Depends(get_store_gateway)):
    result = add_documentation(gateway, request_body)
    if not result["success"]:
        raise HTTPException(status_code=500, detail=result["error"])
    return result
