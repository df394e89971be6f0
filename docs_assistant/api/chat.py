"""
Chat endpoint: retrieve context, build the grounding prompt, stream the answer
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse
from openai import OpenAI

from docs_assistant.api.deps import get_chat_client, get_retriever
from docs_assistant.models import ChatRequest
from docs_assistant.utils.generation import build_messages, iter_text, start_completion_stream
from docs_assistant.utils.prompts import build_system_prompt
from docs_assistant.utils.rag import Retriever

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.post("/chat")
def chat(
    request_body: ChatRequest,
    retriever: Retriever = Depends(get_retriever),
    chat_client: OpenAI = Depends(get_chat_client),
):
    """
    Answer the latest user message from the knowledge base.

    Process:
    1. Retrieve context for the last message (never fails; may be empty)
    2. Build the system prompt from that context
    3. Open a streaming completion with system prompt + conversation
    4. Stream plain-text fragments back as they arrive

    Returns:
        text/plain streaming response, or a 500 JSON body if the
        completion could not be started
    """
    try:
        user_query = request_body.messages[-1].content

        context = retriever.retrieve(user_query)
        logger.info(f'[CHAT] Retrieved {len(context)} context chunks for query: "{user_query}"')
        if context:
            for i, c in enumerate(context, 1):
                logger.debug(f"[CHAT] Document {i}: {c.title} ({c.section}) {c.content[:300]}...")
        else:
            logger.info("[CHAT] No documents found, using generic prompt")

        system_prompt = build_system_prompt(context)
        completion = start_completion_stream(chat_client, build_messages(system_prompt, request_body.messages))
        logger.info("[CHAT] Streaming response started")

    except Exception as e:
        logger.exception("[CHAT] Chat processing failed")
        return JSONResponse(status_code=500, content={"error": "Failed to process request", "details": str(e)})

    return StreamingResponse(
        iter_text(completion),
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-cache"},
    )
