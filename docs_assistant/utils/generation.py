"""
Streaming chat generation over an OpenAI-compatible API (Groq by default).
"""

import logging
from typing import Iterable, Iterator, List

from openai import OpenAI

from docs_assistant.config import CHAT_MAX_TOKENS, CHAT_MODEL, CHAT_TEMPERATURE
from docs_assistant.models import ChatMessage

logger = logging.getLogger(__name__)


def build_messages(system_prompt: str, conversation: List[ChatMessage]) -> List[dict]:
    """System prompt first, then the conversation turns in order."""
    return [{"role": "system", "content": system_prompt}] + [{"role": m.role, "content": m.content} for m in conversation]


def start_completion_stream(
    chat_client: OpenAI,
    messages: List[dict],
    chat_model: str = CHAT_MODEL,
    max_tokens: int = CHAT_MAX_TOKENS,
    temperature: float = CHAT_TEMPERATURE,
) -> Iterable:
    """
    Open a streaming chat completion.

    Errors raised here (auth, bad model, unreachable API) surface before any
    text is sent to the client.
    """
    return chat_client.chat.completions.create(
        model=chat_model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        stream=True,
    )


def iter_text(completion_stream: Iterable) -> Iterator[str]:
    """
    Yield non-empty text deltas from a completion stream.

    A failure mid-stream ends the iteration; fragments already yielded are
    left as they are.
    """
    try:
        for chunk in completion_stream:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content or ""
            if content:
                yield content
    except Exception:
        logger.exception("[CHAT] Stream error")
    finally:
        close = getattr(completion_stream, "close", None)
        if callable(close):
            close()
