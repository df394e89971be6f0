"""
System prompt templates for grounded answers.

build_system_prompt() is pure: the same context list, knowledge-base name
and topics always produce the same text.
"""

from typing import List, Optional, Sequence

from docs_assistant.config import KNOWLEDGE_BASE_NAME, SUGGESTED_TOPICS
from docs_assistant.models import RAGContext

CONTEXT_DELIMITER = "\n\n---\n\n"

NO_CONTEXT_TEMPLATE = """You are an AI assistant for {knowledge_base}.
You help users learn about the topics covered in this knowledge base.

Unfortunately, I couldn't find specific information for this query in the database.
Please try asking about:
{suggested_topics}

Answer in a helpful way and suggest what information is available."""

GROUNDED_TEMPLATE = """You are an AI assistant for {knowledge_base}.
Your role is to help users using the provided context.

IMPORTANT RULES:
1. ONLY use information from the CONTEXT below to answer questions
2. If the answer is in the context, provide it clearly with details
3. Mention specific names, dates, and facts from the context
4. Use markdown formatting for better readability
5. If the context does not contain the answer, say you don't know

CONTEXT FROM KNOWLEDGE BASE:
{context_blocks}

---

Now answer the user's question based ONLY on the above context. Be specific and cite the information."""


def format_context_block(context: RAGContext) -> str:
    return f"### {context.title} ({context.section})\n{context.content}"


def build_system_prompt(
    context: List[RAGContext],
    knowledge_base: str = KNOWLEDGE_BASE_NAME,
    suggested_topics: Optional[Sequence[str]] = None,
) -> str:
    """
    Build the system prompt with retrieved context.

    Args:
        context: Retrieved chunks, most relevant first
        knowledge_base: Name of the corpus shown to the model
        suggested_topics: Topics offered when nothing was found

    Returns:
        Prompt text for the system message
    """
    if not context:
        topics = SUGGESTED_TOPICS if suggested_topics is None else suggested_topics
        return NO_CONTEXT_TEMPLATE.format(
            knowledge_base=knowledge_base,
            suggested_topics="\n".join(f"- {topic}" for topic in topics),
        )

    return GROUNDED_TEMPLATE.format(
        knowledge_base=knowledge_base,
        context_blocks=CONTEXT_DELIMITER.join(format_context_block(c) for c in context),
    )
