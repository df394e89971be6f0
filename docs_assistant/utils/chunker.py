"""
Markdown Chunker

Splits a raw markdown document into titled, sluggable sections on level 2-3
headers. Used by the import script before chunks are written to the store.
"""

import re
from pathlib import Path
from typing import List

from docs_assistant.config import MAX_HEADER_SLUG_LENGTH, MIN_INTRO_LENGTH, MIN_SECTION_LENGTH, ChunkSections
from docs_assistant.models import DocumentSection

HEADER_PATTERN = re.compile(r"^(#{2,3})\s+(\S.*)$", re.MULTILINE)


def slugify(name: str) -> str:
    """Lowercase and collapse every run of non-alphanumeric characters into '-'."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower())


def header_slug(header_text: str) -> str:
    """Slug for a section header, truncated to MAX_HEADER_SLUG_LENGTH."""
    slug = re.sub(r"[^a-z0-9\s]", "", header_text.lower())
    slug = re.sub(r"\s+", "-", slug)
    return slug[:MAX_HEADER_SLUG_LENGTH]


def document_identity(source_name: str) -> tuple[str, str]:
    """
    Derive (title, base slug) from a source filename or path.

    Example:
        document_identity("docs/premier_league-history.md")
        -> ("premier league history", "premier-league-history")
    """
    stem = Path(source_name).stem
    title = stem.replace("_", " ").replace("-", " ")
    return title, slugify(stem)


def parse_markdown_sections(content: str, source_name: str) -> List[DocumentSection]:
    """
    Parse a markdown document into sections.

    - No headers: the whole trimmed document becomes one 'main' section.
    - Text before the first header is kept as 'introduction' when it is
      longer than MIN_INTRO_LENGTH characters.
    - Every '##' / '###' header starts a section spanning up to the next
      header; spans shorter than MIN_SECTION_LENGTH are dropped.

    Args:
        content: Raw markdown text
        source_name: Source filename (or path) used for title and slug

    Returns:
        Ordered list of DocumentSection objects (empty only for blank input)
    """
    title, base_slug = document_identity(source_name)

    matches = list(HEADER_PATTERN.finditer(content))

    if not matches:
        body = content.strip()
        if not body:
            return []
        return [DocumentSection(title=title, content=body, slug=base_slug, section=ChunkSections.MAIN)]

    sections = []

    first_header_index = matches[0].start()
    if first_header_index > 0:
        intro = content[:first_header_index].strip()
        if len(intro) > MIN_INTRO_LENGTH:
            sections.append(DocumentSection(title=title, content=intro, slug=base_slug, section=ChunkSections.INTRODUCTION))

    for i, match in enumerate(matches):
        header_text = match.group(2).strip()
        start = match.end()
        end = matches[i + 1].start() if i + 1 < len(matches) else len(content)

        body = content[start:end].strip()
        if len(body) < MIN_SECTION_LENGTH:
            continue

        sections.append(
            DocumentSection(
                title=f"{title} - {header_text}",
                content=f"# {header_text}\n\n{body}",
                slug=f"{base_slug}-{header_slug(header_text)}",
                section=header_text,
            )
        )

    return sections
