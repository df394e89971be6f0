"""
Tests for the markdown chunker

Tests cover:
    - Slug derivation (document and header slugs)
    - Documents without headers
    - Introduction handling
    - Dropping short sections
"""

from docs_assistant.utils.chunker import document_identity, header_slug, parse_markdown_sections, slugify

LONG_BODY = "Arsenal went the whole 2003-04 season unbeaten, finishing with 26 wins and 12 draws."


# ===============================
# SLUGS
# ===============================
class TestSlugs:
    def test_slugify_collapses_non_alphanumeric_runs(self):
        assert slugify("Premier_League -- History!") == "premier-league-history-"

    def test_document_identity_uses_file_stem(self):
        title, slug = document_identity("docs/premier_league-history.md")
        assert title == "premier league history"
        assert slug == "premier-league-history"

    def test_header_slug_strips_punctuation_and_joins_words(self):
        assert header_slug("The 'Invincibles' (2003/04)") == "the-invincibles-200304"

    def test_header_slug_truncated_to_50_characters(self):
        slug = header_slug("word " * 30)
        assert len(slug) == 50
        assert slug.startswith("word-word")


# ===============================
# NO HEADERS
# ===============================
class TestNoHeaders:
    def test_single_main_chunk_with_trimmed_content(self):
        text = "\n\n  Just a plain document without any headers at all.  \n"
        sections = parse_markdown_sections(text, "plain.md")

        assert len(sections) == 1
        assert sections[0].content == text.strip()
        assert sections[0].section == "main"
        assert sections[0].slug == "plain"
        assert sections[0].title == "plain"

    def test_level_one_and_four_headers_are_not_section_breaks(self):
        text = "# Title\n\nSome text.\n\n#### Deep header\n\nMore text."
        sections = parse_markdown_sections(text, "doc.md")

        assert len(sections) == 1
        assert sections[0].section == "main"

    def test_blank_input_yields_nothing(self):
        assert parse_markdown_sections("   \n\n ", "empty.md") == []


# ===============================
# HEADERS
# ===============================
class TestHeaders:
    def test_sections_are_titled_slugged_and_prefixed(self):
        text = f"## Champions\n{LONG_BODY}\n### The Invincibles\n{LONG_BODY}\n"
        sections = parse_markdown_sections(text, "pl_history.md")

        assert [s.slug for s in sections] == ["pl-history-champions", "pl-history-the-invincibles"]
        assert sections[0].title == "pl history - Champions"
        assert sections[0].section == "Champions"
        assert sections[0].content == f"# Champions\n\n{LONG_BODY}"
        assert sections[1].content == f"# The Invincibles\n\n{LONG_BODY}"

    def test_long_introduction_is_kept(self):
        intro = "This knowledge base covers every Premier League season since 1992."
        text = f"{intro}\n\n## Champions\n{LONG_BODY}"
        sections = parse_markdown_sections(text, "pl.md")

        assert sections[0].section == "introduction"
        assert sections[0].content == intro
        assert sections[0].slug == "pl"
        assert sections[0].title == "pl"
        assert sections[1].section == "Champions"

    def test_short_introduction_is_dropped(self):
        text = f"Short intro.\n\n## Champions\n{LONG_BODY}"
        sections = parse_markdown_sections(text, "pl.md")

        assert [s.section for s in sections] == ["Champions"]

    def test_introduction_of_exactly_50_characters_is_dropped(self):
        intro = "x" * 50
        sections = parse_markdown_sections(f"{intro}\n## Champions\n{LONG_BODY}", "pl.md")
        assert [s.section for s in sections] == ["Champions"]

    def test_short_sections_are_dropped(self):
        text = f"## Empty\n\n   \n## Tiny\nToo short.\n## Champions\n{LONG_BODY}"
        sections = parse_markdown_sections(text, "pl.md")

        assert [s.section for s in sections] == ["Champions"]

    def test_every_header_chunk_meets_minimum_length(self):
        bodies = ["a" * 29, "b" * 30, "c" * 31, " " * 40 + "d" * 10]
        text = "\n".join(f"## Header {i}\n{body}" for i, body in enumerate(bodies))
        sections = parse_markdown_sections(text, "lengths.md")

        assert [s.section for s in sections] == ["Header 1", "Header 2"]
        for section in sections:
            body = section.content.split("\n\n", 1)[1]
            assert len(body.strip()) >= 30

    def test_duplicate_headers_produce_duplicate_slugs(self):
        text = f"## Notes\n{LONG_BODY}\n## Notes\n{LONG_BODY}"
        sections = parse_markdown_sections(text, "pl.md")

        assert [s.slug for s in sections] == ["pl-notes", "pl-notes"]
