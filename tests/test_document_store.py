"""
Tests for the document store backends

Tests cover:
    - InMemoryDocumentStore query semantics
    - SupabaseDocumentStore query construction (mocked client)
"""

from unittest.mock import MagicMock

from docs_assistant.config import RPCFunctions, Tables
from docs_assistant.models import DocumentSection
from docs_assistant.utils.document_store import InMemoryDocumentStore, SupabaseDocumentStore


def section(slug, title="Doc", content="Some content", name="main"):
    return DocumentSection(title=title, content=content, slug=slug, section=name)


ROW = {"id": 3, "title": "Doc", "content": "Body", "slug": "doc", "section": "main", "created_at": "2025-01-01T00:00:00"}


# ===============================
# IN-MEMORY
# ===============================
class TestInMemoryDocumentStore:
    def test_ids_are_monotonic_and_not_reused(self):
        store = InMemoryDocumentStore()
        first = store.insert(section("a"), [0.0])
        store.delete_by_prefix("a")
        second = store.insert(section("a"), [0.0])

        assert first.id == 1
        assert second.id == 2
        assert second.created_at is not None

    def test_results_do_not_expose_embeddings(self):
        store = InMemoryDocumentStore()
        store.insert(section("a"), [0.3, 0.4])

        assert store.list_all(5)[0].embedding is None

    def test_delete_by_prefix(self):
        store = InMemoryDocumentStore()
        store.insert(section("guide"), [0.0])
        store.insert(section("guide-setup"), [0.0])
        store.insert(section("faq"), [0.0])

        assert store.delete_by_prefix("guide") == 2
        assert [c.slug for c in store.list_all(10)] == ["faq"]
        assert store.count() == 1

    def test_get_by_slug_in_id_order(self):
        store = InMemoryDocumentStore()
        store.insert(section("guide", content="part one"), [0.0])
        store.insert(section("other"), [0.0])
        store.insert(section("guide", content="part two"), [0.0])

        assert [c.content for c in store.get_by_slug("guide")] == ["part one", "part two"]
        assert store.get_by_slug("missing") == []

    def test_distinct_metadata_ordered_by_section_then_title(self):
        store = InMemoryDocumentStore()
        store.insert(section("b", title="Beta", name="Zeta"), [0.0])
        store.insert(section("a", title="Alpha", name="Zeta"), [0.0])
        store.insert(section("a", title="Alpha", name="Zeta"), [0.0])
        store.insert(section("c", title="Gamma", name="Alpha"), [0.0])

        metadata = store.list_distinct_metadata()

        assert [(m.section, m.title) for m in metadata] == [("Alpha", "Gamma"), ("Zeta", "Alpha"), ("Zeta", "Beta")]

    def test_keyword_relevance_counts_repeated_tokens(self):
        store = InMemoryDocumentStore()
        store.insert(section("a", content="arsenal"), [0.0])

        assert store.keyword_search(["arsenal", "arsenal"], 5)[0].relevance == 2

    def test_keyword_search_is_case_insensitive(self):
        store = InMemoryDocumentStore()
        store.insert(section("a", title="ARSENAL", content="Unbeaten"), [0.0])

        results = store.keyword_search(["arsenal", "UNBEATEN"], 5)
        assert len(results) == 1
        assert results[0].relevance == 1

    def test_vector_search_with_zero_query_returns_nothing(self):
        store = InMemoryDocumentStore()
        store.insert(section("a"), [1.0, 0.0])

        assert store.vector_search([0.0, 0.0], 0.0, 5) == []


# ===============================
# SUPABASE
# ===============================
class TestSupabaseDocumentStore:
    def make_store(self, data=None, count=None):
        supabase = MagicMock()
        result = MagicMock(data=data if data is not None else [ROW], count=count)
        supabase.rpc.return_value.execute.return_value = result
        table = supabase.table.return_value
        table.select.return_value.order.return_value.limit.return_value.execute.return_value = result
        table.select.return_value.eq.return_value.order.return_value.execute.return_value = result
        table.select.return_value.limit.return_value.execute.return_value = result
        table.delete.return_value.like.return_value.execute.return_value = result
        table.insert.return_value.execute.return_value = result
        return SupabaseDocumentStore(supabase), supabase

    def test_vector_search_calls_match_rpc(self):
        store, supabase = self.make_store(data=[{**ROW, "similarity": 0.91}])

        results = store.vector_search((0.1, 0.2), 0.7, 5)

        supabase.rpc.assert_called_once_with(
            RPCFunctions.MATCH_DOCUMENT_CHUNKS,
            {"query_embedding": [0.1, 0.2], "match_threshold": 0.7, "match_count": 5},
        )
        assert results[0].similarity == 0.91

    def test_keyword_search_calls_keyword_rpc(self):
        store, supabase = self.make_store(data=[{**ROW, "relevance": 2}])

        results = store.keyword_search(["arsenal", "title"], 3)

        supabase.rpc.assert_called_once_with(
            RPCFunctions.SEARCH_DOCUMENT_CHUNKS_BY_KEYWORDS,
            {"keywords": ["arsenal", "title"], "match_count": 3},
        )
        assert results[0].relevance == 2

    def test_list_all_orders_by_id(self):
        store, supabase = self.make_store()

        results = store.list_all(5)

        supabase.table.assert_called_with(Tables.DOCUMENT_CHUNKS)
        supabase.table.return_value.select.return_value.order.assert_called_once_with("id")
        supabase.table.return_value.select.return_value.order.return_value.limit.assert_called_once_with(5)
        assert results[0].id == 3

    def test_get_by_slug_filters_on_exact_slug(self):
        store, supabase = self.make_store()

        store.get_by_slug("doc")

        supabase.table.return_value.select.return_value.eq.assert_called_once_with("slug", "doc")

    def test_delete_by_prefix_uses_like(self):
        store, supabase = self.make_store(data=[ROW, ROW])

        assert store.delete_by_prefix("doc") == 2
        supabase.table.return_value.delete.return_value.like.assert_called_once_with("slug", "doc%")

    def test_insert_sends_embedding(self):
        store, supabase = self.make_store()

        chunk = store.insert(section("doc"), [0.0, 0.0])

        record = supabase.table.return_value.insert.call_args.args[0]
        assert record == {"title": "Doc", "content": "Some content", "slug": "doc", "section": "main", "embedding": [0.0, 0.0]}
        assert chunk.id == 3

    def test_distinct_metadata(self):
        store, supabase = self.make_store(data=[{"title": "Doc", "slug": "doc", "section": "main"}])

        metadata = store.list_distinct_metadata()

        supabase.rpc.assert_called_once_with(RPCFunctions.LIST_DOCUMENT_METADATA, {})
        assert metadata[0].slug == "doc"

    def test_count(self):
        store, _ = self.make_store(count=42)
        assert store.count() == 42
