"""
Tests for the HTTP surface

Tests cover:
    - Streaming chat responses grounded on retrieved context
    - Rate limit headers and 429 rejections
    - Client identity derivation
    - Documentation endpoints
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docs_assistant.api import deps
from docs_assistant.api.chat import router as chat_router
from docs_assistant.api.deps import get_chat_client, get_retriever, get_store_gateway
from docs_assistant.api.docs import router as docs_router
from docs_assistant.api.middleware import RateLimitMiddleware
from docs_assistant.models import DocumentSection
from docs_assistant.utils.document_store import InMemoryDocumentStore
from docs_assistant.utils.rag import Retriever
from docs_assistant.utils.rate_limit import RateGovernor
from docs_assistant.utils.store_gateway import StoreGateway


def delta(text):
    chunk = MagicMock()
    chunk.choices = [MagicMock()]
    chunk.choices[0].delta.content = text
    return chunk


class FakeClock:
    def __init__(self):
        self.now = 1_700_000_000_000

    def __call__(self):
        return self.now


@pytest.fixture
def gateway():
    gateway = StoreGateway(InMemoryDocumentStore(), embed_dimensions=4, sleep=lambda _: None)
    gateway.insert(
        DocumentSection(
            title="history - Invincibles",
            content="# Invincibles\n\nArsenal went unbeaten in 2003-04.",
            slug="history-invincibles",
            section="Invincibles",
        )
    )
    return gateway


@pytest.fixture
def chat_client():
    client = MagicMock()
    client.chat.completions.create.return_value = [delta("Arsenal "), delta("were unbeaten.")]
    return client


@pytest.fixture
def governor():
    return RateGovernor(limit=3, window_ms=60000, clock=FakeClock())


@pytest.fixture
def client(gateway, chat_client, governor):
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, governor=governor)
    app.include_router(chat_router)
    app.include_router(docs_router)

    app.dependency_overrides[get_store_gateway] = lambda: gateway
    app.dependency_overrides[get_retriever] = lambda: Retriever(gateway)
    app.dependency_overrides[get_chat_client] = lambda: chat_client
    return TestClient(app)


def ask(client, question="Who went unbeaten?", headers=None):
    return client.post("/api/chat", json={"messages": [{"role": "user", "content": question}]}, headers=headers or {})


# ===============================
# CHAT
# ===============================
class TestChat:
    def test_streams_plain_text(self, client):
        response = ask(client)

        assert response.status_code == 200
        assert response.text == "Arsenal were unbeaten."
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["cache-control"] == "no-cache"

    def test_system_prompt_contains_retrieved_context(self, client, chat_client):
        ask(client, "Tell me about the invincibles")

        kwargs = chat_client.chat.completions.create.call_args.kwargs
        system = kwargs["messages"][0]
        assert system["role"] == "system"
        assert "### history - Invincibles (Invincibles)" in system["content"]
        assert kwargs["messages"][1] == {"role": "user", "content": "Tell me about the invincibles"}
        assert kwargs["stream"] is True

    def test_retrieval_failure_still_answers(self, client, gateway, chat_client):
        gateway.store = MagicMock()
        gateway.store.keyword_search.side_effect = RuntimeError("relation does not exist")

        response = ask(client)

        assert response.status_code == 200
        system = chat_client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert "couldn't find specific information" in system

    def test_completion_failure_returns_500(self, client, chat_client):
        chat_client.chat.completions.create.side_effect = RuntimeError("invalid api key")

        response = ask(client)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process request", "details": "invalid api key"}

    def test_empty_messages_rejected(self, client):
        assert client.post("/api/chat", json={"messages": []}).status_code == 422


class TestUnconfiguredStore:
    @pytest.fixture
    def unconfigured_client(self, chat_client):
        for factory in (deps.get_document_store, deps.get_store_gateway, deps.get_retriever):
            factory.cache_clear()

        app = FastAPI()
        app.include_router(chat_router)
        app.dependency_overrides[get_chat_client] = lambda: chat_client

        failing_supabase = MagicMock(side_effect=ValueError("SUPABASE_URL must be set in environment variables"))
        with (
            patch.object(deps, "STORE_BACKEND", "supabase"),
            patch.object(deps, "RETRIEVAL_MODE", "lexical"),
            patch.object(deps, "get_supabase", failing_supabase),
        ):
            yield TestClient(app)

        for factory in (deps.get_document_store, deps.get_store_gateway, deps.get_retriever):
            factory.cache_clear()

    def test_answers_without_context(self, unconfigured_client, chat_client):
        response = ask(unconfigured_client)

        assert response.status_code == 200
        assert response.text == "Arsenal were unbeaten."
        system = chat_client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert "couldn't find specific information" in system


# ===============================
# RATE LIMITING
# ===============================
class TestRateLimit:
    def test_headers_on_admitted_requests(self, client):
        headers = {"X-Forwarded-For": "10.0.0.1"}
        remaining = [ask(client, headers=headers).headers["X-RateLimit-Remaining"] for _ in range(3)]

        assert remaining == ["2", "1", "0"]

    def test_rejection_after_limit(self, client, chat_client):
        headers = {"X-Forwarded-For": "10.0.0.1"}
        for _ in range(3):
            ask(client, headers=headers)

        response = ask(client, headers=headers)

        assert response.status_code == 429
        assert response.json()["error"] == "Rate limit exceeded"
        assert "60 seconds" in response.json()["message"]
        assert response.headers["X-RateLimit-Limit"] == "3"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.headers["Retry-After"] == "60"
        assert int(response.headers["X-RateLimit-Reset"]) > 0
        assert chat_client.chat.completions.create.call_count == 3

    def test_first_forwarded_address_is_the_identity(self, client):
        for _ in range(3):
            ask(client, headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})

        assert ask(client, headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
        assert ask(client, headers={"X-Forwarded-For": "172.16.0.1"}).status_code == 200

    def test_real_ip_then_anonymous(self, client, governor):
        ask(client, headers={"X-Real-IP": "192.168.1.5"})
        ask(client)

        assert governor.check("192.168.1.5").remaining == 1
        assert governor.check("anonymous").remaining == 1

    def test_docs_routes_are_not_limited(self, client):
        for _ in range(5):
            response = client.get("/api/docs")
            assert response.status_code == 200
            assert "X-RateLimit-Limit" not in response.headers


# ===============================
# DOCS
# ===============================
class TestDocsApi:
    def test_navigation(self, client):
        response = client.get("/api/docs")

        assert response.json() == {
            "success": True,
            "data": {"Invincibles": [{"title": "history - Invincibles", "slug": "history-invincibles"}]},
        }

    def test_document_by_slug(self, client):
        response = client.get("/api/docs/history-invincibles")

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "history - Invincibles"

    def test_unknown_document(self, client):
        response = client.get("/api/docs/missing")

        assert response.status_code == 404
        assert response.json()["detail"] == "Document not found"

    def test_add_documentation(self, client):
        body = {"title": "VAR", "content": "Video assistant referees since 2019.", "slug": "var", "section": "Rules"}

        response = client.post("/api/docs", json=body)

        assert response.status_code == 201
        assert client.get("/api/docs/var").json()["data"]["content"] == body["content"]

    def test_add_documentation_requires_all_fields(self, client):
        response = client.post("/api/docs", json={"title": "VAR", "content": "x", "slug": "var"})
        assert response.status_code == 422

    def test_context_lookup(self, client):
        response = client.get("/api/docs/context", params={"q": "unbeaten arsenal"})

        assert response.status_code == 200
        assert [c["slug"] for c in response.json()] == ["history-invincibles"]

    def test_blank_context_lookup(self, client):
        assert client.get("/api/docs/context").json() == []


class TestApplication:
    def test_routes_and_rate_limiting_are_wired(self):
        from main import app

        paths = {route.path for route in app.routes}
        assert {"/api/chat", "/api/docs", "/api/docs/{slug}", "/api/docs/context"} <= paths
        assert any(m.cls is RateLimitMiddleware for m in app.user_middleware)
