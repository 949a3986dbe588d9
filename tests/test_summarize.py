"""Tests for the summarization relay."""

import json

import httpx
import pytest

from app.core.config import get_settings
from app.main import app
from app.services import bookmark as bookmark_service
from app.services.summarizer import DEFAULT_MAX_TOKENS, get_http_client

SUMMARY = "# Key Points\n- Markets rallied"


@pytest.fixture
def upstream():
    """Route summarization API calls to a mock transport.

    Yields the list of captured request payloads; set ``status`` on the
    returned object to make the upstream fail.
    """

    class Upstream:
        status = 200
        requests: list[dict] = []

    state = Upstream()
    state.requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        state.requests.append(
            {"url": str(request.url), "headers": request.headers, "json": json.loads(request.content)}
        )
        if state.status != 200:
            return httpx.Response(state.status, json={"error": {"message": "rate limited"}})
        return httpx.Response(200, json={"choices": [{"message": {"content": SUMMARY}}]})

    async def override():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            yield client

    app.dependency_overrides[get_http_client] = override
    yield state
    app.dependency_overrides.pop(get_http_client, None)


async def test_summarize(client, upstream):
    response = await client.post("/api/v1/summarize", json={"prompt": "Summarize this"})

    assert response.status_code == 200
    assert response.json() == {"summary": SUMMARY}

    sent = upstream.requests[0]
    settings = get_settings()
    assert sent["url"] == settings.groq_api_url
    assert sent["headers"]["Authorization"] == "Bearer test-groq-key"
    assert sent["json"]["model"] == settings.summary_model
    assert sent["json"]["max_tokens"] == DEFAULT_MAX_TOKENS
    assert sent["json"]["temperature"] == 0.3
    assert sent["json"]["messages"][1] == {"role": "user", "content": "Summarize this"}


async def test_summarize_max_tokens(client, upstream):
    await client.post("/api/v1/summarize", json={"prompt": "Summarize this", "maxTokens": 120})

    assert upstream.requests[0]["json"]["max_tokens"] == 120


async def test_missing_prompt(client, upstream):
    response = await client.post("/api/v1/summarize", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing prompt in request body"}
    assert upstream.requests == []


async def test_upstream_status_is_relayed(client, upstream):
    upstream.status = 429

    response = await client.post("/api/v1/summarize", json={"prompt": "Summarize this"})

    assert response.status_code == 429
    assert response.json() == {"error": "Failed to generate summary"}


async def test_missing_api_key(client, upstream, monkeypatch):
    monkeypatch.setattr(get_settings(), "groq_api_key", "")

    response = await client.post("/api/v1/summarize", json={"prompt": "Summarize this"})

    assert response.status_code == 500
    assert response.json() == {"error": "GROQ API key not configured"}
    assert upstream.requests == []


async def test_summarize_saved_article(make_client, upstream, article):
    article_id = bookmark_service.encode_article_id(article["url"])

    async with make_client() as ac:
        await ac.post("/api/v1/bookmarks", json={"article": article})
        response = await ac.post("/api/v1/bookmarks/summary", params={"articleId": article_id})

    assert response.status_code == 200
    assert response.json() == {"summary": SUMMARY}
    prompt = upstream.requests[0]["json"]["messages"][1]["content"]
    assert f"Title: {article['title']}" in prompt
    assert "Source: Example Wire" in prompt


async def test_summarize_unknown_bookmark(make_client, upstream):
    async with make_client() as ac:
        response = await ac.post("/api/v1/bookmarks/summary", params={"articleId": "bm9wZQ=="})

    assert response.status_code == 404
    assert response.json() == {"message": "Bookmark not found"}
