"""
AI Notes Backend: Summarize Proxy Endpoint Tests
=================================================

What:  POST /api/summarize through the full ASGI stack (Session Gate and
       rate limiter included), with the Summarization Service faked.

What we test:
    ✅ 200 {"summary": ...} on success
    ✅ 400 for missing, non-string, empty or unparseable content
    ✅ 500 naming the upstream status on non-2xx
    ✅ 500 on missing completion text
    ✅ 500 "API key not configured." with no upstream call
    ✅ Requests without a session are redirected by the gate
    ✅ API and notes-page summaries share one per-IP rate limit
"""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from ainotes.main import create_app
from ainotes.services.groq_service import GroqSummaryService

from tests.conftest import ACCESS_TOKEN, GROQ_URL, FakeGroq


class TestSummarizeProxy:
    @pytest.mark.asyncio
    async def test_success(self, signed_in_client, fake_groq):
        """A valid request returns the summary."""
        response = await signed_in_client.post("/api/summarize", json={"content": "milk, eggs"})

        assert response.status_code == 200
        assert response.json() == {"summary": "Buy milk and eggs."}
        assert len(fake_groq.requests) == 1

    @pytest.mark.asyncio
    async def test_content_forwarded_verbatim(self, signed_in_client, fake_groq):
        """Content reaches the upstream untouched."""
        content = "Übung\n\n\n— 第二段 🙂\n"
        response = await signed_in_client.post("/api/summarize", json={"content": content})

        assert response.status_code == 200
        user_turn = fake_groq.sent_json()["messages"][1]["content"]
        assert user_turn == "Summarize the following text concisely:\n\n" + content

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{}, {"content": ""}, {"content": None}, {"content": 123}, {"text": "milk"}, ["milk"]],
    )
    async def test_invalid_content_is_400(self, signed_in_client, fake_groq, body):
        """Missing, empty or non-string content is a 400."""
        response = await signed_in_client.post("/api/summarize", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid note content provided."
        assert fake_groq.requests == []

    @pytest.mark.asyncio
    async def test_malformed_json_is_400(self, signed_in_client, fake_groq):
        """An unparseable body is a 400 with the same message."""
        response = await signed_in_client.post(
            "/api/summarize",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid note content provided."

    @pytest.mark.asyncio
    async def test_upstream_status_reported(self, signed_in_client, fake_groq):
        """Upstream failures are a 500 naming the status."""
        fake_groq.status = 401
        fake_groq.body = {"error": {"message": "Invalid API Key"}}

        response = await signed_in_client.post("/api/summarize", json={"content": "milk"})

        assert response.status_code == 500
        error = response.json()["error"]
        assert "401" in error
        assert error.startswith("API request failed with status 401")

    @pytest.mark.asyncio
    async def test_extraction_failure(self, signed_in_client, fake_groq):
        """A response without completion text is a 500."""
        fake_groq.body = {"choices": [{"message": {"content": ""}}]}

        response = await signed_in_client.post("/api/summarize", json={"content": "milk"})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to extract summary from API response."

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, signed_in_client):
        """Error bodies carry the request id."""
        response = await signed_in_client.post(
            "/api/summarize", json={}, headers={"X-Request-ID": "req-1234"}
        )
        assert response.headers["X-Request-ID"] == "req-1234"
        assert response.json()["request_id"] == "req-1234"

    @pytest.mark.asyncio
    async def test_missing_key_is_500_without_upstream_call(self, settings, data_service):
        """Without an API key the proxy answers 500 and calls nothing."""
        fake = FakeGroq()
        unconfigured = GroqSummaryService(
            "", GROQ_URL, transport=httpx.MockTransport(fake.handler)
        )
        app = create_app(settings=settings, data_service=data_service, summarizer=unconfigured)

        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies={settings.access_token_cookie: ACCESS_TOKEN},
        ) as client:
            # Credential absence is reported even for invalid content
            response = await client.post("/api/summarize", json={"content": ""})

        assert response.status_code == 500
        assert response.json()["error"] == "API key not configured."
        assert fake.requests == []
        await unconfigured.aclose()

    @pytest.mark.asyncio
    async def test_requires_session(self, test_client, fake_groq):
        """Anonymous calls are redirected to login."""
        response = await test_client.post("/api/summarize", json={"content": "milk"})

        assert response.status_code == 307
        assert response.headers["location"] == "/login"
        assert fake_groq.requests == []


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_api_calls_beyond_limit_get_429(self, settings, data_service, summarizer):
        """Calls over the limit get 429 while other paths stay open."""
        limited = settings.model_copy(update={"rate_limit_requests": 2})
        app = create_app(settings=limited, data_service=data_service, summarizer=summarizer)

        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies={settings.access_token_cookie: ACCESS_TOKEN},
        ) as client:
            statuses = [
                (await client.post("/api/summarize", json={"content": "milk"})).status_code
                for _ in range(3)
            ]
            page = await client.get("/health")

        assert statuses == [200, 200, 429]
        assert page.status_code == 200

    @pytest.mark.asyncio
    async def test_page_summaries_count_against_limit(
        self, settings, data_service, summarizer, fake_supabase, fake_groq
    ):
        """Summaries requested from the notes page are limited like the API."""
        row = fake_supabase.add_note("Groceries", "milk, eggs")
        limited = settings.model_copy(update={"rate_limit_requests": 2})
        app = create_app(settings=limited, data_service=data_service, summarizer=summarizer)

        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies={settings.access_token_cookie: ACCESS_TOKEN},
        ) as client:
            await client.get("/")
            statuses = [
                (await client.post(f"/notes/{row['id']}/summarize")).status_code
                for _ in range(3)
            ]
            blocked = await client.post("/api/summarize", json={"content": "milk"})

        assert statuses == [303, 303, 429]
        assert blocked.status_code == 429
        assert blocked.headers["Retry-After"]
        assert len(fake_groq.requests) == 2
