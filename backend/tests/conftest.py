"""
AI Notes Backend: Test Configuration (conftest.py)
===================================================

What:  Shared fixtures: in-memory fakes of the two external collaborators and
       HTTP clients wired to the app.
How:   Both collaborators are replaced at the transport level with
       httpx.MockTransport, so the real client code (headers, params, error
       mapping) runs in every test.

Fixture Hierarchy:
    fake_supabase ──▶ data_service ──┐
    fake_groq     ──▶ summarizer   ──┼──▶ app ──▶ test_client
                                     │          └─▶ signed_in_client
                                     └──▶ notes_client, auth_form
"""

import json
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings for testing BEFORE any app imports
os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_ANON_KEY"] = "anon-test-key"
os.environ["GROQ_API_KEY"] = "groq-test-key"
os.environ["LOG_LEVEL"] = "WARNING"

from ainotes.client.gateways import LocalSummaryGateway  # noqa: E402
from ainotes.client.notes_client import NotesClient  # noqa: E402
from ainotes.client.auth_form import AuthForm  # noqa: E402
from ainotes.config import Settings  # noqa: E402
from ainotes.main import create_app  # noqa: E402
from ainotes.services.data_service import DataServiceClient  # noqa: E402
from ainotes.services.groq_service import GroqSummaryService  # noqa: E402

USER_ID = "user-1"
USER_EMAIL = "alice@example.com"
USER_PASSWORD = "correct-horse"
ACCESS_TOKEN = "access-1"
REFRESH_TOKEN = "refresh-1"

GROQ_URL = "https://groq.test/openai/v1/chat/completions"


# ══════════════════════════════════════════════════════════════════════════
# Fake Data Service
# ══════════════════════════════════════════════════════════════════════════


class FakeSupabase:
    """
    In-memory stand-in for the PostgREST + GoTrue endpoints the app uses.

    Attributes:
        notes:    Stored rows (dicts as PostgREST returns them)
        requests: Every request received, in order
        failures: (method, path) → (status, json body) answered instead of
                  the normal behaviour
    """

    def __init__(self):
        self.users: Dict[str, Dict[str, str]] = {
            USER_EMAIL: {"id": USER_ID, "email": USER_EMAIL, "password": USER_PASSWORD}
        }
        self.access_tokens: Dict[str, str] = {ACCESS_TOKEN: USER_EMAIL}
        self.refresh_tokens: Dict[str, str] = {REFRESH_TOKEN: USER_EMAIL}
        self.notes: List[Dict[str, Any]] = []
        self.requests: List[httpx.Request] = []
        self.failures: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self._next_id = 1
        self._token_counter = 1
        self._clock = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

    # ── Helpers ───────────────────────────────────────────────────────────

    def fail(self, method: str, path: str, status: int, body: Any) -> None:
        self.failures[(method, path)] = (status, body)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def add_note(self, title: str, content: str, user_id: str = USER_ID) -> Dict[str, Any]:
        self._clock += timedelta(minutes=1)
        row = {
            "id": self._next_id,
            "title": title,
            "content": content,
            "created_at": self._clock.isoformat(),
            "user_id": user_id,
        }
        self._next_id += 1
        self.notes.append(row)
        return row

    def _user_json(self, email: str) -> Dict[str, str]:
        user = self.users[email]
        return {"id": user["id"], "email": user["email"], "aud": "authenticated"}

    def _issue_session(self, email: str) -> Dict[str, Any]:
        self._token_counter += 1
        access = f"access-{self._token_counter}"
        refresh = f"refresh-{self._token_counter}"
        self.access_tokens[access] = email
        self.refresh_tokens[refresh] = email
        return {
            "access_token": access,
            "refresh_token": refresh,
            "token_type": "bearer",
            "expires_in": 3600,
            "user": self._user_json(email),
        }

    def _caller(self, request: httpx.Request) -> Optional[str]:
        auth = request.headers.get("Authorization", "")
        token = auth[len("Bearer "):] if auth.startswith("Bearer ") else ""
        return self.access_tokens.get(token)

    # ── Transport handler ─────────────────────────────────────────────────

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        failure = self.failures.get((request.method, path))
        if failure is not None:
            status, body = failure
            return httpx.Response(status, json=body)

        if path.startswith("/auth/v1/"):
            return self._auth(request, path[len("/auth/v1/"):])
        if path == "/rest/v1/notes":
            return self._notes(request)
        return httpx.Response(404, json={"message": "Not found"})

    def _auth(self, request: httpx.Request, endpoint: str) -> httpx.Response:
        if endpoint == "health":
            return httpx.Response(200, json={"name": "GoTrue"})

        if endpoint == "user":
            email = self._caller(request)
            if email is None:
                return httpx.Response(401, json={"msg": "invalid JWT: token is expired"})
            return httpx.Response(200, json=self._user_json(email))

        if endpoint == "logout":
            email = self._caller(request)
            for token, owner in list(self.access_tokens.items()):
                if owner == email:
                    del self.access_tokens[token]
            return httpx.Response(204)

        payload = json.loads(request.content) if request.content else {}

        if endpoint == "signup":
            email = payload.get("email")
            if email in self.users:
                return httpx.Response(422, json={"msg": "User already registered"})
            self.users[email] = {
                "id": f"user-{len(self.users) + 1}",
                "email": email,
                "password": payload.get("password"),
            }
            return httpx.Response(200, json=self._user_json(email))

        if endpoint == "token":
            grant = request.url.params.get("grant_type")
            if grant == "password":
                user = self.users.get(payload.get("email"))
                if user is None or user["password"] != payload.get("password"):
                    return httpx.Response(
                        400,
                        json={
                            "error": "invalid_grant",
                            "error_description": "Invalid login credentials",
                        },
                    )
                return httpx.Response(200, json=self._issue_session(user["email"]))
            if grant == "refresh_token":
                email = self.refresh_tokens.pop(payload.get("refresh_token"), None)
                if email is None:
                    return httpx.Response(
                        400,
                        json={
                            "error": "invalid_grant",
                            "error_description": "Invalid Refresh Token: Refresh Token Not Found",
                        },
                    )
                return httpx.Response(200, json=self._issue_session(email))

        return httpx.Response(404, json={"msg": "Not found"})

    def _notes(self, request: httpx.Request) -> httpx.Response:
        email = self._caller(request)
        if email is None:
            return httpx.Response(401, json={"message": "JWT expired", "code": "PGRST301"})
        user_id = self.users[email]["id"]
        mine = [row for row in self.notes if row["user_id"] == user_id]

        target = request.url.params.get("id", "")
        target_id = target[len("eq."):] if target.startswith("eq.") else None

        if request.method == "GET":
            rows = sorted(mine, key=lambda row: row["created_at"], reverse=True)
            return httpx.Response(200, json=rows)

        if request.method == "POST":
            payload = json.loads(request.content)[0]
            if payload.get("user_id") != user_id:
                return httpx.Response(
                    403,
                    json={"message": 'new row violates row-level security policy for table "notes"'},
                )
            row = self.add_note(payload["title"], payload["content"], user_id)
            return httpx.Response(201, json=row)

        matches = [row for row in mine if str(row["id"]) == target_id]

        if request.method == "PATCH":
            if len(matches) != 1:
                return httpx.Response(
                    406,
                    json={"message": "JSON object requested, multiple (or no) rows returned"},
                )
            matches[0].update(json.loads(request.content))
            return httpx.Response(200, json=matches[0])

        if request.method == "DELETE":
            for row in matches:
                self.notes.remove(row)
            return httpx.Response(204)

        return httpx.Response(405, json={"message": "Method not allowed"})


# ══════════════════════════════════════════════════════════════════════════
# Fake Summarization Service
# ══════════════════════════════════════════════════════════════════════════


class FakeGroq:
    """
    Chat-completion endpoint answering with `completion` (or `status`/`body`
    when set). Records every request.
    """

    def __init__(self, completion: str = "Buy milk and eggs."):
        self.completion = completion
        self.status = 200
        self.body: Optional[Any] = None
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status != 200 or self.body is not None:
            if isinstance(self.body, str):
                return httpx.Response(self.status, text=self.body)
            return httpx.Response(self.status, json=self.body)
        return httpx.Response(
            200,
            json={
                "id": "chatcmpl-test",
                "object": "chat.completion",
                "choices": [
                    {
                        "index": 0,
                        "message": {"role": "assistant", "content": self.completion},
                        "finish_reason": "stop",
                    }
                ],
            },
        )

    def sent_json(self, index: int = -1) -> Dict[str, Any]:
        return json.loads(self.requests[index].content)


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="http://supabase.test",
        supabase_anon_key="anon-test-key",
        groq_api_key="groq-test-key",
        groq_api_url=GROQ_URL,
        log_level="WARNING",
    )


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def fake_groq() -> FakeGroq:
    return FakeGroq()


@pytest_asyncio.fixture
async def data_service(settings, fake_supabase):
    client = DataServiceClient.from_settings(
        settings, transport=httpx.MockTransport(fake_supabase.handler)
    )
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def summarizer(settings, fake_groq):
    service = GroqSummaryService.from_settings(
        settings, transport=httpx.MockTransport(fake_groq.handler)
    )
    yield service
    await service.aclose()


@pytest.fixture
def notes_client(data_service, summarizer) -> NotesClient:
    """A NotesClient bound to the seeded user, talking to both fakes."""
    client = NotesClient(data_service, LocalSummaryGateway(summarizer))
    client.bind_session(ACCESS_TOKEN, USER_ID)
    return client


@pytest.fixture
def auth_form(data_service) -> AuthForm:
    return AuthForm(data_service)


@pytest.fixture
def app(settings, data_service, summarizer):
    return create_app(settings=settings, data_service=data_service, summarizer=summarizer)


@pytest_asyncio.fixture
async def test_client(app):
    """
    Anonymous HTTP client for the app. Redirects are NOT followed so tests
    can assert on the Session Gate's decisions.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def signed_in_client(app, settings):
    """HTTP client carrying the seeded user's session cookies."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        cookies={
            settings.access_token_cookie: ACCESS_TOKEN,
            settings.refresh_token_cookie: REFRESH_TOKEN,
        },
    ) as client:
        yield client
