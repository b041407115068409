"""
AI Notes Backend: Data Service Client
======================================

What:  Async client for the managed backend (Supabase): row CRUD on the
       `notes` relation (PostgREST) and identity operations (GoTrue).
Why:   Persistence, identity and authorization are delegated entirely to the
       Data Service. This module is the only place that speaks its protocol.
How:   One shared httpx.AsyncClient per process. Every row call carries the
       public `apikey` header plus the caller's access token as bearer, so
       row-level security applies to the calling user.
Who:   Constructed once in the application lifespan and injected into the
       Session Gate, the Notes Client and the Auth Form.

Error Contract:
    Every failure raises DataServiceError (or AuthenticationError for
    rejected credentials/tokens) whose message comes from the Data Service's
    own error payload when it has one:
        GoTrue:    {"msg": ...} / {"error_description": ...} / {"error": ...}
        PostgREST: {"message": ..., "code": ..., "details": ..., "hint": ...}
    No call is retried.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ainotes.config import Settings
from ainotes.exceptions import AuthenticationError, DataServiceError
from ainotes.schemas.auth import AuthSession, SignUpResult, User
from ainotes.schemas.note import Note, NoteCreate, NoteUpdate

logger = logging.getLogger(__name__)

REST_PREFIX = "/rest/v1"
AUTH_PREFIX = "/auth/v1"

# PostgREST returns a single JSON object instead of an array with this Accept
# header, and answers 406 when zero or several rows match.
SINGLE_OBJECT = "application/vnd.pgrst.object+json"

_ERROR_KEYS = ("msg", "message", "error_description", "error")

ModelT = TypeVar("ModelT", bound=BaseModel)


def extract_error_message(response: httpx.Response) -> str:
    """
    Pull a human-readable message out of a Data Service error response.

    Falls back to a generic string naming the status code when the body is
    not JSON or carries none of the known message keys.
    """
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        for key in _ERROR_KEYS:
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()

    return f"Data service request failed with status {response.status_code}."


def _parse(model: Type[ModelT], data: Any) -> ModelT:
    """Validate a Data Service payload, reporting a malformed one as DataServiceError."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        logger.error("Unexpected %s payload from data service: %s", model.__name__, e)
        raise DataServiceError(
            message="The data service returned an unexpected record.",
            context={"model": model.__name__},
        ) from e


class DataServiceClient:
    """
    Explicitly constructed client for the Data Service.

    Lifecycle:
        client = DataServiceClient.from_settings(settings)
        ...
        await client.aclose()

    Args:
        base_url:  Supabase project URL
        anon_key:  Public anonymous key
        table:     Name of the notes relation
        timeout:   Per-request timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        *,
        table: str = "notes",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.anon_key = anon_key
        self.table = table
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"apikey": anon_key},
        )
        logger.info("DataServiceClient initialized for %s (table=%s)", base_url, table)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "DataServiceClient":
        return cls(
            settings.supabase_url,
            settings.supabase_anon_key,
            table=settings.notes_table,
            timeout=settings.http_timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the pooled connections. Called on application shutdown."""
        await self._http.aclose()

    # ── Transport ─────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        access_token: Optional[str] = None,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Send one request and return the decoded JSON body (None when empty).

        Raises:
            AuthenticationError: 401/403 anywhere, or any 4xx from the
                identity API (bad credentials, bad refresh token)
            DataServiceError: every other failure, including transport errors
        """
        request_headers = {"Authorization": f"Bearer {access_token or self.anon_key}"}
        if headers:
            request_headers.update(headers)

        try:
            response = await self._http.request(
                method, path, params=params, json=json, headers=request_headers
            )
        except httpx.HTTPError as e:
            logger.error("Data service %s %s failed: %s", method, path, type(e).__name__)
            raise DataServiceError(
                message="Could not reach the data service. Please try again.",
                context={"path": path, "error_type": type(e).__name__},
            ) from e

        if response.status_code >= 400:
            message = extract_error_message(response)
            is_auth_call = path.startswith(AUTH_PREFIX)
            logger.warning(
                "Data service %s %s returned %d: %s",
                method, path, response.status_code, message,
            )
            if response.status_code in (401, 403) or (
                is_auth_call and response.status_code < 500
            ):
                raise AuthenticationError(
                    message=message,
                    status_code=response.status_code,
                    context={"path": path},
                )
            raise DataServiceError(
                message=message,
                status_code=response.status_code,
                context={"path": path},
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise DataServiceError(
                message="The data service returned an unreadable response.",
                status_code=response.status_code,
                context={"path": path},
            ) from e

    @property
    def _table_path(self) -> str:
        return f"{REST_PREFIX}/{self.table}"

    # ══════════════════════════════════════════════════════════════════════
    # Row operations
    # ══════════════════════════════════════════════════════════════════════

    async def select_notes(self, access_token: str) -> List[Note]:
        """
        All notes visible to the caller, newest first. No pagination.

        Row-level security limits the result to the caller's own notes.
        """
        rows = await self._request(
            "GET",
            self._table_path,
            access_token=access_token,
            params={"select": "*", "order": "created_at.desc"},
        )
        return [_parse(Note, row) for row in rows or []]

    async def insert_note(self, access_token: str, note: NoteCreate) -> Note:
        """Insert one note and return the stored row (with id and created_at)."""
        row = await self._request(
            "POST",
            self._table_path,
            access_token=access_token,
            params={"select": "*"},
            json=[note.model_dump()],
            headers={"Prefer": "return=representation", "Accept": SINGLE_OBJECT},
        )
        return _parse(Note, row)

    async def update_note(self, access_token: str, note_id: str, changes: NoteUpdate) -> Note:
        """
        Update title/content of one note and return the stored row.

        A note that does not exist (or is not the caller's) matches zero rows;
        PostgREST then answers 406 and this raises DataServiceError.
        """
        row = await self._request(
            "PATCH",
            self._table_path,
            access_token=access_token,
            params={"id": f"eq.{note_id}", "select": "*"},
            json=changes.model_dump(),
            headers={"Prefer": "return=representation", "Accept": SINGLE_OBJECT},
        )
        return _parse(Note, row)

    async def delete_note(self, access_token: str, note_id: str) -> None:
        await self._request(
            "DELETE",
            self._table_path,
            access_token=access_token,
            params={"id": f"eq.{note_id}"},
        )

    # ══════════════════════════════════════════════════════════════════════
    # Identity operations
    # ══════════════════════════════════════════════════════════════════════

    async def sign_up(self, email: str, password: str) -> SignUpResult:
        """
        Register a new account.

        With email confirmation enabled the identity API returns the bare user
        object; otherwise it returns a full session with the user embedded.
        """
        data = await self._request(
            "POST",
            f"{AUTH_PREFIX}/signup",
            json={"email": email, "password": password},
        ) or {}

        if "access_token" in data:
            session = _parse(AuthSession, data)
            return SignUpResult(user=session.user, session=session)
        user_data = data.get("user") or data
        user = _parse(User, user_data) if user_data.get("id") else None
        return SignUpResult(user=user)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        data = await self._request(
            "POST",
            f"{AUTH_PREFIX}/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return _parse(AuthSession, data)

    async def refresh_session(self, refresh_token: str) -> AuthSession:
        """Trade a refresh token for a new token pair."""
        data = await self._request(
            "POST",
            f"{AUTH_PREFIX}/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return _parse(AuthSession, data)

    async def get_user(self, access_token: str) -> User:
        """Resolve the user behind an access token (AuthenticationError if invalid)."""
        data = await self._request("GET", f"{AUTH_PREFIX}/user", access_token=access_token)
        return _parse(User, data)

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", f"{AUTH_PREFIX}/logout", access_token=access_token)

    async def ping(self) -> bool:
        """Lightweight reachability probe used by GET /health."""
        try:
            await self._request("GET", f"{AUTH_PREFIX}/health")
            return True
        except DataServiceError:
            return False
