"""
AI Notes Backend: Session Gate
===============================

What:  Establishes the current user on every request and enforces the
       separation between public-only and protected pages.
How:   1. Reads the access/refresh token cookies
       2. Asks the identity API who the access token belongs to; when it is
          rejected, trades the refresh token for a new pair and writes the
          new cookies on the response
       3. Applies decide(path, user_present) and either redirects (307) or
          passes the request through
Who:   Registered by the application factory; reads the Data Service client
       from app.state.

Routing Policy:
    | public-only path | user present | action          |
    |------------------|--------------|-----------------|
    | no               | no           | redirect /login |
    | no               | yes          | allow           |
    | yes              | no           | allow           |
    | yes              | yes          | redirect /      |

A public-only path includes everything below it, so the login page's own
form posts (/login/toggle) reach anonymous users.

Exempt paths: /static/..., /favicon.ico, /health.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from ainotes.client.registry import new_session_id
from ainotes.config import Settings
from ainotes.exceptions import AINotesError, AuthenticationError
from ainotes.middleware.request_id import session_label, session_var
from ainotes.schemas.auth import AuthSession, User
from ainotes.services.data_service import DataServiceClient

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/favicon.ico", "/health"}
EXEMPT_PREFIXES = ("/static/",)

# Refresh tokens outlive the access token; the identity API decides validity
REFRESH_COOKIE_MAX_AGE = 60 * 60 * 24 * 30
BROWSER_SESSION_MAX_AGE = 60 * 60 * 24 * 30


class GateAction(str, Enum):
    ALLOW = "allow"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_HOME = "redirect_home"


def is_public_only(path: str, public_paths: FrozenSet[str]) -> bool:
    """A public path covers its sub-paths too (/login covers /login/toggle)."""
    for public in public_paths:
        if path == public:
            return True
        if public != "/" and path.startswith(public.rstrip("/") + "/"):
            return True
    return False


def decide(
    path: str,
    user_present: bool,
    public_paths: FrozenSet[str] = frozenset({"/login"}),
) -> GateAction:
    """Pure routing decision for one request."""
    if is_public_only(path, public_paths):
        return GateAction.REDIRECT_HOME if user_present else GateAction.ALLOW
    return GateAction.ALLOW if user_present else GateAction.REDIRECT_LOGIN


def is_exempt(path: str) -> bool:
    return path in EXEMPT_PATHS or path.startswith(EXEMPT_PREFIXES)


# ══════════════════════════════════════════════════════════════════════════
# Session resolution
# ══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SessionResolution:
    """
    Outcome of reading the session cookies.

    refreshed: New token pair to write back, when a refresh happened
    clear:     The cookies hold tokens the identity API rejected
    """

    user: Optional[User] = None
    access_token: Optional[str] = None
    refreshed: Optional[AuthSession] = None
    clear: bool = False


async def _refresh(data: DataServiceClient, refresh_token: str) -> SessionResolution:
    try:
        session = await data.refresh_session(refresh_token)
        user = session.user or await data.get_user(session.access_token)
    except AuthenticationError as e:
        logger.info("Refresh token rejected: %s", e.message)
        return SessionResolution(clear=True)
    except AINotesError as e:
        logger.warning("Session refresh failed: %s", e.message)
        return SessionResolution()
    logger.info("Session refreshed for user %s", user.id)
    return SessionResolution(user=user, access_token=session.access_token, refreshed=session)


async def resolve_session(
    data: DataServiceClient,
    access_token: Optional[str],
    refresh_token: Optional[str],
) -> SessionResolution:
    """
    Find the user behind the session cookies.

    Only a rejected token clears the cookies. Any other identity API failure
    (outage, timeout) counts as "no user" for this request but leaves the
    cookies alone.
    """
    if access_token:
        try:
            user = await data.get_user(access_token)
            return SessionResolution(user=user, access_token=access_token)
        except AuthenticationError:
            if not refresh_token:
                return SessionResolution(clear=True)
        except AINotesError as e:
            logger.warning("Could not validate session: %s", e.message)
            return SessionResolution()

    if refresh_token:
        return await _refresh(data, refresh_token)
    return SessionResolution()


# ══════════════════════════════════════════════════════════════════════════
# Cookies
# ══════════════════════════════════════════════════════════════════════════


def set_session_cookies(response: Response, session: AuthSession, settings: Settings) -> None:
    response.set_cookie(
        settings.access_token_cookie,
        session.access_token,
        max_age=session.expires_in,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    response.set_cookie(
        settings.refresh_token_cookie,
        session.refresh_token,
        max_age=REFRESH_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def clear_session_cookies(response: Response, settings: Settings) -> None:
    response.delete_cookie(settings.access_token_cookie, httponly=True, samesite="lax")
    response.delete_cookie(settings.refresh_token_cookie, httponly=True, samesite="lax")


# ══════════════════════════════════════════════════════════════════════════
# Middleware
# ══════════════════════════════════════════════════════════════════════════


class SessionGateMiddleware(BaseHTTPMiddleware):
    """
    Sets on request.state:
        user:               User or None
        access_token:       Current (possibly refreshed) access token or None
        browser_session_id: Key of this browser's client state

    and the session label every later log line carries (see request_id).
    """

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if is_exempt(path):
            return await call_next(request)

        settings = self.settings
        data: DataServiceClient = request.app.state.data_service
        resolution = await resolve_session(
            data,
            request.cookies.get(settings.access_token_cookie),
            request.cookies.get(settings.refresh_token_cookie),
        )

        sid = request.cookies.get(settings.browser_session_cookie)
        new_sid = sid is None
        if new_sid:
            sid = new_session_id()

        request.state.user = resolution.user
        request.state.access_token = resolution.access_token
        request.state.browser_session_id = sid
        user_id = resolution.user.id if resolution.user is not None else None
        session_var.set(session_label(user_id, sid))

        action = decide(path, resolution.user is not None, settings.public_paths_set)
        if action is GateAction.REDIRECT_LOGIN:
            logger.debug("No session for %s; redirecting to login", path)
            response: Response = RedirectResponse(settings.login_path, status_code=307)
        elif action is GateAction.REDIRECT_HOME:
            logger.debug("Signed-in user on %s; redirecting home", path)
            response = RedirectResponse(settings.home_path, status_code=307)
        else:
            response = await call_next(request)

        # Handlers that sign in or out write the session cookies themselves
        handler_wrote = getattr(request.state, "session_cookies_written", False)
        if not handler_wrote and resolution.refreshed is not None:
            set_session_cookies(response, resolution.refreshed, settings)
        elif not handler_wrote and resolution.clear:
            clear_session_cookies(response, settings)
        if new_sid:
            response.set_cookie(
                settings.browser_session_cookie,
                sid,
                max_age=BROWSER_SESSION_MAX_AGE,
                httponly=True,
                secure=settings.cookie_secure,
                samesite="lax",
            )
        return response
