"""
AI Notes Backend: Request Context
==================================

What:  Per-request correlation for logs: a short request id, echoed in the
       X-Request-ID response header, and a session label naming the user and
       browser session the Session Gate resolved.
How:   Both live in ContextVars. RequestContextFilter copies them onto every
       log record, so any logger (services, routes, the access log) can print
       them through the root format in setup_logging().

Request Id:
    A client-sent X-Request-ID is kept only when it is a short token
    (letters, digits, '.', '_', '-'); anything else is replaced so header
    content never reaches the logs verbatim.

Session Label:
    "<user id>@<browser session prefix>" once the gate has run, "anon@..."
    without a user, "-" before the gate (and on exempt paths).
"""

import logging
import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
session_var: ContextVar[str] = ContextVar("session", default="-")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def incoming_request_id(request: Request) -> str:
    sent = request.headers.get(REQUEST_ID_HEADER, "")
    return sent if _VALID_REQUEST_ID.match(sent) else new_request_id()


def session_label(user_id: Optional[str], browser_session_id: Optional[str]) -> str:
    sid = (browser_session_id or "")[:8] or "-"
    return f"{user_id or 'anon'}@{sid}"


class RequestContextFilter(logging.Filter):
    """Adds `request_id` and `session` attributes to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        record.session = session_var.get()
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = incoming_request_id(request)
        request_id_var.set(rid)
        session_var.set("-")
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
