"""
AI Notes Backend: Access Log Middleware
========================================

What:  One access-log line per page or API request, naming who made it.
When:  Runs outside the Session Gate. The gate's findings are read back from
       request.state after the response is produced, so the line carries the
       resolved user and browser session even when the gate redirected.

Line:
    POST /notes/3/summarize 303 412.0ms user=user-1 sid=Xk3v9QaB
    GET / 307 3.1ms user=- sid=Xk3v9QaB -> /login

Privacy:
    Note text, passwords, tokens and cookie values are never logged; the
    browser session id is cut to its first eight characters.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ainotes.middleware.session_gate import is_exempt

logger = logging.getLogger("ainotes.access")


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        # Health checks and assets bypass the gate and the log alike
        if is_exempt(path):
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        user = getattr(request.state, "user", None)
        user_id = user.id if user is not None else "-"
        sid = (getattr(request.state, "browser_session_id", None) or "-")[:8]
        status = response.status_code
        redirect = response.headers.get("location") if 300 <= status < 400 else None

        logger.log(
            _level_for(status),
            "%s %s %d %.1fms user=%s sid=%s%s",
            request.method,
            path,
            status,
            duration_ms,
            user_id,
            sid,
            f" -> {redirect}" if redirect else "",
            extra={
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "user_id": user_id,
                "redirect": redirect,
            },
        )
        return response
