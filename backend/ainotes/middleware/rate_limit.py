"""
AI Notes Backend: Rate Limiting Middleware
===========================================

What:  Per-IP sliding window limiter for every path that spends
       Summarization Service quota billed to the server's credential:
       the JSON API (/api/...) and the notes page's summarize post
       (/notes/{id}/summarize).
How:   Each IP keeps a list of request timestamps. Timestamps older than the
       window are dropped; once the remaining count reaches the limit the
       request is answered with 429 and a Retry-After header.

Single-process only: the counters live in this worker's memory.
"""

import logging
import re
import time
from collections import defaultdict
from typing import Dict, List, Pattern

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ainotes.exceptions import RateLimitExceededError
from ainotes.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

SUMMARY_PATHS = re.compile(r"^/api/|^/notes/[^/]+/summarize$")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Args:
        max_requests: Requests allowed per IP within one window, shared by
                      every limited path
        window:       Window length in seconds
        paths:        Only paths matching this pattern are limited
    """

    CLEANUP_EVERY = 1000

    def __init__(
        self,
        app,
        max_requests: int = 30,
        window: int = 60,
        paths: Pattern[str] = SUMMARY_PATHS,
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window = window
        self.paths = paths
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if not self.paths.match(path):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= self.max_requests:
            retry_after = int(recent[0] + self.window - now) + 1
            error = RateLimitExceededError(retry_after=retry_after)
            logger.warning(
                "Rate limit exceeded for IP %s on %s: %d requests in %ds window",
                client_ip, path, len(recent), self.window,
            )
            return JSONResponse(
                status_code=429,
                content={"error": error.message, "request_id": request_id_var.get("")},
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)
        self._seen += 1
        if self._seen % self.CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Forget IPs with no request inside the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]
        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
