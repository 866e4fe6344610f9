from __future__ import annotations

import logging
import re
import time
from threading import Lock
from typing import Callable, Dict, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from .responses import error_response

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60
PROCESS_PATH = re.compile(r"^/api/tools/[^/]+/process/?$")


class RateLimiter:
    """
    Simple in-memory rate limiter using a fixed window algorithm.
    Tracks requests per client address within a one-minute window.
    """

    def __init__(self, requests_per_minute: int = 60, clock: Callable[[], float] = time.time):
        self.rpm = requests_per_minute
        self.clock = clock
        # identifier -> (count, window_start_time)
        self.requests: Dict[str, Tuple[int, float]] = {}
        self._lock = Lock()

    @property
    def enabled(self) -> bool:
        return self.rpm > 0

    def is_allowed(self, identifier: str) -> bool:
        if not self.enabled:
            return True

        now = self.clock()
        with self._lock:
            count, start_time = self.requests.get(identifier, (0, now))

            if now - start_time >= WINDOW_SECONDS:
                # New window
                self.requests[identifier] = (1, now)
                return True

            if count >= self.rpm:
                return False

            self.requests[identifier] = (count + 1, start_time)
            return True

    def cleanup(self) -> int:
        """Drop expired windows so idle clients do not accumulate."""
        now = self.clock()
        with self._lock:
            keys_to_delete = [key for key, value in self.requests.items() if now - value[1] >= WINDOW_SECONDS]
            for key in keys_to_delete:
                del self.requests[key]
        return len(keys_to_delete)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies a ``RateLimiter`` to tool processing requests only.

    Catalog, health and download endpoints are never limited. A rejected
    request gets a 429 failure envelope and never reaches upload intake.
    """

    def __init__(self, app: ASGIApp, limiter: RateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method == "POST" and PROCESS_PATH.match(request.url.path):
            client = request.client.host if request.client else "unknown"
            if not self.limiter.is_allowed(client):
                logger.warning(f"Rate limit exceeded for {client} on {request.url.path}")
                return error_response(
                    429,
                    "Too many requests. Please try again later.",
                    headers={"Retry-After": str(WINDOW_SECONDS)},
                )
        return await call_next(request)
