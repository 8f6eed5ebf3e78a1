"""
API Middleware - Request/response processing.

Provides:
- Request context (ID propagation and latency logging with the search query)
- TicketHubError to JSON conversion, with Retry-After on retryable errors
- Per-client request budget on the search routes
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from tickethub.config.errors import ErrorCode, RateLimitError, TicketHubError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
DEFAULT_RETRY_AFTER = 5

CallNext = Callable[[Request], Awaitable[Response]]


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and log its outcome."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.2f}"

        query = request.query_params.get("query")
        logger.info(
            "%s %s%s status=%d latency_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            f" query={query[:50]!r}" if query else "",
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert exceptions to `{"error": {...}, "request_id": ...}` responses."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        request_id = getattr(request.state, "request_id", "unknown")
        try:
            return await call_next(request)
        except TicketHubError as e:
            log = logger.warning if e.retryable else logger.error
            log(
                "%s: %s request_id=%s details=%s",
                e.code.value,
                e.message,
                request_id,
                e.details,
            )

            headers = None
            if e.retryable:
                retry_after = e.details.get("retry_after", DEFAULT_RETRY_AFTER)
                headers = {"Retry-After": str(retry_after)}
            return _error_response(
                _error_code_to_status(e.code), e.to_dict(), request_id, headers
            )
        except Exception:
            logger.exception("Unhandled error request_id=%s", request_id)
            return _error_response(
                500,
                {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": "Internal server error",
                    "details": {},
                    "retryable": False,
                },
                request_id,
            )


class SearchRateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed one-minute request budget per client IP for the search routes.

    Counters only live for the current window and are dropped wholesale when
    it rolls over, so memory is bounded by the clients seen in one minute.
    Other paths (health, docs) are not counted.
    """

    def __init__(
        self,
        app: ASGIApp,
        requests_per_minute: int = 120,
        path_prefix: str = "/api/search",
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.path_prefix = path_prefix
        self._clock = clock
        self._window = -1
        self._counts: dict[str, int] = {}

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        now = self._clock()
        window = int(now // 60)
        if window != self._window:
            self._window = window
            self._counts.clear()

        client = request.client.host if request.client else "unknown"
        used = self._counts.get(client, 0)
        if used >= self.requests_per_minute:
            raise RateLimitError(
                "Too many search requests",
                {
                    "limit": self.requests_per_minute,
                    "retry_after": 60 - int(now % 60),
                },
            )
        self._counts[client] = used + 1

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_minute)
        response.headers["X-RateLimit-Remaining"] = str(
            self.requests_per_minute - used - 1
        )
        return response


def _error_response(
    status_code: int,
    error: dict[str, Any],
    request_id: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "request_id": request_id},
        headers=headers,
    )


def _error_code_to_status(code: ErrorCode) -> int:
    """Map error codes to HTTP status codes."""
    mapping = {
        ErrorCode.VALIDATION_ERROR: 400,
        ErrorCode.NOT_FOUND: 404,
        ErrorCode.SECURITY_RATE_LIMITED: 429,
        ErrorCode.SEARCH_REBUILD_FAILED: 500,
        ErrorCode.SEARCH_INDEX_UNAVAILABLE: 503,
        ErrorCode.STORAGE_CONNECTION_FAILED: 503,
        ErrorCode.STORAGE_READ_FAILED: 503,
        ErrorCode.STORAGE_WRITE_FAILED: 503,
    }
    return mapping.get(code, 500)
