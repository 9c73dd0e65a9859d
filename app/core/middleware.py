"""Request logging middleware: one line when a request starts, one when it ends."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

ANONYMOUS = "anonymous"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log method, path, status and elapsed time for every request.

    The authenticated user id is read from request.state.user_id, which the
    authorization dependency sets once a token has been accepted. Bodies and
    headers are never logged (they carry passwords and bearer tokens).
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start = time.perf_counter()
        logger.info("Request started: method=%s path=%s", request.method, request.url.path)
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                "Request failed: method=%s path=%s elapsed_ms=%.1f user_id=%s",
                request.method,
                request.url.path,
                elapsed_ms,
                _user_id(request),
            )
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Request completed: method=%s path=%s status=%s elapsed_ms=%.1f user_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            _user_id(request),
        )
        return response


def _user_id(request: Request) -> str:
    user_id = getattr(request.state, "user_id", None)
    return str(user_id) if user_id is not None else ANONYMOUS
