"""HTTP Middleware — request body cap and per-client rate limiting.

Invariants:
    - Bodies larger than max_body_bytes get 413 before any route runs
    - Each client host gets rate_limit_max requests per window; excess gets 429
    - Health probes are exempt from rate limiting
    - Middleware errors answer with the same envelope as NoteboardError handlers

Design Decisions:
    - Responses built here, not raised: exceptions raised in middleware bypass
      FastAPI's exception handlers
    - Registered before CORSMiddleware so rejections still carry CORS headers
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from noteboard.core.errors import NoteboardError, PayloadTooLargeError, RateLimitExceededError
from noteboard.core.rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

EXEMPT_PREFIXES = ("/api/health",)


def _error_response(exc: NoteboardError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


def register_middleware(
    app: FastAPI, limiter: FixedWindowRateLimiter, max_body_bytes: int,
) -> None:
    """Attach body-limit and rate-limit middleware to the app."""

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                too_large = int(declared) > max_body_bytes
            except ValueError:
                too_large = False
        elif request.method in ("POST", "PUT", "PATCH"):
            too_large = len(await request.body()) > max_body_bytes
        else:
            too_large = False
        if too_large:
            return _error_response(PayloadTooLargeError(max_body_bytes))
        return await call_next(request)

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        if request.url.path.startswith(EXEMPT_PREFIXES) or request.method == "OPTIONS":
            return await call_next(request)
        client = request.client.host if request.client else "unknown"
        try:
            limiter.hit(client)
        except RateLimitExceededError as exc:
            logger.warning(
                "Rate limit exceeded",
                extra={"client": client, "path": request.url.path, "error_code": exc.code},
            )
            response = _error_response(exc)
            response.headers["Retry-After"] = str(
                max(1, (exc.context.retry_after_ms or 0) // 1000),
            )
            return response
        return await call_next(request)
