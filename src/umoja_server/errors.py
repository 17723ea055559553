"""Global exception handlers — map SDK exceptions to HTTP responses.

Every SDK failure is an ``UmojaError`` carrying its own status code, so one
handler covers the whole hierarchy and route handlers stay focused on the
happy path.  Error bodies have the shape ``{"error": <message>}``; upstream
(LLM) failures additionally carry ``details``.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from umoja_assessment.errors import UmojaError, UpstreamError

logger = logging.getLogger(__name__)


async def umoja_error_handler(request: Request, exc: UmojaError) -> JSONResponse:
    """Map an ``UmojaError`` to its status code and client-safe message.

    Server-side failures (5xx) are logged at error level with the internal
    message; client errors are logged at warning level.
    """
    if exc.status_code >= 500:
        logger.error(
            "%s [%d] at %s: %s (%s)",
            type(exc).__name__, exc.status_code, request.url.path, exc.message, exc.details,
        )
    else:
        logger.warning(
            "%s [%d] at %s: %s",
            type(exc).__name__, exc.status_code, request.url.path, exc.message,
        )

    content: dict = {"error": exc.public_message}
    if isinstance(exc, UpstreamError) and exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Keep framework-raised errors (404 route, 403 proxy secret) in the same shape."""
    logger.warning("HTTP %d at %s: %s", exc.status_code, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed or missing request fields → 400."""
    logger.warning("Invalid request at %s: %s", request.url.path, exc.errors())
    fields = sorted({
        ".".join(str(p) for p in err.get("loc", ())[1:]) or "body"
        for err in exc.errors()
    })
    return JSONResponse(
        status_code=400,
        content={"error": "Missing or invalid fields: " + ", ".join(fields)},
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
