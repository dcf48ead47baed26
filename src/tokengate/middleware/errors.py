"""Top-level error boundary.

Learn: Known failures (AuthError subclasses, validation errors, HTTP
exceptions) are turned into responses by FastAPI's exception handlers
further in. Anything that still escapes — a dropped database connection,
a bug — lands here: the full traceback goes to the log, the caller gets a
generic 500 that reveals nothing about the internals.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from tokengate.errors import UnexpectedError

logger = structlog.get_logger()


class ErrorBoundaryMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception(
                "request.unhandled_error",
                method=request.method,
                path=request.url.path,
            )
            error = UnexpectedError()
            return JSONResponse(status_code=error.status_code, content={"detail": error.detail})
