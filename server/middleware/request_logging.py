"""Request logging and last-resort error middleware."""

import time

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from core.logging import get_logger, log_request

logger = get_logger("http")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        log_request(logger, request.method, request.url.path, response.status_code,
                    start, time.perf_counter())
        return response


class CatchAllExceptionsMiddleware(BaseHTTPMiddleware):
    """Turn anything unhandled into a generic 500 envelope.

    The exception text goes to the log only.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error("Unhandled exception", path=request.url.path,
                         error_type=type(e).__name__, error=str(e), exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "success": False,
                    "error": "Internal server error",
                    "code": "INTERNAL_ERROR"
                }
            )
