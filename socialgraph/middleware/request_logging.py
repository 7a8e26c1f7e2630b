from fastapi import Request
import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("socialgraph")

# Polled by load balancers and browsers; not worth a log line each
QUIET_PATHS = {"/", "/favicon.ico"}

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request with status and duration, plus an X-Process-Time header"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(f"{method} {path} raised after {elapsed_ms:.1f}ms")
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Process-Time"] = f"{elapsed_ms:.1f}ms"

        if request.url.path not in QUIET_PATHS:
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(level, f"{method} {path} -> {response.status_code} in {elapsed_ms:.1f}ms")

        return response
