import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request with status and latency."""

    def __init__(self, app, logger: logging.Logger = None):
        super().__init__(app)
        self.logger = logger or logging.getLogger("url_shortener.http")

    async def dispatch(self, request: Request, call_next: Callable):
        start_time = time.perf_counter()
        response = await call_next(request)
        latency_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        self.logger.info(
            f"request ip={client_ip} method={request.method} path={request.url.path} "
            f"status={response.status_code} latency={latency_ms:.2f}ms "
            f"user_agent={request.headers.get('user-agent', '')}"
        )
        return response
