"""
ASGI middleware: correlation IDs and access logging.
"""

import logging
import time

from .context import RequestContext, generate_request_id, is_valid_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = b"x-request-id"


class CorrelationIdMiddleware:
    """
    Bind a request ID for the whole request and echo it as X-Request-ID.

    A well-formed incoming X-Request-ID is reused; anything else is replaced
    by a generated one.

        app.add_middleware(CorrelationIdMiddleware)
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = None
        for key, value in scope.get("headers", []):
            if key.lower() == REQUEST_ID_HEADER:
                candidate = value.decode("latin-1")
                if is_valid_request_id(candidate):
                    request_id = candidate
                else:
                    logger.warning("Ignoring malformed X-Request-ID header")
                break

        if not request_id:
            request_id = generate_request_id()

        async def send_with_request_id(message):
            if message["type"] == "http.response.start":
                headers_list = [
                    (k, v) for k, v in message.get("headers", []) if k.lower() != REQUEST_ID_HEADER
                ]
                headers_list.append((REQUEST_ID_HEADER, request_id.encode("latin-1")))
                message["headers"] = headers_list
            await send(message)

        with RequestContext(request_id=request_id):
            await self.app(scope, receive, send_with_request_id)


class AccessLogMiddleware:
    """
    One log line per request: method, path, status and duration.

    Must sit inside CorrelationIdMiddleware so the line carries the request ID.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        status = {"code": 500}

        async def send_with_status(message):
            if message["type"] == "http.response.start":
                status["code"] = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_with_status)
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "%s %s -> %d (%.1f ms)",
                scope.get("method", "-"),
                scope.get("path", "-"),
                status["code"],
                duration_ms,
                extra={"status_code": status["code"], "duration_ms": round(duration_ms, 1)},
            )
