"""
Observability: structured logging and request IDs.

Usage:
    from kustoc.observability import configure_logging, RequestContext

    configure_logging("INFO", json_format=True)

    with RequestContext() as ctx:
        logger.info("Importing clients")  # tagged with ctx.request_id

In the API, CorrelationIdMiddleware opens a RequestContext per request from
the X-Request-ID header (or a fresh ID) and echoes it on the response.
"""

from .context import RequestContext, generate_request_id, get_request_id, set_request_id
from .logging import HumanFormatter, JSONFormatter, configure_logging
from .middleware import AccessLogMiddleware, CorrelationIdMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    # Context
    "RequestContext",
    "generate_request_id",
    "get_request_id",
    "set_request_id",
    # Middleware
    "CorrelationIdMiddleware",
    "AccessLogMiddleware",
]
