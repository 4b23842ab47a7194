"""
Request-scoped context carried through contextvars.

Works for both the async middleware and the sync endpoints FastAPI runs in
its thread pool: the worker thread inherits a copy of the request's context.
"""

import contextvars
import re
import uuid

_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)

# Incoming IDs are echoed into headers and logs, so keep them short and printable
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def get_request_id() -> str | None:
    """The current request ID, or None outside a request."""
    return _request_id_var.get()


def set_request_id(request_id: str) -> contextvars.Token:
    """Set the request ID in context. Returns token for reset."""
    return _request_id_var.set(request_id)


def generate_request_id() -> str:
    return f"req-{uuid.uuid4().hex[:16]}"


def is_valid_request_id(value: str | None) -> bool:
    return bool(value) and _VALID_REQUEST_ID.match(value) is not None


class RequestContext:
    """
    Context manager binding a request ID for the duration of a block.

        with RequestContext() as ctx:
            logger.info("Processing")  # log line carries ctx.request_id

        with RequestContext(request_id="req-abc123"):
            ...
    """

    def __init__(self, request_id: str | None = None):
        self.request_id = request_id or generate_request_id()
        self._token: contextvars.Token | None = None

    def __enter__(self) -> "RequestContext":
        self._token = set_request_id(self.request_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _request_id_var.reset(self._token)
            self._token = None
