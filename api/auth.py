"""
API authentication for Kustoc.

Single shared token read from KUSTOC_API_TOKEN on every request, so rotating
the variable takes effect without a restart.

Token extraction order:
1. Authorization: Bearer <token> header
2. X-API-Token header
3. api_token query parameter (for testing)

When KUSTOC_API_TOKEN is unset every request is allowed and a warning is
logged once (development mode).

Usage:
    from api.auth import require_auth

    app.include_router(clients_router, dependencies=[Depends(require_auth)])
"""

import logging
import os
import secrets

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from kustoc import config

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)

_warned_disabled = False


def _get_token_from_env() -> str | None:
    """Get the expected token from environment."""
    return os.environ.get(config.API_TOKEN_ENV) or None


def _get_token_from_request(request: Request) -> str | None:
    """
    Extract token from request.

    Checks in order:
    1. Authorization: Bearer <token> header
    2. X-API-Token header (alternative)
    3. api_token query parameter (for testing/debugging)
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]

    x_token = request.headers.get("X-API-Token")
    if x_token:
        return x_token

    query_token = request.query_params.get("api_token")
    if query_token:
        return query_token

    return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


async def require_auth(
    request: Request, credentials: HTTPAuthorizationCredentials | None = Depends(security)
) -> str:
    """
    Dependency that requires the shared token when one is configured.

    Returns the validated token, or "auth_disabled" in development mode.
    Raises HTTPException 401 on a missing or wrong token.
    """
    global _warned_disabled
    expected_token = _get_token_from_env()

    if not expected_token:
        if not _warned_disabled:
            logger.warning(
                "%s not set - authentication disabled! Set it in production.", config.API_TOKEN_ENV
            )
            _warned_disabled = True
        return "auth_disabled"

    provided_token = _get_token_from_request(request)
    if not provided_token:
        logger.warning("Auth failed: no token provided for %s", request.url.path)
        raise _unauthorized("Authentication required. Provide Bearer token in Authorization header.")

    if not secrets.compare_digest(provided_token.encode(), expected_token.encode()):
        logger.warning("Auth failed: invalid token for %s", request.url.path)
        raise _unauthorized("Invalid authentication token.")

    logger.debug("Auth succeeded for %s", request.url.path)
    return provided_token
