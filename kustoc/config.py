"""
Centralized configuration for Kustoc.

All hardcoded values that vary by deployment belong here.
Override via environment variables where marked.
Filesystem locations live in kustoc.paths and are resolved at call time.
"""

import os

# ============================================================
# API server
# ============================================================

API_HOST: str = os.environ.get("KUSTOC_HOST", "127.0.0.1")
"""Bind address for `kustoc serve`."""

API_PORT: int = int(os.environ.get("KUSTOC_PORT", "3001"))
"""Port for `kustoc serve`. Matches the port the SPA expects by default."""

CORS_ORIGINS: list[str] = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
]
"""Allowed CORS origins. `*` in development, comma-separated list in production."""

API_TOKEN_ENV = "KUSTOC_API_TOKEN"
"""Name of the env var holding the shared API token (read per request)."""

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("KUSTOC_LOG_LEVEL", "INFO")

_log_json = os.environ.get("KUSTOC_LOG_JSON")
LOG_JSON: bool | None = None if _log_json is None else _log_json.lower() in ("1", "true", "yes")
"""Force JSON logs on/off. Unset means auto-detect (JSON when stderr is not a TTY)."""

# ============================================================
# Storage
# ============================================================

DB_TIMEOUT_SECONDS: float = float(os.environ.get("KUSTOC_DB_TIMEOUT", "30"))
"""How long a connection waits for the SQLite write lock before failing."""

MAX_UPLOAD_BYTES: int = int(os.environ.get("KUSTOC_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
"""Largest accepted multipart upload."""

ID_MIN_DIGITS: int = 3
"""Sequential IDs are zero-padded to at least this many digits (CLI001)."""
