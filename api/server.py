"""
Kustoc API Server - REST API for the CRM single-page app.
"""
# ruff: noqa: S104
# S104: Development server binding (configurable via KUSTOC_HOST)

import logging
import sqlite3
from datetime import UTC, datetime

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import kustoc
from api.api_keys_router import api_keys_router
from api.auth import require_auth
from api.clients_router import clients_router
from api.copilots_router import copilots_router
from api.invoices_router import invoices_router
from api.jumps_router import jumps_router
from api.projects_router import projects_router
from api.reference_router import dashboard_router, reference_router
from api.referrals_router import referrals_router
from api.response_models import HealthResponse
from api.settings_router import settings_router
from kustoc import config, schema, uploads
from kustoc import db as db_module
from kustoc.errors import KustocError
from kustoc.observability import AccessLogMiddleware, CorrelationIdMiddleware, configure_logging

logger = logging.getLogger(__name__)

# FastAPI app initialization
app = FastAPI(
    title="Kustoc API",
    description="CRM backend: clients, jumps, copilots, projects, invoices, API keys and referrals",
    version=kustoc.__version__,
)

# CORS middleware - configurable via CORS_ORIGINS env var
# Dev default: allow all origins; Production: set CORS_ORIGINS to comma-separated list
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
# Added last = outermost: the request ID is bound before the access log line
app.add_middleware(AccessLogMiddleware)
app.add_middleware(CorrelationIdMiddleware)

# ==== Routers ====
for router in (
    clients_router,
    jumps_router,
    copilots_router,
    projects_router,
    invoices_router,
    api_keys_router,
    referrals_router,
    reference_router,
    settings_router,
    dashboard_router,
):
    app.include_router(router, dependencies=[Depends(require_auth)])


# ==== DB Startup & Migrations ====
@app.on_event("startup")
async def run_db_migrations_on_startup():
    """Converge the schema and log DB info at startup."""
    try:
        logger.info("=== Kustoc Startup ===")
        db_module.run_startup_migrations()
    except Exception as e:
        # Requests retry convergence through api.deps.get_db
        logger.warning("DB startup check failed: %s", e)


# ==== Error mapping ====


def _error(status_code: int, detail, error_code: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, "error_code": error_code}, headers=headers)


@app.exception_handler(KustocError)
async def kustoc_error_handler(request: Request, exc: KustocError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.error_code, exc.message)
    return _error(exc.status_code, exc.message, exc.error_code)


@app.exception_handler(sqlite3.Error)
async def sqlite_error_handler(request: Request, exc: sqlite3.Error):
    logger.error("%s %s storage error: %s", request.method, request.url.path, exc)
    return _error(500, str(exc), "storage_error")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    return _error(400, f"Invalid request fields: {', '.join(fields)}", "validation_error")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = {401: "unauthorized", 404: "not_found", 405: "method_not_allowed"}.get(exc.status_code, "http_error")
    return _error(exc.status_code, exc.detail, code, headers=getattr(exc, "headers", None))


# ==== Health & files ====


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint. Not behind auth so load balancers can probe it."""
    try:
        with db_module.get_connection() as conn:
            version = db_module.get_schema_version(conn)
        status = "healthy"
    except sqlite3.Error as e:
        logger.error("Health check could not open the database: %s", e)
        version, status = None, "error"
    return {
        "status": status,
        "schema_version": version,
        "target_schema_version": schema.SCHEMA_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/uploads/{filename}")
async def get_upload(filename: str):
    """Serve a stored upload by its generated name."""
    return FileResponse(uploads.resolve(filename))


# ==== Main ====


def main():
    """Run the server."""
    configure_logging(config.LOG_LEVEL, config.LOG_JSON)
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT, log_config=None)


if __name__ == "__main__":
    main()
