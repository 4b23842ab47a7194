"""
Centralized Database Access for Kustoc.

Single source of truth for:
- DB path resolution
- Connection factory
- Transactions (BEGIN IMMEDIATE, nested SAVEPOINTs)
- Schema convergence (delegated to schema_engine + migrations)
- Startup validation

ALL code must use this module for DB access. No direct sqlite3.connect() elsewhere.

Connections are opened in autocommit mode (isolation_level=None). Every
multi-statement write wraps itself in transaction(), which takes the SQLite
write lock up front so concurrent writers queue on the busy timeout instead
of interleaving.
"""

import itertools
import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from kustoc import config, paths, safe_sql, schema

logger = logging.getLogger(__name__)

_savepoint_ids = itertools.count(1)

# Paths whose schema has converged in this process.
_converged: set[str] = set()


# ============================================================
# DB PATH RESOLUTION
# ============================================================


def get_db_path() -> Path:
    """
    Get the canonical DB path. ALL code must use this.

    Resolution order:
    1. KUSTOC_DB env var (explicit override)
    2. ~/.kustoc/data/kustoc.db (default via paths.db_path())
    """
    return paths.db_path()


# ============================================================
# CONNECTION FACTORY
# ============================================================


def connect(db_path: str | Path | None = None) -> sqlite3.Connection:
    """
    Open a configured connection.

    check_same_thread is off because FastAPI resolves sync dependencies and
    runs sync endpoints on different worker threads; each connection is still
    used by one request at a time.
    """
    path = Path(db_path) if db_path is not None else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(
        str(path),
        timeout=config.DB_TIMEOUT_SECONDS,
        isolation_level=None,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


@contextmanager
def get_connection(db_path: str | Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Get a database connection with proper setup.

    Usage:
        with get_connection() as conn:
            with transaction(conn):
                conn.execute(...)
    """
    conn = connect(db_path)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Connection, None, None]:
    """
    Run a block atomically.

    Outermost call: BEGIN IMMEDIATE ... COMMIT, ROLLBACK on any exception.
    Nested call: SAVEPOINT ... RELEASE, ROLLBACK TO on exception, so an inner
    failure that the caller handles does not abort the outer unit.
    """
    if conn.in_transaction:
        name = f"sp_{next(_savepoint_ids)}"
        conn.execute(f"SAVEPOINT {name}")
        try:
            yield conn
        except BaseException:
            conn.execute(f"ROLLBACK TO SAVEPOINT {name}")
            conn.execute(f"RELEASE SAVEPOINT {name}")
            raise
        conn.execute(f"RELEASE SAVEPOINT {name}")
        return

    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


# ============================================================
# SCHEMA INTROSPECTION
# ============================================================


def get_table_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    """Get existing column names for a table."""
    safe_sql.validate(table)
    try:
        cursor = conn.execute(safe_sql.pragma_table_info(table))
        return {row[1] for row in cursor.fetchall()}
    except sqlite3.OperationalError:
        return set()


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    """Check if a table exists."""
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,))
    return cursor.fetchone() is not None


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get current schema version from PRAGMA user_version."""
    cursor = conn.execute("PRAGMA user_version")
    return cursor.fetchone()[0]


# ============================================================
# SCHEMA CONVERGENCE
# ============================================================


def run_migrations(conn: sqlite3.Connection) -> dict:
    """
    Converge the database schema to match kustoc.schema declarations.

    Delegates to schema_engine.converge() which:
      1. Creates missing tables
      2. Adds missing columns to existing tables
      3. Creates missing indexes
      4. Applies pending versioned data migrations
      5. Sets PRAGMA user_version

    Returns a results dict for logging.
    """
    from kustoc import schema_engine

    previous_version = get_schema_version(conn)
    results = schema_engine.converge(conn)
    results["previous_version"] = previous_version
    return results


# ============================================================
# STARTUP ENTRY POINT
# ============================================================


def run_startup_migrations(db_path: str | Path | None = None) -> dict:
    """
    Run schema convergence at startup. Safe to call multiple times.
    Logs comprehensive startup info.
    """
    path = Path(db_path) if db_path is not None else get_db_path()

    logger.info("Resolved DB path: %s", path)
    logger.info("DB exists: %s", path.exists())
    logger.info("Target SCHEMA_VERSION: %s", schema.SCHEMA_VERSION)

    with get_connection(path) as conn:
        version_before = get_schema_version(conn)
        logger.info("Current user_version: %s", version_before)

        results = run_migrations(conn)

        if results.get("tables_created"):
            logger.info("Tables created: %s", results["tables_created"])
        if results.get("columns_added"):
            logger.info("Columns added: %s", results["columns_added"])
        if results.get("indexes_created"):
            logger.info("Indexes created: %d", len(results["indexes_created"]))
        if results.get("migrations_applied"):
            logger.info("Migrations applied: %s", results["migrations_applied"])
        if results.get("errors"):
            logger.warning("Convergence errors: %s", results["errors"])

        if (
            not results.get("tables_created")
            and not results.get("columns_added")
            and not results.get("migrations_applied")
        ):
            logger.info("No changes needed, schema up to date")

        for critical in ("clients", "projects", "invoices", "id_counters"):
            if not table_exists(conn, critical):
                logger.error("MISSING %s", critical)

        logger.info("Final user_version: %s", results.get("schema_version"))

    _converged.add(str(path))
    return results


def ensure_migrations(db_path: str | Path | None = None):
    """Ensure the schema of *db_path* has converged once in this process."""
    path = Path(db_path) if db_path is not None else get_db_path()
    if str(path) not in _converged:
        run_startup_migrations(path)


# ============================================================
# DEBUG INFO
# ============================================================


def get_db_info() -> dict:
    """
    Get detailed DB info for the CLI `db-info` command and /api/health.

    Returns dict with path, exists, size, version, row counts.
    """
    db_path = get_db_path()
    info = {
        "resolved_db_path": str(db_path),
        "exists": db_path.exists(),
        "file_size": None,
        "sqlite_version": sqlite3.sqlite_version,
        "user_version": None,
        "target_schema_version": schema.SCHEMA_VERSION,
        "tables": {},
    }

    if db_path.exists():
        info["file_size"] = db_path.stat().st_size

        with get_connection() as conn:
            info["user_version"] = get_schema_version(conn)
            for table in schema.TABLES:
                if table_exists(conn, table):
                    row = conn.execute(safe_sql.select_count(table)).fetchone()
                    info["tables"][table] = row["c"]
                else:
                    info["tables"][table] = None

    return info
