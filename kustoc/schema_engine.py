"""
Schema convergence: bring a SQLite file in line with kustoc.schema.

converge() only ever adds (tables, columns, indexes) and then applies the
pending data migrations, so it is safe on any existing database.
create_fresh() drops every table first and is meant for `kustoc init
--fresh` and tests.
"""

import logging
import re
import sqlite3

from kustoc import db, migrations, safe_sql, schema

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────
# SQLite ALTER TABLE column-safety
# ────────────────────────────────────────────────────────────

# Clauses that are valid in CREATE TABLE but not in ALTER TABLE ADD COLUMN
_STRIP_PATTERNS = [
    re.compile(r"\bPRIMARY\s+KEY\b", re.IGNORECASE),
    re.compile(r"\bAUTOINCREMENT\b", re.IGNORECASE),
    re.compile(r"\bUNIQUE\b", re.IGNORECASE),
    re.compile(
        r"\bREFERENCES\s+\w+\s*\([^)]*\)"
        r"(\s+ON\s+DELETE\s+(CASCADE|RESTRICT|SET\s+NULL|SET\s+DEFAULT|NO\s+ACTION))?",
        re.IGNORECASE,
    ),
    re.compile(r"\bFOREIGN\s+KEY\b", re.IGNORECASE),
    re.compile(r"\bCHECK\s*\([^)]*\)", re.IGNORECASE),
    # Expression defaults such as (strftime(...)) are rejected by ADD COLUMN
    re.compile(r"\bDEFAULT\s*\((?:[^()]|\([^()]*\))*\)", re.IGNORECASE),
]


def make_alter_safe(col_def: str) -> str:
    """
    Transform a CREATE TABLE column definition into one safe for
    ALTER TABLE ADD COLUMN.

    SQLite restrictions on ALTER TABLE ADD COLUMN:
      - Cannot be PRIMARY KEY or AUTOINCREMENT
      - Cannot have UNIQUE constraint
      - Cannot have REFERENCES / FOREIGN KEY with a non-NULL default
      - Cannot have CHECK constraint
      - Cannot have a non-constant DEFAULT
      - NOT NULL requires a DEFAULT (unless default is NULL)
    """
    safe = col_def
    for pattern in _STRIP_PATTERNS:
        safe = pattern.sub("", safe)

    # Collapse multiple spaces
    safe = re.sub(r"\s{2,}", " ", safe).strip()

    # NOT NULL without DEFAULT → add DEFAULT ''
    has_not_null = re.search(r"\bNOT\s+NULL\b", safe, re.IGNORECASE)
    has_default = re.search(r"\bDEFAULT\b", safe, re.IGNORECASE)
    if has_not_null and not has_default:
        safe = safe + " DEFAULT ''"

    return safe


# ────────────────────────────────────────────────────────────
# Tables and indexes
# ────────────────────────────────────────────────────────────


def _tables(conn: sqlite3.Connection) -> set[str]:
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'")
    return {row[0] for row in rows}


def _create_sql(table_name: str, table_def: dict) -> str:
    parts = [f"    {name} {ddl}" for name, ddl in table_def["columns"]]
    parts += [f"    UNIQUE({', '.join(cols)})" for cols in table_def.get("unique", [])]
    return f"CREATE TABLE IF NOT EXISTS [{table_name}] (\n" + ",\n".join(parts) + "\n)"


def _run(conn: sqlite3.Connection, sql: str, results: dict, done_key: str, label: str) -> bool:
    """Execute one DDL statement; record it under *done_key* or as an error."""
    try:
        conn.execute(sql)  # nosec B608
    except sqlite3.OperationalError as e:
        err = f"{label}: {e}"
        results["errors"].append(err)
        logger.warning("schema_engine: %s", err)
        return False
    results[done_key].append(label)
    return True


def _create_indexes(conn: sqlite3.Connection, results: dict):
    """Create declared indexes whose table carries every indexed column."""
    present = {
        row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'index'")
    }
    tables = _tables(conn)
    for idx_name, idx_table, idx_cols, idx_where in schema.INDEXES:
        if idx_name in present or idx_table not in tables:
            continue
        wanted = [part.split()[0] for part in idx_cols.split(",")]
        if not set(wanted) <= db.get_table_columns(conn, idx_table):
            continue
        where_clause = f" WHERE {idx_where}" if idx_where else ""
        sql = f"CREATE INDEX IF NOT EXISTS [{idx_name}] ON [{idx_table}]({idx_cols}){where_clause}"
        _run(conn, sql, results, "indexes_created", idx_name)


def _finish(conn: sqlite3.Connection, results: dict) -> dict:
    """Apply pending data migrations and stamp user_version."""
    results["migrations_applied"] = migrations.apply_pending(conn)
    conn.execute(safe_sql.pragma_user_version_set(schema.SCHEMA_VERSION))
    results["schema_version"] = schema.SCHEMA_VERSION
    return results


def _empty_results() -> dict:
    return {
        "tables_created": [],
        "columns_added": [],
        "indexes_created": [],
        "migrations_applied": [],
        "errors": [],
    }


# ────────────────────────────────────────────────────────────
# Entry points
# ────────────────────────────────────────────────────────────


def converge(conn: sqlite3.Connection) -> dict:
    """
    Bring an existing database up to schema.TABLES.

    Missing tables are created, missing columns are added with ALTER-safe
    DDL, then missing indexes, pending data migrations and user_version.
    Returns a results dict for logging.
    """
    results = _empty_results()
    existing = _tables(conn)

    for table_name, table_def in schema.TABLES.items():
        if table_name not in existing:
            if _run(conn, _create_sql(table_name, table_def), results, "tables_created", table_name):
                logger.info("schema_engine: created table %s", table_name)
            continue

        columns = db.get_table_columns(conn, table_name)
        for col_name, col_ddl in table_def["columns"]:
            if col_name in columns:
                continue
            sql = f"ALTER TABLE [{table_name}] ADD COLUMN [{col_name}] {make_alter_safe(col_ddl)}"
            if _run(conn, sql, results, "columns_added", f"{table_name}.{col_name}"):
                logger.info("schema_engine: added column %s.%s", table_name, col_name)

    _create_indexes(conn, results)
    return _finish(conn, results)


def create_fresh(conn: sqlite3.Connection) -> dict:
    """
    Drop every table and build the schema from scratch.

    For `kustoc init --fresh` and test fixtures only. Seeding migrations
    still run, so the new database has reference data and settings.
    """
    results = _empty_results()

    # RESTRICT clauses would block dropping parents before children
    conn.execute("PRAGMA foreign_keys=OFF")
    try:
        for name in _tables(conn):
            conn.execute(f"DROP TABLE IF EXISTS [{name}]")  # nosec B608
    finally:
        conn.execute("PRAGMA foreign_keys=ON")

    for table_name, table_def in schema.TABLES.items():
        _run(conn, _create_sql(table_name, table_def), results, "tables_created", table_name)

    _create_indexes(conn, results)
    return _finish(conn, results)
