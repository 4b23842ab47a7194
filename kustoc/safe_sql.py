"""
Centralized SQL construction with validated identifiers.

All dynamic SQL assembly lives here. Table and column names are validated
against _SAFE_IDENTIFIER_RE before interpolation. Values are always passed
as parameterized ? and never interpolated.

SQLite does not support parameterized identifiers (? works only for values,
not table/column names), and the repository builds statements from the
entity registry, so every f-string below is a validated-identifier
interpolation.
"""

# ruff: noqa: S608

from __future__ import annotations

import re

_SAFE_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def validate(name: str) -> str:
    """Validate that *name* is a safe SQL identifier.

    Returns the name unchanged if valid; raises ValueError otherwise.
    """
    if not isinstance(name, str) or not _SAFE_IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


# ────────────────────────────────────────────────────────────
# PRAGMA helpers
# ────────────────────────────────────────────────────────────


def pragma_table_info(table: str) -> str:
    """PRAGMA table_info for a validated table name."""
    return f"PRAGMA table_info([{validate(table)}])"


def pragma_user_version_set(version: int) -> str:
    """PRAGMA user_version = N with int validation."""
    if not isinstance(version, int) or version < 0:
        raise ValueError(f"Invalid schema version: {version!r}")
    return f"PRAGMA user_version = {version}"


# ────────────────────────────────────────────────────────────
# DML: SELECT, INSERT, UPDATE, DELETE, COUNT
# ────────────────────────────────────────────────────────────


def select(
    table: str,
    columns: str = "*",
    where: str | None = None,
    order_by: str | None = None,
    suffix: str = "",
) -> str:
    """Build SELECT with validated table name.

    *columns* is a raw column expression (e.g. ``"*"`` or ``"id, name"``).
    *where* is a raw WHERE clause without the keyword (e.g. ``"id = ?"``)
    and must use ``?`` for all values.
    """
    sql = f"SELECT {columns} FROM {validate(table)}"
    if where:
        sql += f" WHERE {where}"
    if order_by:
        sql += f" ORDER BY {order_by}"
    if suffix:
        sql += f" {suffix}"
    return sql


def select_count(table: str, where: str | None = None) -> str:
    """Build SELECT COUNT(*) with validated table name."""
    sql = f"SELECT COUNT(*) AS c FROM {validate(table)}"
    if where:
        sql += f" WHERE {where}"
    return sql


def exists(table: str, column: str) -> str:
    """Build an existence check: one row if table.column = ? matches."""
    return f"SELECT 1 FROM {validate(table)} WHERE {validate(column)} = ? LIMIT 1"


def where_equals(columns: list[str]) -> str:
    """AND-joined equality predicates for validated columns."""
    return " AND ".join(f"{validate(col)} = ?" for col in columns)


def insert(table: str, columns: list[str]) -> str:
    """Build a plain INSERT with validated table+column names.

    Never OR REPLACE: a replace deletes the old row first, which would fire
    cascades and hide primary-key collisions.
    """
    validate(table)
    for col in columns:
        validate(col)
    cols = ",".join(columns)
    placeholders = ",".join(["?" for _ in columns])
    return f"INSERT INTO {table} ({cols}) VALUES ({placeholders})"


def update(table: str, set_columns: list[str], key_column: str = "id") -> str:
    """Build UPDATE SET ... WHERE key = ? with validated names."""
    validate(table)
    for col in set_columns:
        validate(col)
    sets = ",".join(f"{col} = ?" for col in set_columns)
    return f"UPDATE {table} SET {sets} WHERE {validate(key_column)} = ?"


def delete(table: str, where: str) -> str:
    """Build DELETE with validated table name. *where* must use ? for values."""
    return f"DELETE FROM {validate(table)} WHERE {where}"
