"""
Relational integrity.

The relation graph is read from the REFERENCES clauses in kustoc.schema, so
the delete policy is declared exactly once. This module enforces it in
application code as well, which keeps older databases (created before the
ON DELETE clauses existed) behaving the same as fresh ones:

  check_references     every non-null foreign key in a write must resolve
  ensure_association   idempotent insert into a link table
  replace_associations set semantics for a nested collection
  remove_association   unlink one pair
  delete_entity        RESTRICT check over the whole cascade tree, then
                       depth-first delete, in one transaction
"""

import logging
import re
import sqlite3
from collections import defaultdict
from dataclasses import dataclass
from functools import lru_cache

from kustoc import db, safe_sql, schema
from kustoc.errors import (
    HasDependentsError,
    MissingReferenceError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_FK_RE = re.compile(
    r"\bREFERENCES\s+(\w+)\s*\((\w+)\)"
    r"(?:\s+ON\s+DELETE\s+(CASCADE|RESTRICT|SET\s+NULL|SET\s+DEFAULT|NO\s+ACTION))?",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Relation:
    """child_table.child_column -> parent_table.parent_column."""

    child_table: str
    child_column: str
    parent_table: str
    parent_column: str
    on_delete: str  # CASCADE or RESTRICT

    @property
    def cascades(self) -> bool:
        return self.on_delete == "CASCADE"


@lru_cache(maxsize=1)
def relations() -> tuple[Relation, ...]:
    """All foreign-key relations declared in the schema."""
    found = []
    for table, table_def in schema.TABLES.items():
        for column, ddl in table_def["columns"]:
            match = _FK_RE.search(ddl)
            if not match:
                continue
            # An undeclared action is treated as RESTRICT (SQLite's NO ACTION)
            action = (match.group(3) or "RESTRICT").upper()
            action = "CASCADE" if action == "CASCADE" else "RESTRICT"
            found.append(Relation(table, column, match.group(1), match.group(2), action))
    return tuple(found)


def relations_from(child_table: str) -> list[Relation]:
    return [r for r in relations() if r.child_table == child_table]


def relations_to(parent_table: str) -> list[Relation]:
    return [r for r in relations() if r.parent_table == parent_table]


@lru_cache(maxsize=None)
def primary_key(table: str) -> str:
    """Declared primary-key column of *table*; rowid for link tables."""
    for column, ddl in schema.TABLES[table]["columns"]:
        if re.search(r"\bPRIMARY\s+KEY\b", ddl, re.IGNORECASE):
            return column
    return "rowid"


@lru_cache(maxsize=None)
def association_columns(link_table: str) -> tuple[str, str]:
    """(left, right) columns of a link table, from its UNIQUE pair."""
    table_def = schema.TABLES.get(link_table)
    if not table_def or not table_def.get("unique"):
        raise ValidationError(f"{link_table!r} is not an association table")
    left, right = table_def["unique"][0]
    return left, right


def _exists(conn: sqlite3.Connection, table: str, column: str, value) -> bool:
    return conn.execute(safe_sql.exists(table, column), (value,)).fetchone() is not None


# ────────────────────────────────────────────────────────────
# Reference checks
# ────────────────────────────────────────────────────────────


def check_references(conn: sqlite3.Connection, table: str, data: dict):
    """Raise MissingReferenceError for the first foreign key in *data* that does not resolve."""
    for rel in relations_from(table):
        value = data.get(rel.child_column)
        if value is None or value == "":
            continue
        if not _exists(conn, rel.parent_table, rel.parent_column, value):
            raise MissingReferenceError(rel.child_column, value, rel.parent_table)


# ────────────────────────────────────────────────────────────
# Associations (many-to-many link tables)
# ────────────────────────────────────────────────────────────


def ensure_association(conn: sqlite3.Connection, link_table: str, left, right, **extra) -> bool:
    """
    Link *left* and *right* through *link_table* unless they already are.

    Returns True when a row was created, False when the pair existed.
    """
    left_col, right_col = association_columns(link_table)
    pair = {left_col: left, right_col: right}
    with db.transaction(conn):
        check_references(conn, link_table, pair)
        present = conn.execute(
            safe_sql.select(link_table, "1", where=safe_sql.where_equals([left_col, right_col])),
            (left, right),
        ).fetchone()
        if present:
            return False
        row = {**pair, **{k: v for k, v in extra.items() if v is not None}}
        conn.execute(safe_sql.insert(link_table, list(row)), tuple(row.values()))
    logger.debug("integrity: linked %s %s=%s %s=%s", link_table, left_col, left, right_col, right)
    return True


def replace_associations(conn: sqlite3.Connection, link_table: str, left, rights) -> dict:
    """
    Make the set of rows linked to *left* exactly *rights*.

    Validates every reference before touching anything. Pairs that stay keep
    their extra columns. Returns {"added": [...], "removed": [...]}.
    """
    left_col, right_col = association_columns(link_table)
    wanted = list(dict.fromkeys(r for r in rights if r not in (None, "")))

    with db.transaction(conn):
        check_references(conn, link_table, {left_col: left})
        for right in wanted:
            check_references(conn, link_table, {right_col: right})

        current = [
            row[0]
            for row in conn.execute(
                safe_sql.select(link_table, right_col, where=safe_sql.where_equals([left_col])),
                (left,),
            )
        ]
        removed = [r for r in current if r not in wanted]
        added = [r for r in wanted if r not in current]

        for right in removed:
            conn.execute(
                safe_sql.delete(link_table, safe_sql.where_equals([left_col, right_col])),
                (left, right),
            )
        for right in added:
            conn.execute(safe_sql.insert(link_table, [left_col, right_col]), (left, right))

    return {"added": added, "removed": removed}


def remove_association(conn: sqlite3.Connection, link_table: str, left, right) -> bool:
    """Unlink one pair. Returns True when a row was removed."""
    left_col, right_col = association_columns(link_table)
    cursor = conn.execute(
        safe_sql.delete(link_table, safe_sql.where_equals([left_col, right_col])),
        (left, right),
    )
    return cursor.rowcount > 0


def linked(conn: sqlite3.Connection, link_table: str, column: str, value, order_by: str | None = None) -> list[sqlite3.Row]:
    """
    Rows on the far side of *link_table* for the rows where column = value.

    linked(conn, "project_copilots", "project_id", "PRJ001") returns the
    copilots rows assigned to PRJ001.
    """
    left_col, right_col = association_columns(link_table)
    if column not in (left_col, right_col):
        raise ValidationError(f"{column!r} is not a column of {link_table}")
    far_col = right_col if column == left_col else left_col
    far = next(r for r in relations_from(link_table) if r.child_column == far_col)

    sql = (
        f"SELECT p.* FROM {safe_sql.validate(far.parent_table)} p "
        f"JOIN {safe_sql.validate(link_table)} l ON p.{far.parent_column} = l.{far_col} "
        f"WHERE l.{safe_sql.validate(column)} = ?"
    )
    if order_by:
        sql += f" ORDER BY {order_by}"
    return conn.execute(sql, (value,)).fetchall()


# ────────────────────────────────────────────────────────────
# Delete with policy
# ────────────────────────────────────────────────────────────


def _placeholders(values: list) -> str:
    return ",".join("?" for _ in values)


def _walk(conn, table: str, keys: list, blockers: dict, plan: list, seen: set):
    """Collect RESTRICT blockers and the cascade plan below *table* rows *keys*."""
    for rel in relations_to(table):
        where = f"{rel.child_column} IN ({_placeholders(keys)})"
        if not rel.cascades:
            count = conn.execute(safe_sql.select_count(rel.child_table, where), keys).fetchone()["c"]
            if count:
                blockers[rel.child_table] += count
            continue

        child_key = primary_key(rel.child_table)
        child_keys = [
            row[0]
            for row in conn.execute(safe_sql.select(rel.child_table, child_key, where=where), keys)
            if (rel.child_table, row[0]) not in seen
        ]
        if not child_keys:
            continue
        seen.update((rel.child_table, k) for k in child_keys)
        if child_key != "rowid":
            _walk(conn, rel.child_table, child_keys, blockers, plan, seen)
        plan.append((rel.child_table, child_key, child_keys))


def delete_entity(conn: sqlite3.Connection, table: str, key_value) -> dict[str, int]:
    """
    Delete one row and everything composed into it.

    Raises NotFoundError when the row is absent and HasDependentsError when a
    RESTRICT relation points at it or at any row that would cascade with it.
    Returns {table: rows_deleted}.
    """
    key = primary_key(table)
    with db.transaction(conn):
        if not _exists(conn, table, key, key_value):
            raise NotFoundError(table, key_value)

        blockers: dict[str, int] = defaultdict(int)
        plan: list[tuple[str, str, list]] = []
        _walk(conn, table, [key_value], blockers, plan, {(table, key_value)})
        if blockers:
            raise HasDependentsError(table, key_value, dict(blockers))

        deleted: dict[str, int] = defaultdict(int)
        for child_table, child_key, child_keys in plan:
            cursor = conn.execute(
                safe_sql.delete(child_table, f"{child_key} IN ({_placeholders(child_keys)})"),
                child_keys,
            )
            deleted[child_table] += cursor.rowcount
        conn.execute(safe_sql.delete(table, safe_sql.where_equals([key])), (key_value,))
        deleted[table] += 1

    logger.info("integrity: deleted %s %s (%s)", table, key_value, dict(deleted))
    return dict(deleted)
