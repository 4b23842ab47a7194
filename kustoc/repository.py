"""
Generic entity repository.

CRUD over one table described by an Entity. This is the persistence
boundary: array fields are encoded to JSON text on the way in and decoded on
the way out, unknown keys are dropped, foreign keys are checked, and every
insert mints its ID from the counter in the same transaction.
"""

import logging
import sqlite3
from datetime import UTC, datetime

from kustoc import db, ids, integrity, safe_sql, schema
from kustoc.codec import StringList, coerce_list, salvage_list
from kustoc.entities import Entity
from kustoc.errors import ArrayFieldError, NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)


def now_iso() -> str:
    """Current UTC time as ISO-8601 with milliseconds."""
    now = datetime.now(UTC)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _integrity_error(table: str, exc: sqlite3.IntegrityError) -> Exception:
    message = str(exc)
    if "UNIQUE constraint failed" in message:
        return ValidationError(f"{table}: duplicate value ({message.split(':', 1)[-1].strip()})")
    return StorageError(f"{table}: {message}")


class Repository:
    """CRUD for the table of one Entity."""

    def __init__(self, entity: Entity):
        self.entity = entity
        self.columns: tuple[str, ...] = tuple(c for c, _ in schema.TABLES[entity.table]["columns"])

    def __repr__(self) -> str:
        return f"Repository({self.entity.table})"

    # ── Boundary conversion ──────────────────────────────────

    def decode(self, row: sqlite3.Row | dict | None) -> dict | None:
        """Row -> plain dict with array fields as lists."""
        if row is None:
            return None
        data = dict(row)
        for name in self.entity.array_fields:
            if name in data:
                try:
                    data[name] = list(StringList.from_db(data[name]))
                except ArrayFieldError:
                    logger.warning(
                        "%s %s: %s holds non-JSON array text, read as comma-separated",
                        self.entity.table,
                        data.get(self.entity.key),
                        name,
                    )
                    data[name] = salvage_list(data[name])
        return data

    def clean(self, data: dict) -> dict:
        """Keep known, writable columns; encode array fields."""
        cleaned = {}
        for name, value in data.items():
            if name not in self.columns or name == self.entity.key:
                continue
            if name in self.entity.array_fields:
                value = StringList(coerce_list(value)).to_db()
            cleaned[name] = value
        return cleaned

    def _missing(self, data: dict) -> list[str]:
        return [name for name in self.entity.required if _is_blank(data.get(name))]

    # ── Reads ────────────────────────────────────────────────

    def find(self, conn: sqlite3.Connection, key) -> dict | None:
        sql = safe_sql.select(self.entity.table, where=safe_sql.where_equals([self.entity.key]))
        return self.decode(conn.execute(sql, (key,)).fetchone())

    def get(self, conn: sqlite3.Connection, key) -> dict:
        found = self.find(conn, key)
        if found is None:
            raise NotFoundError(self.entity.table, key)
        return found

    def exists(self, conn: sqlite3.Connection, key) -> bool:
        return conn.execute(safe_sql.exists(self.entity.table, self.entity.key), (key,)).fetchone() is not None

    def require(self, conn: sqlite3.Connection, key):
        """Raise NotFoundError unless *key* exists."""
        if not self.exists(conn, key):
            raise NotFoundError(self.entity.table, key)

    def list(self, conn: sqlite3.Connection, filters: dict | None = None, limit: int | None = None) -> list[dict]:
        """
        All rows in the entity's default order.

        *filters* maps column -> value; only columns the entity declares
        filterable are applied and None values are ignored.
        """
        applied = {
            k: v for k, v in (filters or {}).items() if v is not None and k in self.entity.filters
        }
        where = safe_sql.where_equals(list(applied)) if applied else None
        suffix = "LIMIT ?" if limit else ""
        params = [*applied.values(), *([limit] if limit else [])]
        sql = safe_sql.select(self.entity.table, where=where, order_by=self.entity.ordering, suffix=suffix)
        return [self.decode(row) for row in conn.execute(sql, params)]

    def count(self, conn: sqlite3.Connection, where: str | None = None, params: tuple = ()) -> int:
        return conn.execute(safe_sql.select_count(self.entity.table, where), params).fetchone()["c"]

    # ── Writes ───────────────────────────────────────────────

    def create(self, conn: sqlite3.Connection, data: dict) -> dict:
        """Validate, mint the next ID and insert. Returns the stored row."""
        row = {**self.entity.defaults, **{k: v for k, v in self.clean(data).items() if v is not None}}
        missing = self._missing(row)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if self.entity.created_column and _is_blank(row.get(self.entity.created_column)):
            row[self.entity.created_column] = now_iso()
        for name in self.entity.array_fields:
            row.setdefault(name, "[]")

        with db.transaction(conn):
            integrity.check_references(conn, self.entity.table, row)
            key = ids.next_id(conn, self.entity.prefix)
            row = {self.entity.key: key, **row}
            try:
                conn.execute(safe_sql.insert(self.entity.table, list(row)), tuple(row.values()))
            except sqlite3.IntegrityError as e:
                raise _integrity_error(self.entity.table, e) from e

        logger.info("%s created: %s", self.entity.name, key)
        return self.get(conn, key)

    def update(self, conn: sqlite3.Connection, key, changes: dict) -> dict:
        """
        Partial update: only supplied columns change.

        Required fields may not be blanked. Returns the stored row.
        """
        cleaned = self.clean(changes)
        if self.entity.created_column:
            cleaned.pop(self.entity.created_column, None)
        if not cleaned:
            raise ValidationError("No fields to update")
        blanked = [name for name in self.entity.required if name in cleaned and _is_blank(cleaned[name])]
        if blanked:
            raise ValidationError(f"Required fields cannot be empty: {', '.join(blanked)}")
        if self.entity.updated_column:
            cleaned[self.entity.updated_column] = now_iso()

        with db.transaction(conn):
            self.require(conn, key)
            integrity.check_references(conn, self.entity.table, cleaned)
            sql = safe_sql.update(self.entity.table, list(cleaned), key_column=self.entity.key)
            try:
                conn.execute(sql, (*cleaned.values(), key))
            except sqlite3.IntegrityError as e:
                raise _integrity_error(self.entity.table, e) from e

        logger.info("%s updated: %s (%s)", self.entity.name, key, ", ".join(sorted(cleaned)))
        return self.get(conn, key)

    def delete(self, conn: sqlite3.Connection, key) -> dict[str, int]:
        """Delete under the schema's delete policy. Returns {table: rows_deleted}."""
        return integrity.delete_entity(conn, self.entity.table, key)
