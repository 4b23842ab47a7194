"""
Sequential prefixed identifiers.

Every entity row is keyed by a human-readable ID: a short alphabetic prefix
followed by a zero-padded counter (CLI001, PRJ014, INV1042). Counters live in
the id_counters table, one row per prefix, and only ever go up, so an ID is
never handed out twice even after its row is deleted.

next_id() is a single fetch-and-increment inside a write transaction. When
the caller already holds a transaction (the usual case: mint the ID, insert
the row) the increment joins it, and a failed insert rolls both back.
"""

import logging
import re
import sqlite3

from kustoc import config, db, entities, safe_sql
from kustoc.errors import ValidationError

logger = logging.getLogger(__name__)

_PREFIX_RE = re.compile(r"^[A-Za-z]{1,8}$")
_ID_RE = re.compile(r"^([A-Za-z]{1,8})(\d+)$")

# Legacy IDs minted from epoch milliseconds (JMP1718000000000); a sequential
# counter never reaches them, so sync leaves them out.
TIMESTAMP_DIGITS = 13


def validate_prefix(prefix: str) -> str:
    if not isinstance(prefix, str) or not _PREFIX_RE.match(prefix):
        raise ValidationError(f"Invalid ID prefix: {prefix!r} (expected 1-8 ASCII letters)")
    return prefix


def format_id(prefix: str, n: int) -> str:
    """CLI + 1 -> CLI001; widths beyond the minimum are not truncated."""
    return f"{validate_prefix(prefix)}{n:0{config.ID_MIN_DIGITS}d}"


def parse_id(value: str) -> tuple[str, int]:
    """Split an ID into (prefix, number). Raises ValidationError when malformed."""
    match = _ID_RE.match(value or "")
    if not match:
        raise ValidationError(f"Malformed identifier: {value!r}")
    return match.group(1), int(match.group(2))


def next_id(conn: sqlite3.Connection, prefix: str) -> str:
    """Atomically advance the counter for *prefix* and return the new ID."""
    validate_prefix(prefix)
    with db.transaction(conn):
        conn.execute(
            "INSERT INTO id_counters (prefix, counter) VALUES (?, 1) "
            "ON CONFLICT(prefix) DO UPDATE SET counter = counter + 1",
            (prefix,),
        )
        row = conn.execute("SELECT counter FROM id_counters WHERE prefix = ?", (prefix,)).fetchone()
    return format_id(prefix, row[0])


def peek(conn: sqlite3.Connection, prefix: str) -> int:
    """Current counter value for *prefix* (0 when no ID has been minted)."""
    row = conn.execute("SELECT counter FROM id_counters WHERE prefix = ?", (prefix,)).fetchone()
    return row[0] if row else 0


def list_counters(conn: sqlite3.Connection) -> dict[str, int]:
    rows = conn.execute("SELECT prefix, counter FROM id_counters ORDER BY prefix").fetchall()
    return {row["prefix"]: row["counter"] for row in rows}


def sync_counters(conn: sqlite3.Connection) -> dict[str, int]:
    """
    Raise each counter to at least the largest numeric suffix in its table.

    Rows written before the counter table existed carry IDs minted by
    MAX()+1 schemes; without this a new ID could collide with one of them.
    Timestamp-minted suffixes (TIMESTAMP_DIGITS or more digits) are skipped.
    Returns {prefix: new_counter} for the counters it moved.
    """
    raised = {}
    with db.transaction(conn):
        for entity in entities.ALL:
            if not db.table_exists(conn, entity.table):
                continue
            highest = 0
            sql = safe_sql.select(entity.table, entity.key, where=f"{entity.key} LIKE ?")
            for (value,) in conn.execute(sql, (entity.prefix + "%",)):
                match = _ID_RE.match(str(value))
                if match and match.group(1) == entity.prefix and len(match.group(2)) < TIMESTAMP_DIGITS:
                    highest = max(highest, int(match.group(2)))
            if highest > peek(conn, entity.prefix):
                conn.execute(
                    "INSERT INTO id_counters (prefix, counter) VALUES (?, ?) "
                    "ON CONFLICT(prefix) DO UPDATE SET counter = excluded.counter",
                    (entity.prefix, highest),
                )
                raised[entity.prefix] = highest
                logger.info("ids: counter %s raised to %d", entity.prefix, highest)
    return raised
