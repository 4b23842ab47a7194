"""
Versioned data migrations.

schema_engine handles structure (tables, columns, indexes). Anything that
moves or seeds DATA lives here, as an ordered list of (version, name, fn).
apply_pending() runs every version missing from schema_migrations, each in
its own transaction together with its bookkeeping row, so a version is
either fully applied and recorded or not applied at all.

Every function checks for the columns/rows it needs before acting; running
against a database that never had the legacy shape is a no-op.
"""

import logging
import sqlite3
from collections.abc import Callable

from kustoc import db, entities, ids, reference_data, safe_sql, settings_store
from kustoc.codec import decode_list, encode_list, salvage_list
from kustoc.errors import ArrayFieldError

logger = logging.getLogger(__name__)


def _copilot_availability_from_status(conn: sqlite3.Connection) -> int:
    """Older databases tracked copilot availability in a `status` column."""
    if "status" not in db.get_table_columns(conn, "copilots"):
        return 0
    cursor = conn.execute(
        "UPDATE copilots SET availability = status WHERE status IS NOT NULL AND status != ''"
    )
    return cursor.rowcount


def _project_copilots_from_lead(conn: sqlite3.Connection) -> int:
    """Every lead copilot recorded on a project becomes a team member too."""
    if "copilot_id" not in db.get_table_columns(conn, "projects"):
        return 0
    cursor = conn.execute(
        """
        INSERT INTO project_copilots (project_id, copilot_id)
        SELECT p.project_id, p.copilot_id FROM projects p
        WHERE p.copilot_id IS NOT NULL AND p.copilot_id != ''
          AND EXISTS (SELECT 1 FROM copilots c WHERE c.copilot_id = p.copilot_id)
          AND NOT EXISTS (
              SELECT 1 FROM project_copilots pc
              WHERE pc.project_id = p.project_id AND pc.copilot_id = p.copilot_id
          )
        """
    )
    return cursor.rowcount


def _seed_reference_data(conn: sqlite3.Connection) -> int:
    return sum(reference_data.seed(conn).values())


def _seed_settings(conn: sqlite3.Connection) -> int:
    return int(settings_store.seed_defaults(conn))


def _sync_id_counters(conn: sqlite3.Connection) -> int:
    return len(ids.sync_counters(conn))


def _array_fields_to_json(conn: sqlite3.Connection) -> int:
    """Older databases stored array columns as comma-separated text; rewrite them as JSON arrays."""
    rewritten = 0
    for entity in entities.ALL:
        if not entity.array_fields or not db.table_exists(conn, entity.table):
            continue
        present = [f for f in entity.array_fields if f in db.get_table_columns(conn, entity.table)]
        for name in present:
            sql = safe_sql.select(
                entity.table,
                columns=f"{entity.key}, {safe_sql.validate(name)}",
                where=f"{name} IS NOT NULL",
            )
            for key, text in conn.execute(sql).fetchall():
                try:
                    decode_list(text)
                except ArrayFieldError:
                    conn.execute(
                        safe_sql.update(entity.table, [name], key_column=entity.key),
                        (encode_list(salvage_list(text)), key),
                    )
                    rewritten += 1
    return rewritten


MIGRATIONS: list[tuple[int, str, Callable[[sqlite3.Connection], int]]] = [
    (1, "copilot_availability_from_status", _copilot_availability_from_status),
    (2, "project_copilots_from_lead", _project_copilots_from_lead),
    (3, "seed_reference_data", _seed_reference_data),
    (4, "seed_settings", _seed_settings),
    (5, "sync_id_counters", _sync_id_counters),
    (6, "array_fields_to_json", _array_fields_to_json),
]


def applied_versions(conn: sqlite3.Connection) -> set[int]:
    if not db.table_exists(conn, "schema_migrations"):
        return set()
    return {row[0] for row in conn.execute("SELECT version FROM schema_migrations")}


def apply_pending(conn: sqlite3.Connection) -> list[str]:
    """Apply and record every migration not yet in schema_migrations. Returns their labels."""
    done = applied_versions(conn)
    applied = []
    for version, name, fn in MIGRATIONS:
        if version in done:
            continue
        label = f"{version:03d}_{name}"
        with db.transaction(conn):
            affected = fn(conn)
            conn.execute(
                "INSERT INTO schema_migrations (version, name) VALUES (?, ?)",
                (version, name),
            )
        logger.info("migration %s applied (%d rows)", label, affected)
        applied.append(label)
    return applied
