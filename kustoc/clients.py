"""Clients and their interaction history."""

import logging
import sqlite3

from kustoc import db, entities, integrity
from kustoc.repository import Repository, now_iso

logger = logging.getLogger(__name__)

repo = Repository(entities.CLIENT)
interactions = Repository(entities.INTERACTION)


def list_clients(conn: sqlite3.Connection, status: str | None = None, sector: str | None = None) -> list[dict]:
    return repo.list(conn, {"status": status, "sector": sector})


def get_client(conn: sqlite3.Connection, client_id: str) -> dict:
    return repo.get(conn, client_id)


def create_client(conn: sqlite3.Connection, data: dict) -> dict:
    data = dict(data)
    # A new client counts as just contacted
    data.setdefault("last_interaction", now_iso())
    return repo.create(conn, data)


def update_client(conn: sqlite3.Connection, client_id: str, changes: dict) -> dict:
    return repo.update(conn, client_id, changes)


def delete_client(conn: sqlite3.Connection, client_id: str) -> dict[str, int]:
    return repo.delete(conn, client_id)


# ── Interactions ─────────────────────────────────────────────


def list_interactions(conn: sqlite3.Connection, client_id: str) -> list[dict]:
    repo.require(conn, client_id)
    return interactions.list(conn, {"client_id": client_id})


def add_interaction(
    conn: sqlite3.Connection,
    client_id: str,
    interaction_type: str,
    interaction_summary: str | None = None,
    interaction_files: str | None = None,
) -> dict:
    """Record an interaction and stamp the client's last_interaction in one transaction."""
    interaction_date = now_iso()
    with db.transaction(conn):
        repo.require(conn, client_id)
        created = interactions.create(
            conn,
            {
                "client_id": client_id,
                "interaction_date": interaction_date,
                "interaction_type": interaction_type,
                "interaction_summary": interaction_summary,
                "interaction_files": interaction_files,
            },
        )
        conn.execute(
            "UPDATE clients SET last_interaction = ? WHERE client_id = ?",
            (interaction_date, client_id),
        )
    return created


# ── Nested listings ──────────────────────────────────────────


def _children(conn: sqlite3.Connection, entity: entities.Entity, client_id: str) -> list[dict]:
    repo.require(conn, client_id)
    return Repository(entity).list(conn, {"client_id": client_id})


def list_invoices(conn: sqlite3.Connection, client_id: str) -> list[dict]:
    return _children(conn, entities.INVOICE, client_id)


def list_projects(conn: sqlite3.Connection, client_id: str) -> list[dict]:
    return _children(conn, entities.PROJECT, client_id)


def list_api_keys(conn: sqlite3.Connection, client_id: str) -> list[dict]:
    return _children(conn, entities.API_KEY, client_id)


def list_jumps(conn: sqlite3.Connection, client_id: str) -> list[dict]:
    """Jumps owned by the client plus jumps associated with it."""
    owned = _children(conn, entities.JUMP, client_id)
    jumps_repo = Repository(entities.JUMP)
    seen = {j["jump_id"] for j in owned}
    associated = [
        jumps_repo.decode(row)
        for row in integrity.linked(conn, "jump_clients", "client_id", client_id, order_by="p.name")
        if row["jump_id"] not in seen
    ]
    return sorted(owned + associated, key=lambda j: (j["name"], j["jump_id"]))
