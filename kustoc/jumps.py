"""Jumps: productized project templates, their client links and images."""

import logging
import sqlite3

from kustoc import db, entities, integrity, reference_data
from kustoc.errors import NotFoundError
from kustoc.repository import Repository

logger = logging.getLogger(__name__)

repo = Repository(entities.JUMP)

STATUS_TABLE = "jump_statuses"


def list_jumps(
    conn: sqlite3.Connection,
    status: str | None = None,
    client_id: str | None = None,
    sector: str | None = None,
) -> list[dict]:
    return repo.list(conn, {"status": status, "client_id": client_id, "sector": sector})


def get_jump(conn: sqlite3.Connection, jump_id: str) -> dict:
    """The jump with its associated clients under `clients`."""
    jump = repo.get(conn, jump_id)
    jump["clients"] = list_jump_clients(conn, jump_id)
    return jump


def create_jump(conn: sqlite3.Connection, data: dict) -> dict:
    reference_data.validate_status(conn, STATUS_TABLE, data.get("status"))
    return repo.create(conn, data)


def update_jump(conn: sqlite3.Connection, jump_id: str, changes: dict) -> dict:
    reference_data.validate_status(conn, STATUS_TABLE, changes.get("status"))
    return repo.update(conn, jump_id, changes)


def delete_jump(conn: sqlite3.Connection, jump_id: str) -> dict[str, int]:
    return repo.delete(conn, jump_id)


# ── Client associations ──────────────────────────────────────


def list_jump_clients(conn: sqlite3.Connection, jump_id: str) -> list[dict]:
    repo.require(conn, jump_id)
    rows = integrity.linked(conn, "jump_clients", "jump_id", jump_id, order_by="p.name")
    return [{"client_id": r["client_id"], "name": r["name"], "company": r["company"]} for r in rows]


def add_jump_client(conn: sqlite3.Connection, jump_id: str, client_id: str) -> dict:
    repo.require(conn, jump_id)
    created = integrity.ensure_association(conn, "jump_clients", jump_id, client_id)
    return {"jump_id": jump_id, "client_id": client_id, "created": created}


def remove_jump_client(conn: sqlite3.Connection, jump_id: str, client_id: str):
    if not integrity.remove_association(conn, "jump_clients", jump_id, client_id):
        raise NotFoundError("jump_clients", f"{jump_id}/{client_id}")


# ── Images ───────────────────────────────────────────────────


def add_image(conn: sqlite3.Connection, jump_id: str, filename: str) -> dict:
    """Append a stored upload's filename to the jump's images."""
    with db.transaction(conn):
        jump = repo.get(conn, jump_id)
        updated = repo.update(conn, jump_id, {"images": [*jump["images"], filename]})
    logger.info("jump %s: image %s added", jump_id, filename)
    return updated
