"""API keys held on behalf of clients for the services their jumps integrate."""

import logging
import secrets
import sqlite3

from kustoc import entities
from kustoc.repository import Repository

logger = logging.getLogger(__name__)

repo = Repository(entities.API_KEY)

KEY_PREFIX = "ksk_"


def generate_key() -> str:
    return KEY_PREFIX + secrets.token_hex(24)


def list_api_keys(
    conn: sqlite3.Connection,
    client_id: str | None = None,
    jump_id: str | None = None,
    status: str | None = None,
    service: str | None = None,
) -> list[dict]:
    return repo.list(conn, {"client_id": client_id, "jump_id": jump_id, "status": status, "service": service})


def get_api_key(conn: sqlite3.Connection, api_key_id: str) -> dict:
    return repo.get(conn, api_key_id)


def create_api_key(conn: sqlite3.Connection, data: dict) -> dict:
    """Create a key record; a key value is generated when none is supplied."""
    data = dict(data)
    if not data.get("api_key"):
        data["api_key"] = generate_key()
    return repo.create(conn, data)


def update_api_key(conn: sqlite3.Connection, api_key_id: str, changes: dict) -> dict:
    return repo.update(conn, api_key_id, changes)


def delete_api_key(conn: sqlite3.Connection, api_key_id: str) -> dict[str, int]:
    return repo.delete(conn, api_key_id)


def deactivate(conn: sqlite3.Connection, api_key_id: str) -> dict:
    logger.info("api key %s deactivated", api_key_id)
    return repo.update(conn, api_key_id, {"status": "inactive", "connection_status": "disconnected"})


def regenerate(conn: sqlite3.Connection, api_key_id: str) -> dict:
    """Replace the key value and reactivate the record."""
    logger.info("api key %s regenerated", api_key_id)
    return repo.update(conn, api_key_id, {"api_key": generate_key(), "status": "active"})
