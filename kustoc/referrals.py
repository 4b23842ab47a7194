"""Referral programs and their conversion into clients."""

import logging
import sqlite3

from kustoc import db, entities
from kustoc.errors import ValidationError
from kustoc.repository import Repository, now_iso

logger = logging.getLogger(__name__)

repo = Repository(entities.REFERRAL)

CONVERTED = "converted"


def list_referrals(
    conn: sqlite3.Connection,
    status: str | None = None,
    client_id: str | None = None,
    platform: str | None = None,
) -> list[dict]:
    return repo.list(conn, {"status": status, "client_id": client_id, "platform": platform})


def get_referral(conn: sqlite3.Connection, referral_id: str) -> dict:
    return repo.get(conn, referral_id)


def create_referral(conn: sqlite3.Connection, data: dict) -> dict:
    return repo.create(conn, data)


def update_referral(conn: sqlite3.Connection, referral_id: str, changes: dict) -> dict:
    return repo.update(conn, referral_id, changes)


def delete_referral(conn: sqlite3.Connection, referral_id: str) -> dict[str, int]:
    return repo.delete(conn, referral_id)


def convert(conn: sqlite3.Connection, referral_id: str, client_id: str) -> dict:
    """Link the referral to the client it brought in and count the conversion."""
    if not client_id:
        raise ValidationError("client_id is required")
    with db.transaction(conn):
        referral = repo.get(conn, referral_id)
        updated = repo.update(
            conn,
            referral_id,
            {
                "client_id": client_id,
                "status": CONVERTED,
                "converted_at": now_iso(),
                "conversions": (referral.get("conversions") or 0) + 1,
            },
        )
    logger.info("referral %s converted to client %s", referral_id, client_id)
    return updated
