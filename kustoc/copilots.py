"""Copilots: the staff and contractors assigned to projects."""

import sqlite3

from kustoc import entities
from kustoc.errors import ValidationError
from kustoc.repository import Repository

repo = Repository(entities.COPILOT)

AVAILABILITY = ("available", "busy", "inactive")


def _check_availability(value: str | None):
    if value is not None and value not in AVAILABILITY:
        raise ValidationError(f"Invalid availability {value!r}; expected one of: {', '.join(AVAILABILITY)}")


def list_copilots(conn: sqlite3.Connection, availability: str | None = None, role: str | None = None) -> list[dict]:
    return repo.list(conn, {"availability": availability, "role": role})


def get_copilot(conn: sqlite3.Connection, copilot_id: str) -> dict:
    return repo.get(conn, copilot_id)


def create_copilot(conn: sqlite3.Connection, data: dict) -> dict:
    _check_availability(data.get("availability"))
    return repo.create(conn, data)


def update_copilot(conn: sqlite3.Connection, copilot_id: str, changes: dict) -> dict:
    _check_availability(changes.get("availability"))
    return repo.update(conn, copilot_id, changes)


def delete_copilot(conn: sqlite3.Connection, copilot_id: str) -> dict[str, int]:
    return repo.delete(conn, copilot_id)
