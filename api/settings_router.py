"""
Settings API Router.

Settings are one JSON document split into sections (company, appearance,
notifications, backup, email, invoices).

Endpoints:
- GET/PUT /api/settings (PUT replaces the supplied sections)
- POST /api/settings/reset
- PUT /api/settings/{section} (merges into one section)
"""

import sqlite3
from typing import Any

from fastapi import APIRouter, Body, Depends

from api.deps import get_db
from kustoc import settings_store

settings_router = APIRouter(prefix="/api/settings", tags=["settings"])


@settings_router.get("")
def get_settings(conn: sqlite3.Connection = Depends(get_db)):
    return settings_store.get_settings(conn)


@settings_router.put("")
def update_settings(changes: dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_db)):
    return settings_store.update_settings(conn, changes)


@settings_router.post("/reset")
def reset_settings(conn: sqlite3.Connection = Depends(get_db)):
    return settings_store.reset_settings(conn)


@settings_router.put("/{section}")
def update_section(section: str, data: dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_db)):
    return settings_store.update_section(conn, section, data)
