"""
Shared FastAPI dependencies.

Usage:
    @router.get("/clients")
    def list_clients(conn: sqlite3.Connection = Depends(get_db)): ...
"""

import sqlite3
from collections.abc import Generator

from kustoc import db


def get_db() -> Generator[sqlite3.Connection, None, None]:
    """One connection per request, closed when the response is sent."""
    db.ensure_migrations()
    conn = db.connect()
    try:
        yield conn
    finally:
        conn.close()
