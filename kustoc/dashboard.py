"""Dashboard aggregates."""

import sqlite3

from kustoc import entities
from kustoc.repository import Repository

RECENT_LIMIT = 5

_COUNTED = {
    "clients": entities.CLIENT,
    "projects": entities.PROJECT,
    "jumps": entities.JUMP,
    "copilots": entities.COPILOT,
    "invoices": entities.INVOICE,
    "api_keys": entities.API_KEY,
    "referrals": entities.REFERRAL,
}


def get_stats(conn: sqlite3.Connection) -> dict:
    counts = {name: Repository(entity).count(conn) for name, entity in _COUNTED.items()}

    revenue = conn.execute(
        """
        SELECT
            COALESCE(SUM(CASE WHEN payment_status = 'paid' THEN total END), 0) AS paid,
            COALESCE(SUM(CASE WHEN payment_status != 'paid' AND status != 'cancelled' THEN total END), 0) AS pending
        FROM invoices
        """
    ).fetchone()

    recent_clients = conn.execute(
        "SELECT client_id, name, company, status, created_at FROM clients "
        "ORDER BY created_at DESC, client_id DESC LIMIT ?",
        (RECENT_LIMIT,),
    ).fetchall()

    recent_projects = conn.execute(
        """
        SELECT p.project_id, p.name, p.status, p.start_date,
               COALESCE(c.company, c.name) AS client
        FROM projects p LEFT JOIN clients c ON c.client_id = p.client_id
        ORDER BY p.start_date DESC, p.project_id DESC LIMIT ?
        """,
        (RECENT_LIMIT,),
    ).fetchall()

    available_copilots = conn.execute(
        "SELECT COUNT(*) AS c FROM copilots WHERE availability = 'available'"
    ).fetchone()["c"]

    return {
        "counts": counts,
        "available_copilots": available_copilots,
        "revenue": {"paid": round(revenue["paid"], 2), "pending": round(revenue["pending"], 2)},
        "recent_clients": [dict(r) for r in recent_clients],
        "recent_projects": [dict(r) for r in recent_projects],
    }
