"""
Sample data factory for tests.

Builds a small, fully linked data set through the services (never raw SQL),
so every row passes the same validation and ID minting as API writes.
"""

import sqlite3

from kustoc import clients, copilots, invoices, jumps, projects

CLIENT = {
    "name": "Ana Torres",
    "company": "Taller Torres",
    "sector": "Auto repair shops",
    "email": "ana@tallertorres.example",
    "tax_id": "B12345678",
    "status": "Active",
}

JUMP = {
    "name": "Workshop booking",
    "description": "Online booking for repair shops",
    "sector": "Auto repair shops",
    "base_price": 1500.0,
    "features": ["Calendar", "SMS reminders"],
}

COPILOT = {
    "name": "Luis Pardo",
    "email": "luis@kustoc.example",
    "specialty": ["python", "react"],
    "hourly_rate": 45.0,
}


def client_data(**overrides) -> dict:
    return {**CLIENT, **overrides}


def seed_sample(conn: sqlite3.Connection) -> dict[str, str]:
    """Create one of each core entity. Returns their IDs by entity name."""
    client = clients.create_client(conn, CLIENT)
    jump = jumps.create_jump(conn, {**JUMP, "client_id": client["client_id"]})
    copilot = copilots.create_copilot(conn, COPILOT)
    project = projects.create_project(
        conn,
        {
            "name": "Booking for Taller Torres",
            "client_id": client["client_id"],
            "jump_id": jump["jump_id"],
            "copilot_id": copilot["copilot_id"],
            "start_date": "2026-01-10",
            "status": "in_progress",
            "contracted_hours": 40,
        },
    )
    invoice = invoices.create_invoice(
        conn,
        {
            "client_id": client["client_id"],
            "project_id": project["project_id"],
            "issue_date": "2026-02-01",
            "billing_name": "Taller Torres SL",
            "billing_tax_id": "B12345678",
            "status": "sent",
            "tax": 21,
            "items": [{"description": "Setup", "quantity": 1, "unit_price": 1000}],
        },
    )
    return {
        "client_id": client["client_id"],
        "jump_id": jump["jump_id"],
        "copilot_id": copilot["copilot_id"],
        "project_id": project["project_id"],
        "invoice_id": invoice["invoice_id"],
    }
