"""
Clients API Router.

Endpoints:
- GET/POST /api/clients
- GET/PUT/DELETE /api/clients/{client_id}
- GET/POST /api/clients/{client_id}/interactions (POST is multipart)
- GET /api/clients/{client_id}/invoices, /projects, /api-keys, /jumps
"""

import logging
import sqlite3

from fastapi import APIRouter, Depends, File, Form, UploadFile

from api.deps import get_db
from api.request_models import ClientCreate, ClientUpdate
from api.response_models import DeleteResponse
from kustoc import clients, uploads

logger = logging.getLogger(__name__)

clients_router = APIRouter(prefix="/api/clients", tags=["clients"])

INTERACTION_UPLOAD_FIELD = "interaction_files"


@clients_router.get("")
def list_clients(status: str | None = None, sector: str | None = None, conn: sqlite3.Connection = Depends(get_db)):
    return clients.list_clients(conn, status=status, sector=sector)


@clients_router.post("", status_code=201)
def create_client(body: ClientCreate, conn: sqlite3.Connection = Depends(get_db)):
    return clients.create_client(conn, body.model_dump(exclude_unset=True))


@clients_router.get("/{client_id}")
def get_client(client_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return clients.get_client(conn, client_id)


@clients_router.put("/{client_id}")
def update_client(client_id: str, body: ClientUpdate, conn: sqlite3.Connection = Depends(get_db)):
    return clients.update_client(conn, client_id, body.model_dump(exclude_unset=True))


@clients_router.delete("/{client_id}", response_model=DeleteResponse)
def delete_client(client_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return {"success": True, "deleted": clients.delete_client(conn, client_id)}


# ── Interactions ─────────────────────────────────────────────


@clients_router.get("/{client_id}/interactions")
def list_interactions(client_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return clients.list_interactions(conn, client_id)


@clients_router.post("/{client_id}/interactions", status_code=201)
def add_interaction(
    client_id: str,
    interaction_type: str = Form(...),
    interaction_summary: str | None = Form(None),
    file: UploadFile | None = File(None),
    conn: sqlite3.Connection = Depends(get_db),
):
    """Record an interaction; an attached file is stored and its name saved on the row."""
    clients.get_client(conn, client_id)

    stored = None
    if file is not None and file.filename:
        stored = uploads.save(file.file, INTERACTION_UPLOAD_FIELD, file.filename)
    try:
        return clients.add_interaction(
            conn,
            client_id,
            interaction_type=interaction_type,
            interaction_summary=interaction_summary,
            interaction_files=stored,
        )
    except Exception:
        if stored:
            uploads.discard(stored)
        raise


# ── Nested listings ──────────────────────────────────────────


@clients_router.get("/{client_id}/invoices")
def list_client_invoices(client_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return clients.list_invoices(conn, client_id)


@clients_router.get("/{client_id}/projects")
def list_client_projects(client_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return clients.list_projects(conn, client_id)


@clients_router.get("/{client_id}/api-keys")
def list_client_api_keys(client_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return clients.list_api_keys(conn, client_id)


@clients_router.get("/{client_id}/jumps")
def list_client_jumps(client_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return clients.list_jumps(conn, client_id)
