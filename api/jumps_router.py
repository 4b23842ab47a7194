"""
Jumps API Router.

Endpoints:
- GET/POST /api/jumps
- GET/PUT/DELETE /api/jumps/{jump_id}
- GET/POST /api/jumps/{jump_id}/clients
- DELETE /api/jumps/{jump_id}/clients/{client_id}
- POST /api/jumps/{jump_id}/images (multipart `file`)
"""

import logging
import sqlite3

from fastapi import APIRouter, Depends, File, UploadFile

from api.deps import get_db
from api.request_models import JumpClientLink, JumpCreate, JumpUpdate
from api.response_models import DeleteResponse, MutationResponse
from kustoc import jumps, uploads

logger = logging.getLogger(__name__)

jumps_router = APIRouter(prefix="/api/jumps", tags=["jumps"])

IMAGE_UPLOAD_FIELD = "images"


@jumps_router.get("")
def list_jumps(
    status: str | None = None,
    client_id: str | None = None,
    sector: str | None = None,
    conn: sqlite3.Connection = Depends(get_db),
):
    return jumps.list_jumps(conn, status=status, client_id=client_id, sector=sector)


@jumps_router.post("", status_code=201)
def create_jump(body: JumpCreate, conn: sqlite3.Connection = Depends(get_db)):
    return jumps.create_jump(conn, body.model_dump(exclude_unset=True))


@jumps_router.get("/{jump_id}")
def get_jump(jump_id: str, conn: sqlite3.Connection = Depends(get_db)):
    """The jump with its associated `clients`."""
    return jumps.get_jump(conn, jump_id)


@jumps_router.put("/{jump_id}")
def update_jump(jump_id: str, body: JumpUpdate, conn: sqlite3.Connection = Depends(get_db)):
    return jumps.update_jump(conn, jump_id, body.model_dump(exclude_unset=True))


@jumps_router.delete("/{jump_id}", response_model=DeleteResponse)
def delete_jump(jump_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return {"success": True, "deleted": jumps.delete_jump(conn, jump_id)}


# ── Client associations ──────────────────────────────────────


@jumps_router.get("/{jump_id}/clients")
def list_jump_clients(jump_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return jumps.list_jump_clients(conn, jump_id)


@jumps_router.post("/{jump_id}/clients", status_code=201, response_model=MutationResponse)
def add_jump_client(jump_id: str, body: JumpClientLink, conn: sqlite3.Connection = Depends(get_db)):
    """Associate a client. Re-posting an existing pair is a no-op (`created: false`)."""
    return {"success": True, **jumps.add_jump_client(conn, jump_id, body.client_id)}


@jumps_router.delete("/{jump_id}/clients/{client_id}", response_model=MutationResponse)
def remove_jump_client(jump_id: str, client_id: str, conn: sqlite3.Connection = Depends(get_db)):
    jumps.remove_jump_client(conn, jump_id, client_id)
    return {"success": True, "jump_id": jump_id, "client_id": client_id}


# ── Images ───────────────────────────────────────────────────


@jumps_router.post("/{jump_id}/images", status_code=201)
def upload_image(jump_id: str, file: UploadFile = File(...), conn: sqlite3.Connection = Depends(get_db)):
    jumps.get_jump(conn, jump_id)
    stored = uploads.save(file.file, IMAGE_UPLOAD_FIELD, file.filename)
    try:
        return jumps.add_image(conn, jump_id, stored)
    except Exception:
        uploads.discard(stored)
        raise
