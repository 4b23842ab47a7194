"""
Copilots API Router.

Endpoints:
- GET/POST /api/copilots (?availability=&role=)
- GET/PUT/DELETE /api/copilots/{copilot_id}
"""

import sqlite3

from fastapi import APIRouter, Depends

from api.deps import get_db
from api.request_models import CopilotCreate, CopilotUpdate
from api.response_models import DeleteResponse
from kustoc import copilots

copilots_router = APIRouter(prefix="/api/copilots", tags=["copilots"])


@copilots_router.get("")
def list_copilots(
    availability: str | None = None, role: str | None = None, conn: sqlite3.Connection = Depends(get_db)
):
    return copilots.list_copilots(conn, availability=availability, role=role)


@copilots_router.post("", status_code=201)
def create_copilot(body: CopilotCreate, conn: sqlite3.Connection = Depends(get_db)):
    return copilots.create_copilot(conn, body.model_dump(exclude_unset=True))


@copilots_router.get("/{copilot_id}")
def get_copilot(copilot_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return copilots.get_copilot(conn, copilot_id)


@copilots_router.put("/{copilot_id}")
def update_copilot(copilot_id: str, body: CopilotUpdate, conn: sqlite3.Connection = Depends(get_db)):
    return copilots.update_copilot(conn, copilot_id, body.model_dump(exclude_unset=True))


@copilots_router.delete("/{copilot_id}", response_model=DeleteResponse)
def delete_copilot(copilot_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return {"success": True, "deleted": copilots.delete_copilot(conn, copilot_id)}
