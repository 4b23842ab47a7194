"""
API Keys API Router.

Endpoints:
- GET/POST /api/api-keys (?client_id=&jump_id=&status=&service=)
- GET/PUT/DELETE /api/api-keys/{api_key_id}
- PUT /api/api-keys/{api_key_id}/deactivate
- POST /api/api-keys/{api_key_id}/regenerate
"""

import sqlite3

from fastapi import APIRouter, Depends

from api.deps import get_db
from api.request_models import ApiKeyCreate, ApiKeyUpdate
from api.response_models import DeleteResponse
from kustoc import api_keys

api_keys_router = APIRouter(prefix="/api/api-keys", tags=["api-keys"])


@api_keys_router.get("")
def list_api_keys(
    client_id: str | None = None,
    jump_id: str | None = None,
    status: str | None = None,
    service: str | None = None,
    conn: sqlite3.Connection = Depends(get_db),
):
    return api_keys.list_api_keys(conn, client_id=client_id, jump_id=jump_id, status=status, service=service)


@api_keys_router.post("", status_code=201)
def create_api_key(body: ApiKeyCreate, conn: sqlite3.Connection = Depends(get_db)):
    return api_keys.create_api_key(conn, body.model_dump(exclude_unset=True))


@api_keys_router.get("/{api_key_id}")
def get_api_key(api_key_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return api_keys.get_api_key(conn, api_key_id)


@api_keys_router.put("/{api_key_id}")
def update_api_key(api_key_id: str, body: ApiKeyUpdate, conn: sqlite3.Connection = Depends(get_db)):
    return api_keys.update_api_key(conn, api_key_id, body.model_dump(exclude_unset=True))


@api_keys_router.delete("/{api_key_id}", response_model=DeleteResponse)
def delete_api_key(api_key_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return {"success": True, "deleted": api_keys.delete_api_key(conn, api_key_id)}


@api_keys_router.put("/{api_key_id}/deactivate")
def deactivate(api_key_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return api_keys.deactivate(conn, api_key_id)


@api_keys_router.post("/{api_key_id}/regenerate")
def regenerate(api_key_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return api_keys.regenerate(conn, api_key_id)
