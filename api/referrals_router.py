"""
Referrals API Router.

Endpoints:
- GET/POST /api/referrals (?status=&client_id=&platform=)
- GET/PUT/DELETE /api/referrals/{referral_id}
- PUT /api/referrals/{referral_id}/convert
"""

import sqlite3

from fastapi import APIRouter, Depends

from api.deps import get_db
from api.request_models import ReferralConversion, ReferralCreate, ReferralUpdate
from api.response_models import DeleteResponse
from kustoc import referrals

referrals_router = APIRouter(prefix="/api/referrals", tags=["referrals"])


@referrals_router.get("")
def list_referrals(
    status: str | None = None,
    client_id: str | None = None,
    platform: str | None = None,
    conn: sqlite3.Connection = Depends(get_db),
):
    return referrals.list_referrals(conn, status=status, client_id=client_id, platform=platform)


@referrals_router.post("", status_code=201)
def create_referral(body: ReferralCreate, conn: sqlite3.Connection = Depends(get_db)):
    return referrals.create_referral(conn, body.model_dump(exclude_unset=True))


@referrals_router.get("/{referral_id}")
def get_referral(referral_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return referrals.get_referral(conn, referral_id)


@referrals_router.put("/{referral_id}")
def update_referral(referral_id: str, body: ReferralUpdate, conn: sqlite3.Connection = Depends(get_db)):
    return referrals.update_referral(conn, referral_id, body.model_dump(exclude_unset=True))


@referrals_router.delete("/{referral_id}", response_model=DeleteResponse)
def delete_referral(referral_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return {"success": True, "deleted": referrals.delete_referral(conn, referral_id)}


@referrals_router.put("/{referral_id}/convert")
def convert(referral_id: str, body: ReferralConversion, conn: sqlite3.Connection = Depends(get_db)):
    """Link the client the referral brought in and stamp `converted_at`."""
    return referrals.convert(conn, referral_id, body.client_id)
