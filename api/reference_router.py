"""
Reference data and dashboard API Router.

Endpoints:
- GET /api/reference/{sectors,client-statuses,project-statuses,jump-statuses,interaction-types}
- GET /api/dashboard/stats
"""

import sqlite3

from fastapi import APIRouter, Depends

from api.deps import get_db
from api.response_models import DashboardStats
from kustoc import dashboard, reference_data

reference_router = APIRouter(prefix="/api/reference", tags=["reference"])
dashboard_router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@reference_router.get("/{catalogue}")
def list_reference_values(
    catalogue: str, include_inactive: bool = False, conn: sqlite3.Connection = Depends(get_db)
):
    """Active values of one catalogue, ordered by name."""
    return reference_data.list_values(conn, catalogue, include_inactive=include_inactive)


@dashboard_router.get("/stats", response_model=DashboardStats)
def get_stats(conn: sqlite3.Connection = Depends(get_db)):
    return dashboard.get_stats(conn)
