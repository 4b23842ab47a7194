"""
Projects API Router.

Endpoints:
- GET/POST /api/projects (?status=&client_id=&jump_id=&copilot_id=)
- GET/PUT/DELETE /api/projects/{project_id}
- PUT /api/projects/{project_id}/jump
- PUT /api/projects/{project_id}/copilot (lead copilot)
- GET/PUT/POST /api/projects/{project_id}/copilots
- DELETE /api/projects/{project_id}/copilots/{copilot_id}
- GET/PUT /api/projects/{project_id}/api-keys
- GET/PUT /api/projects/{project_id}/referrals
- GET/POST /api/projects/{project_id}/tasks
- PUT/DELETE /api/projects/{project_id}/tasks/{task_id}
"""

import sqlite3

from fastapi import APIRouter, Depends

from api.deps import get_db
from api.request_models import (
    ApiKeySet,
    CopilotMember,
    CopilotSet,
    JumpAssignment,
    LeadCopilotAssignment,
    ProjectCreate,
    ProjectUpdate,
    ReferralSet,
    TaskCreate,
    TaskUpdate,
)
from api.response_models import AssociationChange, DeleteResponse, MutationResponse
from kustoc import projects

projects_router = APIRouter(prefix="/api/projects", tags=["projects"])


@projects_router.get("")
def list_projects(
    status: str | None = None,
    client_id: str | None = None,
    jump_id: str | None = None,
    copilot_id: str | None = None,
    conn: sqlite3.Connection = Depends(get_db),
):
    return projects.list_projects(conn, status=status, client_id=client_id, jump_id=jump_id, copilot_id=copilot_id)


@projects_router.post("", status_code=201)
def create_project(body: ProjectCreate, conn: sqlite3.Connection = Depends(get_db)):
    return projects.create_project(conn, body.model_dump(exclude_unset=True))


@projects_router.get("/{project_id}")
def get_project(project_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return projects.get_project(conn, project_id)


@projects_router.put("/{project_id}")
def update_project(project_id: str, body: ProjectUpdate, conn: sqlite3.Connection = Depends(get_db)):
    return projects.update_project(conn, project_id, body.model_dump(exclude_unset=True))


@projects_router.delete("/{project_id}", response_model=DeleteResponse)
def delete_project(project_id: str, conn: sqlite3.Connection = Depends(get_db)):
    """Delete the project with its tasks and associations."""
    return {"success": True, "deleted": projects.delete_project(conn, project_id)}


@projects_router.put("/{project_id}/jump")
def set_jump(project_id: str, body: JumpAssignment, conn: sqlite3.Connection = Depends(get_db)):
    return projects.set_jump(conn, project_id, body.jump_id)


# ── Team ─────────────────────────────────────────────────────


@projects_router.put("/{project_id}/copilot")
def set_lead_copilot(project_id: str, body: LeadCopilotAssignment, conn: sqlite3.Connection = Depends(get_db)):
    """Set the lead copilot; the copilot joins the team if not already a member."""
    return projects.set_lead_copilot(conn, project_id, body.copilot_id)


@projects_router.get("/{project_id}/copilots")
def list_copilots(project_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return projects.list_copilots(conn, project_id)


@projects_router.put("/{project_id}/copilots", response_model=AssociationChange)
def replace_copilots(project_id: str, body: CopilotSet, conn: sqlite3.Connection = Depends(get_db)):
    return {"success": True, **projects.replace_copilots(conn, project_id, body.copilots)}


@projects_router.post("/{project_id}/copilots", status_code=201, response_model=MutationResponse)
def add_copilot(project_id: str, body: CopilotMember, conn: sqlite3.Connection = Depends(get_db)):
    result = projects.add_copilot(
        conn, project_id, body.copilot_id, role=body.role, hours_worked=body.hours_worked
    )
    return {"success": True, **result}


@projects_router.delete("/{project_id}/copilots/{copilot_id}", response_model=MutationResponse)
def remove_copilot(project_id: str, copilot_id: str, conn: sqlite3.Connection = Depends(get_db)):
    projects.remove_copilot(conn, project_id, copilot_id)
    return {"success": True, "project_id": project_id, "copilot_id": copilot_id}


# ── API keys and referrals ───────────────────────────────────


@projects_router.get("/{project_id}/api-keys")
def list_api_keys(project_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return projects.list_api_keys(conn, project_id)


@projects_router.put("/{project_id}/api-keys", response_model=AssociationChange)
def replace_api_keys(project_id: str, body: ApiKeySet, conn: sqlite3.Connection = Depends(get_db)):
    return {"success": True, **projects.replace_api_keys(conn, project_id, body.api_keys)}


@projects_router.get("/{project_id}/referrals")
def list_referrals(project_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return projects.list_referrals(conn, project_id)


@projects_router.put("/{project_id}/referrals", response_model=AssociationChange)
def replace_referrals(project_id: str, body: ReferralSet, conn: sqlite3.Connection = Depends(get_db)):
    return {"success": True, **projects.replace_referrals(conn, project_id, body.referrals)}


# ── Tasks ────────────────────────────────────────────────────


@projects_router.get("/{project_id}/tasks")
def list_tasks(project_id: str, status: str | None = None, conn: sqlite3.Connection = Depends(get_db)):
    return projects.list_tasks(conn, project_id, status=status)


@projects_router.post("/{project_id}/tasks", status_code=201)
def create_task(project_id: str, body: TaskCreate, conn: sqlite3.Connection = Depends(get_db)):
    return projects.create_task(conn, project_id, body.model_dump(exclude_unset=True))


@projects_router.put("/{project_id}/tasks/{task_id}")
def update_task(project_id: str, task_id: str, body: TaskUpdate, conn: sqlite3.Connection = Depends(get_db)):
    return projects.update_task(conn, project_id, task_id, body.model_dump(exclude_unset=True))


@projects_router.delete("/{project_id}/tasks/{task_id}", response_model=DeleteResponse)
def delete_task(project_id: str, task_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return {"success": True, "deleted": projects.delete_task(conn, project_id, task_id)}
