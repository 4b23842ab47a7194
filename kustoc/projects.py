"""
Projects and everything hanging off them.

A project references one client, one jump and optionally a lead copilot.
Its team (project_copilots), API keys and referrals are many-to-many links;
tasks are owned rows deleted with the project. The lead copilot is always a
member of the team: setting a lead adds the link, and removing the lead from
the team hands the role to another member (or clears it).
"""

import logging
import sqlite3

from kustoc import db, entities, integrity, reference_data
from kustoc.errors import NotFoundError, ValidationError
from kustoc.repository import Repository, now_iso

logger = logging.getLogger(__name__)

repo = Repository(entities.PROJECT)
tasks = Repository(entities.TASK)
_copilots = Repository(entities.COPILOT)
_api_keys = Repository(entities.API_KEY)
_referrals = Repository(entities.REFERRAL)

STATUS_TABLE = "project_statuses"
TASK_DONE = "completed"


def list_projects(
    conn: sqlite3.Connection,
    status: str | None = None,
    client_id: str | None = None,
    jump_id: str | None = None,
    copilot_id: str | None = None,
) -> list[dict]:
    return repo.list(
        conn, {"status": status, "client_id": client_id, "jump_id": jump_id, "copilot_id": copilot_id}
    )


def _member_ids(conn: sqlite3.Connection, project_id: str) -> list[str]:
    rows = conn.execute(
        "SELECT copilot_id FROM project_copilots WHERE project_id = ? ORDER BY assigned_date, rowid",
        (project_id,),
    )
    return [row[0] for row in rows]


def get_project(conn: sqlite3.Connection, project_id: str) -> dict:
    """The project with its team's copilot IDs under `copilots`."""
    project = repo.get(conn, project_id)
    project["copilots"] = _member_ids(conn, project_id)
    return project


def create_project(conn: sqlite3.Connection, data: dict) -> dict:
    """
    Create a project. A lead `copilot_id` joins the team; an optional
    `copilots` list sets the whole team in the same transaction.
    """
    reference_data.validate_status(conn, STATUS_TABLE, data.get("status"))
    team = data.get("copilots")
    with db.transaction(conn):
        project = repo.create(conn, data)
        project_id = project["project_id"]
        if team is not None:
            lead = project.get("copilot_id")
            _replace_team(conn, project_id, [lead, *team] if lead and lead not in team else team)
        elif project.get("copilot_id"):
            integrity.ensure_association(conn, "project_copilots", project_id, project["copilot_id"])
    return get_project(conn, project_id)


def update_project(conn: sqlite3.Connection, project_id: str, changes: dict) -> dict:
    """Partial update; a new lead copilot joins the team."""
    reference_data.validate_status(conn, STATUS_TABLE, changes.get("status"))
    with db.transaction(conn):
        project = repo.update(conn, project_id, changes)
        if changes.get("copilot_id"):
            integrity.ensure_association(conn, "project_copilots", project_id, project["copilot_id"])
    return get_project(conn, project_id)


def delete_project(conn: sqlite3.Connection, project_id: str) -> dict[str, int]:
    return repo.delete(conn, project_id)


def set_jump(conn: sqlite3.Connection, project_id: str, jump_id: str) -> dict:
    if not jump_id:
        raise ValidationError("jump_id is required")
    repo.update(conn, project_id, {"jump_id": jump_id})
    return get_project(conn, project_id)


# ── Team (project_copilots) ──────────────────────────────────


def set_lead_copilot(conn: sqlite3.Connection, project_id: str, copilot_id: str) -> dict:
    if not copilot_id:
        raise ValidationError("copilot_id is required")
    with db.transaction(conn):
        repo.update(conn, project_id, {"copilot_id": copilot_id})
        integrity.ensure_association(conn, "project_copilots", project_id, copilot_id)
    return get_project(conn, project_id)


def list_copilots(conn: sqlite3.Connection, project_id: str) -> list[dict]:
    repo.require(conn, project_id)
    rows = integrity.linked(conn, "project_copilots", "project_id", project_id, order_by="p.name")
    return [_copilots.decode(row) for row in rows]


def add_copilot(
    conn: sqlite3.Connection,
    project_id: str,
    copilot_id: str,
    role: str | None = None,
    hours_worked: float | None = None,
) -> dict:
    """Add one member. The first member of a team without a lead becomes the lead."""
    with db.transaction(conn):
        project = repo.get(conn, project_id)
        created = integrity.ensure_association(
            conn, "project_copilots", project_id, copilot_id, role=role, hours_worked=hours_worked
        )
        if not project.get("copilot_id"):
            repo.update(conn, project_id, {"copilot_id": copilot_id})
    return {"project_id": project_id, "copilot_id": copilot_id, "created": created}


def _replace_team(conn: sqlite3.Connection, project_id: str, copilot_ids: list[str]) -> dict:
    changes = integrity.replace_associations(conn, "project_copilots", project_id, copilot_ids)
    members = _member_ids(conn, project_id)
    lead = conn.execute("SELECT copilot_id FROM projects WHERE project_id = ?", (project_id,)).fetchone()[0]
    if lead not in members:
        new_lead = next((c for c in copilot_ids if c in members), None)
        conn.execute("UPDATE projects SET copilot_id = ? WHERE project_id = ?", (new_lead, project_id))
    return changes


def replace_copilots(conn: sqlite3.Connection, project_id: str, copilot_ids: list[str]) -> dict:
    """Make the team exactly *copilot_ids*; the lead stays if still a member, else the first one leads."""
    with db.transaction(conn):
        repo.require(conn, project_id)
        changes = _replace_team(conn, project_id, copilot_ids)
    return {"project_id": project_id, **changes, "copilots": _member_ids(conn, project_id)}


def remove_copilot(conn: sqlite3.Connection, project_id: str, copilot_id: str):
    with db.transaction(conn):
        if not integrity.remove_association(conn, "project_copilots", project_id, copilot_id):
            raise NotFoundError("project_copilots", f"{project_id}/{copilot_id}")
        lead = conn.execute("SELECT copilot_id FROM projects WHERE project_id = ?", (project_id,)).fetchone()
        if lead and lead[0] == copilot_id:
            members = _member_ids(conn, project_id)
            conn.execute(
                "UPDATE projects SET copilot_id = ? WHERE project_id = ?",
                (members[0] if members else None, project_id),
            )


# ── API keys and referrals ───────────────────────────────────


def list_api_keys(conn: sqlite3.Connection, project_id: str) -> list[dict]:
    repo.require(conn, project_id)
    rows = integrity.linked(conn, "project_api_keys", "project_id", project_id, order_by="p.service")
    return [_api_keys.decode(row) for row in rows]


def replace_api_keys(conn: sqlite3.Connection, project_id: str, api_key_ids: list[str]) -> dict:
    with db.transaction(conn):
        repo.require(conn, project_id)
        changes = integrity.replace_associations(conn, "project_api_keys", project_id, api_key_ids)
    return {"project_id": project_id, **changes}


def list_referrals(conn: sqlite3.Connection, project_id: str) -> list[dict]:
    repo.require(conn, project_id)
    rows = integrity.linked(conn, "project_referrals", "project_id", project_id, order_by="p.program_name")
    return [_referrals.decode(row) for row in rows]


def replace_referrals(conn: sqlite3.Connection, project_id: str, referral_ids: list[str]) -> dict:
    with db.transaction(conn):
        repo.require(conn, project_id)
        changes = integrity.replace_associations(conn, "project_referrals", project_id, referral_ids)
    return {"project_id": project_id, **changes}


# ── Tasks ────────────────────────────────────────────────────


def list_tasks(conn: sqlite3.Connection, project_id: str, status: str | None = None) -> list[dict]:
    repo.require(conn, project_id)
    return tasks.list(conn, {"project_id": project_id, "status": status})


def create_task(conn: sqlite3.Connection, project_id: str, data: dict) -> dict:
    repo.require(conn, project_id)
    row = {**data, "project_id": project_id}
    if row.get("status") == TASK_DONE and not row.get("completed_at"):
        row["completed_at"] = now_iso()
    return tasks.create(conn, row)


def _project_task(conn: sqlite3.Connection, project_id: str, task_id: str) -> dict:
    task = tasks.find(conn, task_id)
    if task is None or task["project_id"] != project_id:
        raise NotFoundError("tasks", f"{project_id}/{task_id}")
    return task


def update_task(conn: sqlite3.Connection, project_id: str, task_id: str, changes: dict) -> dict:
    """Partial update; completed_at follows the status in and out of completed."""
    changes = {k: v for k, v in changes.items() if k != "project_id"}
    with db.transaction(conn):
        task = _project_task(conn, project_id, task_id)
        status = changes.get("status")
        if status == TASK_DONE and task["status"] != TASK_DONE:
            changes.setdefault("completed_at", now_iso())
        elif status is not None and status != TASK_DONE:
            changes["completed_at"] = None
        return tasks.update(conn, task_id, changes)


def delete_task(conn: sqlite3.Connection, project_id: str, task_id: str) -> dict[str, int]:
    with db.transaction(conn):
        _project_task(conn, project_id, task_id)
        return tasks.delete(conn, task_id)
