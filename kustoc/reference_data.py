"""
Reference data: sectors, client/project/jump statuses, interaction types.

These catalogues feed the SPA's dropdowns and constrain project and jump
status values. Defaults are seeded on first convergence; an optional
reference_data.yaml in the config directory replaces the default list for
any table it names:

    project_statuses:
      - name: planning
        description: Being scoped
      - in_progress          # bare strings are accepted too
"""

import logging
import sqlite3
from pathlib import Path

import yaml

from kustoc import db, entities, paths, safe_sql
from kustoc.errors import NotFoundError, ValidationError
from kustoc.repository import Repository

logger = logging.getLogger(__name__)

REFERENCE_FILE = "reference_data.yaml"

DEFAULTS: dict[str, list[dict]] = {
    "sectors": [
        {"name": "Auto repair shops", "description": "Vehicle repair workshops"},
        {"name": "Clinics", "description": "Medical centres and health clinics"},
        {"name": "Consultancies", "description": "Legal, tax and business advisory services"},
        {"name": "Restaurants", "description": "Food and drink establishments"},
        {"name": "Other", "description": "Sectors not categorised elsewhere"},
    ],
    "client_statuses": [
        {"name": "Prospect", "description": "Potential client in the initial phase"},
        {"name": "Active", "description": "Client with active projects"},
        {"name": "Inactive", "description": "Client without recent activity"},
        {"name": "Negotiating", "description": "Client in the negotiation phase"},
    ],
    "project_statuses": [
        {"name": "planning", "description": "Project being planned"},
        {"name": "in_progress", "description": "Project in progress"},
        {"name": "on_hold", "description": "Project paused"},
        {"name": "completed", "description": "Project completed"},
    ],
    "jump_statuses": [
        {"name": "planning", "description": "Jump being planned"},
        {"name": "in_progress", "description": "Jump in development"},
        {"name": "review", "description": "Jump under review"},
        {"name": "completed", "description": "Jump completed"},
        {"name": "archived", "description": "Jump archived"},
    ],
    "interaction_types": [
        {"name": "Call", "description": "Phone call"},
        {"name": "Email", "description": "Email exchange"},
        {"name": "Meeting", "description": "In-person or virtual meeting"},
        {"name": "Demo", "description": "Product demonstration"},
        {"name": "Other", "description": "Any other interaction"},
    ],
}

_REPOS = {e.table: Repository(e) for e in entities.REFERENCE_TABLES.values()}


def _normalize(entries) -> list[dict]:
    normalized = []
    for entry in entries or []:
        if isinstance(entry, str):
            normalized.append({"name": entry, "description": None})
        elif isinstance(entry, dict) and entry.get("name"):
            normalized.append({"name": str(entry["name"]), "description": entry.get("description")})
        else:
            logger.warning("Skipping invalid reference entry: %r", entry)
    return normalized


def load_reference_data(path: Path | None = None) -> dict[str, list[dict]]:
    """Defaults, with any table listed in the YAML file replaced by its entries."""
    config_path = Path(path) if path else paths.config_dir() / REFERENCE_FILE
    data = {table: list(values) for table, values in DEFAULTS.items()}
    if not config_path.exists():
        return data

    with open(config_path) as f:
        overrides = yaml.safe_load(f) or {}
    if not isinstance(overrides, dict):
        raise ValidationError(f"{config_path} must map table names to lists")

    for table, entries in overrides.items():
        if table not in DEFAULTS:
            logger.warning("Ignoring unknown reference table %r in %s", table, config_path)
            continue
        data[table] = _normalize(entries)
    logger.info("Reference data overrides loaded from %s", config_path)
    return data


def seed(conn: sqlite3.Connection, data: dict[str, list[dict]] | None = None) -> dict[str, int]:
    """Insert reference rows into every empty catalogue. Returns {table: rows_inserted}."""
    data = data if data is not None else load_reference_data()
    inserted = {}
    with db.transaction(conn):
        for table, entries in data.items():
            repo = _REPOS[table]
            if repo.count(conn):
                continue
            for entry in entries:
                repo.create(conn, {"name": entry["name"], "description": entry.get("description"), "active": 1})
            inserted[table] = len(entries)
    return inserted


def repository_for(slug: str) -> Repository:
    """Repository for a URL slug such as 'project-statuses'."""
    entity = entities.REFERENCE_TABLES.get(slug)
    if entity is None:
        raise NotFoundError("reference", slug)
    return _REPOS[entity.table]


def list_values(conn: sqlite3.Connection, slug: str, include_inactive: bool = False) -> list[dict]:
    repo = repository_for(slug)
    return repo.list(conn, filters=None if include_inactive else {"active": 1})


def active_names(conn: sqlite3.Connection, table: str) -> set[str]:
    rows = conn.execute(safe_sql.select(table, "name", where="active = 1")).fetchall()
    return {row["name"] for row in rows}


def validate_status(conn: sqlite3.Connection, table: str, value: str | None):
    """
    Reject a status not present in *table*.

    An empty catalogue (seeding disabled or cleared) accepts anything.
    """
    if value is None:
        return
    allowed = active_names(conn, table)
    if allowed and value not in allowed:
        raise ValidationError(f"Invalid status {value!r}; expected one of: {', '.join(sorted(allowed))}")
