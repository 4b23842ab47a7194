"""
Test configuration - ensures repo root is in sys.path + live DB guard.

Every test runs with KUSTOC_HOME pointed at its own temporary directory, so
the database, uploads and config overrides never leave tmp_path. Opening the
real ~/.kustoc database raises immediately.
"""

import sqlite3
import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import kustoc.*, api.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from kustoc import db  # noqa: E402
from tests.fixtures.fixture_db import seed_sample  # noqa: E402

# =============================================================================
# DETERMINISM GUARD: Block live database access
# =============================================================================

HOME_DB_ABSOLUTE = Path.home() / ".kustoc" / "data" / "kustoc.db"

_original_sqlite_connect = sqlite3.connect


def _guarded_sqlite_connect(database, *args, **kwargs):
    """Intercept sqlite3.connect to block live DB access."""
    if str(database) == str(HOME_DB_ABSOLUTE):
        raise RuntimeError(
            f"DETERMINISM VIOLATION: Test attempted to access live DB at {database}.\n"
            "Tests must run against the temporary KUSTOC_HOME set up in conftest."
        )
    return _original_sqlite_connect(database, *args, **kwargs)


@pytest.fixture(autouse=True)
def guard_live_db_access(monkeypatch):
    """Automatically guard all tests against live DB access."""
    monkeypatch.setattr(sqlite3, "connect", _guarded_sqlite_connect)


@pytest.fixture(autouse=True)
def kustoc_home(tmp_path, monkeypatch):
    """Isolated KUSTOC_HOME per test; auth disabled unless a test sets a token."""
    home = tmp_path / "kustoc_home"
    monkeypatch.setenv("KUSTOC_HOME", str(home))
    for var in ("KUSTOC_DB", "KUSTOC_UPLOADS", "KUSTOC_CONFIG_DIR", "KUSTOC_API_TOKEN"):
        monkeypatch.delenv(var, raising=False)
    return home


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def conn(kustoc_home):
    """Connection to a converged, seeded temporary database."""
    db.run_startup_migrations()
    with db.get_connection() as connection:
        yield connection


@pytest.fixture
def bare_conn(tmp_path):
    """Connection to an empty database file (no schema)."""
    with db.get_connection(tmp_path / "bare.db") as connection:
        yield connection


@pytest.fixture
def sample(conn):
    """IDs of a small linked data set: client, jump, copilot, project, invoice."""
    return seed_sample(conn)


@pytest.fixture
def client(kustoc_home):
    """TestClient against the app; startup migrations run on the temp DB."""
    from fastapi.testclient import TestClient

    from api.server import app

    with TestClient(app) as test_client:
        yield test_client
