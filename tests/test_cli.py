"""
CLI tests - command dispatch against the temporary KUSTOC_HOME.
"""

import json
import logging

import pytest

from cli.main import COMMANDS, main
from kustoc import db, schema


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_no_args_shows_help(capsys):
    assert main([]) == 0
    assert "COMMANDS:" in capsys.readouterr().out


def test_unknown_command(capsys):
    assert main(["frobnicate"]) == 2
    assert "Unknown command: frobnicate" in capsys.readouterr().out


def test_every_command_is_documented(capsys):
    main(["help"])
    out = capsys.readouterr().out
    for name in COMMANDS:
        if name != "h":
            assert name in out


def test_init_creates_database(capsys):
    assert main(["init"]) == 0
    assert db.get_db_path().exists()
    assert f"schema_version: {schema.SCHEMA_VERSION}" in capsys.readouterr().out


def test_init_fresh_drops_data(conn, sample, capsys):
    assert main(["init", "--fresh"]) == 0
    with db.get_connection() as fresh:
        assert fresh.execute("SELECT COUNT(*) FROM clients").fetchone()[0] == 0


def test_migrate_is_idempotent(capsys):
    assert main(["migrate"]) == 0
    assert main(["migrate"]) == 0


def test_db_info_json(conn, sample, capsys):
    capsys.readouterr()
    assert main(["db-info", "--json"]) == 0
    info = json.loads(capsys.readouterr().out)
    assert info["exists"] is True
    assert info["user_version"] == schema.SCHEMA_VERSION
    assert info["tables"]["clients"] == 1


def test_counters(conn, sample, capsys):
    capsys.readouterr()
    assert main(["counters"]) == 0
    out = capsys.readouterr().out
    assert "CLI" in out and "CLI002" in out


def test_counters_sync(conn, capsys):
    conn.execute(
        "INSERT INTO clients (client_id, name, company, sector, email, tax_id, status) "
        "VALUES ('CLI050', 'Old', 'Old SL', 'Other', 'old@example.com', 'X1', 'Active')"
    )
    assert main(["counters", "sync"]) == 0
    assert "CLI051" in capsys.readouterr().out
