"""
Tests for schema convergence (kustoc.schema_engine) and versioned data
migrations (kustoc.migrations).
"""

import pytest

from kustoc import copilots, db, ids, migrations, schema, schema_engine


class TestMakeAlterSafe:
    @pytest.mark.parametrize(
        "ddl, expected",
        [
            ("TEXT PRIMARY KEY", "TEXT"),
            ("INTEGER PRIMARY KEY AUTOINCREMENT", "INTEGER"),
            ("TEXT NOT NULL UNIQUE", "TEXT NOT NULL DEFAULT ''"),
            ("TEXT REFERENCES clients(client_id) ON DELETE RESTRICT", "TEXT"),
            ("TEXT NOT NULL REFERENCES projects(project_id) ON DELETE CASCADE", "TEXT NOT NULL DEFAULT ''"),
            ("TEXT NOT NULL DEFAULT 'planning'", "TEXT NOT NULL DEFAULT 'planning'"),
            ("REAL DEFAULT 0", "REAL DEFAULT 0"),
            (f"TEXT NOT NULL DEFAULT {schema._NOW}", "TEXT NOT NULL DEFAULT ''"),
        ],
    )
    def test_strips_unsupported_clauses(self, ddl, expected):
        assert schema_engine.make_alter_safe(ddl) == expected


class TestFreshDatabase:
    def test_converge_creates_everything(self, bare_conn):
        results = schema_engine.converge(bare_conn)
        assert set(results["tables_created"]) == set(schema.TABLES)
        assert results["errors"] == []
        assert results["migrations_applied"] == [f"{v:03d}_{n}" for v, n, _ in migrations.MIGRATIONS]
        assert db.get_schema_version(bare_conn) == schema.SCHEMA_VERSION

    def test_seeds_reference_data_and_settings(self, conn):
        assert conn.execute("SELECT COUNT(*) FROM project_statuses").fetchone()[0] == 4
        assert conn.execute("SELECT COUNT(*) FROM settings").fetchone()[0] == 1

    def test_foreign_keys_enforced(self, conn):
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1

    def test_create_fresh_drops_data(self, conn, sample):
        results = schema_engine.create_fresh(conn)
        assert results["errors"] == []
        assert conn.execute("SELECT COUNT(*) FROM clients").fetchone()[0] == 0
        assert conn.execute("SELECT COUNT(*) FROM sectors").fetchone()[0] > 0

    def test_create_fresh_drops_undeclared_tables(self, conn):
        conn.execute("CREATE TABLE leftover (id INTEGER)")
        schema_engine.create_fresh(conn)
        assert not db.table_exists(conn, "leftover")
        assert all(db.table_exists(conn, t) for t in schema.TABLES)


class TestIdempotence:
    def test_second_run_changes_nothing(self, conn):
        results = db.run_migrations(conn)
        assert results["tables_created"] == []
        assert results["columns_added"] == []
        assert results["indexes_created"] == []
        assert results["migrations_applied"] == []
        assert results["previous_version"] == schema.SCHEMA_VERSION

    def test_each_version_recorded_once(self, conn):
        db.run_migrations(conn)
        db.run_migrations(conn)
        rows = conn.execute("SELECT version, COUNT(*) FROM schema_migrations GROUP BY version").fetchall()
        assert {r[0] for r in rows} == {v for v, _, _ in migrations.MIGRATIONS}
        assert all(r[1] == 1 for r in rows)

    def test_reference_rows_not_duplicated(self, conn):
        before = conn.execute("SELECT COUNT(*) FROM sectors").fetchone()[0]
        conn.execute("DELETE FROM schema_migrations WHERE version = 3")
        assert migrations.apply_pending(conn) == ["003_seed_reference_data"]
        assert conn.execute("SELECT COUNT(*) FROM sectors").fetchone()[0] == before

    def test_startup_converges_once_per_path(self, kustoc_home, monkeypatch):
        calls = []
        original = db.run_startup_migrations
        monkeypatch.setattr(db, "run_startup_migrations", lambda path=None: calls.append(path) or original(path))
        db.ensure_migrations()
        db.ensure_migrations()
        assert len(calls) == 1


class TestLegacyDatabase:
    @pytest.fixture
    def legacy_conn(self, bare_conn):
        bare_conn.executescript(
            """
            CREATE TABLE clients (
                client_id TEXT PRIMARY KEY, name TEXT NOT NULL, company TEXT, sector TEXT,
                email TEXT, tax_id TEXT, status TEXT
            );
            CREATE TABLE copilots (
                copilot_id TEXT PRIMARY KEY, name TEXT, email TEXT, status TEXT, specialty TEXT
            );
            CREATE TABLE jumps (jump_id TEXT PRIMARY KEY, name TEXT);
            CREATE TABLE projects (
                project_id TEXT PRIMARY KEY, name TEXT, client_id TEXT, jump_id TEXT,
                copilot_id TEXT, start_date TEXT, status TEXT
            );
            INSERT INTO clients VALUES ('CLI012', 'Old', 'Old Co', 'Other', 'old@example.com', 'X', 'Active');
            INSERT INTO copilots VALUES ('CPL003', 'Rosa', 'rosa@example.com', 'busy', 'Python, React');
            INSERT INTO jumps VALUES ('JMP001', 'Legacy jump');
            INSERT INTO projects VALUES ('PRJ002', 'Legacy', 'CLI012', 'JMP001', 'CPL003', '2024-01-01', 'planning');
            """
        )
        return bare_conn

    def test_missing_columns_added(self, legacy_conn):
        results = schema_engine.converge(legacy_conn)
        assert results["errors"] == []
        assert "clients.last_interaction" in results["columns_added"]
        assert "copilots.availability" in results["columns_added"]
        assert "project_copilots" in results["tables_created"]

    def test_availability_copied_from_status(self, legacy_conn):
        schema_engine.converge(legacy_conn)
        assert copilots.get_copilot(legacy_conn, "CPL003")["availability"] == "busy"

    def test_lead_copilot_becomes_member(self, legacy_conn):
        schema_engine.converge(legacy_conn)
        rows = legacy_conn.execute("SELECT project_id, copilot_id FROM project_copilots").fetchall()
        assert [tuple(r) for r in rows] == [("PRJ002", "CPL003")]

    def test_counters_synced_to_existing_ids(self, legacy_conn):
        schema_engine.converge(legacy_conn)
        assert ids.peek(legacy_conn, "CLI") == 12
        assert ids.next_id(legacy_conn, "PRJ") == "PRJ003"

    def test_comma_array_text_rewritten_as_json(self, legacy_conn):
        results = schema_engine.converge(legacy_conn)
        assert "006_array_fields_to_json" in results["migrations_applied"]
        stored = legacy_conn.execute("SELECT specialty FROM copilots WHERE copilot_id = 'CPL003'").fetchone()[0]
        assert stored == '["Python", "React"]'
        assert copilots.get_copilot(legacy_conn, "CPL003")["specialty"] == ["Python", "React"]


class TestLegacyArrayText:
    def test_listing_survives_non_json_text(self, conn, sample, caplog):
        conn.execute(
            "UPDATE copilots SET specialty = 'Python, React' WHERE copilot_id = ?", (sample["copilot_id"],)
        )
        with caplog.at_level("WARNING", logger="kustoc.repository"):
            listed = copilots.list_copilots(conn)
        assert [c["specialty"] for c in listed] == [["Python", "React"]]
        assert "non-JSON array text" in caplog.text

    def test_migration_rerun_leaves_json_alone(self, conn, sample):
        conn.execute("DELETE FROM schema_migrations WHERE version = 6")
        assert migrations.apply_pending(conn) == ["006_array_fields_to_json"]
        assert copilots.get_copilot(conn, sample["copilot_id"])["specialty"] == ["python", "react"]
