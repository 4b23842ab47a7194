"""
Tests for relational integrity (kustoc.integrity): reference checks,
association sets and the delete policy.
"""

import pytest

from kustoc import clients, copilots, integrity, invoices, jumps, projects
from kustoc.errors import HasDependentsError, MissingReferenceError, NotFoundError, ValidationError
from tests.fixtures.fixture_db import client_data


def _project(conn, sample, **overrides):
    data = {
        "name": "Second project",
        "client_id": sample["client_id"],
        "jump_id": sample["jump_id"],
        "start_date": "2026-03-01",
        "status": "planning",
        "contracted_hours": 10,
        **overrides,
    }
    return projects.create_project(conn, data)


class TestRelationGraph:
    def test_cascade_and_restrict_read_from_schema(self):
        by_edge = {(r.child_table, r.child_column): r for r in integrity.relations()}
        assert by_edge[("tasks", "project_id")].cascades
        assert by_edge[("interactions", "client_id")].cascades
        assert not by_edge[("projects", "client_id")].cascades
        assert not by_edge[("invoices", "client_id")].cascades

    def test_primary_keys(self):
        assert integrity.primary_key("clients") == "client_id"
        assert integrity.primary_key("invoice_items") == "item_id"
        assert integrity.primary_key("project_copilots") == "rowid"

    def test_association_columns(self):
        assert integrity.association_columns("jump_clients") == ("jump_id", "client_id")
        with pytest.raises(ValidationError):
            integrity.association_columns("clients")


class TestReferences:
    def test_project_with_unknown_client_rejected(self, conn, sample):
        with pytest.raises(MissingReferenceError) as exc:
            _project(conn, sample, client_id="CLI999")
        assert exc.value.column == "client_id"
        assert exc.value.parent_table == "clients"

    def test_rejected_create_leaves_no_row(self, conn, sample):
        before = len(projects.list_projects(conn))
        with pytest.raises(MissingReferenceError):
            _project(conn, sample, jump_id="JMP999")
        assert len(projects.list_projects(conn)) == before

    def test_valid_parent_appears_in_nested_listing(self, conn, sample):
        created = _project(conn, sample)
        listed = [p["project_id"] for p in clients.list_projects(conn, sample["client_id"])]
        assert created["project_id"] in listed

    def test_update_to_unknown_parent_rejected(self, conn, sample):
        with pytest.raises(MissingReferenceError):
            projects.update_project(conn, sample["project_id"], {"jump_id": "JMP404"})


class TestAssociations:
    def test_reassociating_pair_keeps_one_row(self, conn, sample):
        other = clients.create_client(conn, client_data(email="second@example.com"))
        first = jumps.add_jump_client(conn, sample["jump_id"], other["client_id"])
        again = jumps.add_jump_client(conn, sample["jump_id"], other["client_id"])
        assert first["created"] is True
        assert again["created"] is False
        count = conn.execute(
            "SELECT COUNT(*) FROM jump_clients WHERE jump_id = ? AND client_id = ?",
            (sample["jump_id"], other["client_id"]),
        ).fetchone()[0]
        assert count == 1

    def test_association_to_missing_row_rejected(self, conn, sample):
        with pytest.raises(MissingReferenceError):
            jumps.add_jump_client(conn, sample["jump_id"], "CLI404")

    def test_replace_associations_is_set_semantics(self, conn, sample):
        a = copilots.create_copilot(conn, {"name": "A", "email": "a@example.com"})
        b = copilots.create_copilot(conn, {"name": "B", "email": "b@example.com"})
        pid = sample["project_id"]

        result = integrity.replace_associations(
            conn, "project_copilots", pid, [a["copilot_id"], b["copilot_id"], a["copilot_id"]]
        )
        assert result["added"] == [a["copilot_id"], b["copilot_id"]]
        assert result["removed"] == [sample["copilot_id"]]

        result = integrity.replace_associations(conn, "project_copilots", pid, [b["copilot_id"]])
        assert result == {"added": [], "removed": [a["copilot_id"]]}

    def test_replace_validates_before_changing(self, conn, sample):
        pid = sample["project_id"]
        with pytest.raises(MissingReferenceError):
            integrity.replace_associations(conn, "project_copilots", pid, ["CPL404"])
        members = [c["copilot_id"] for c in projects.list_copilots(conn, pid)]
        assert members == [sample["copilot_id"]]

    def test_linked_returns_far_side_rows(self, conn, sample):
        rows = integrity.linked(conn, "project_copilots", "project_id", sample["project_id"])
        assert [r["copilot_id"] for r in rows] == [sample["copilot_id"]]
        assert rows[0]["role"] == "developer"


class TestDeletePolicy:
    def test_client_with_invoices_is_restricted(self, conn, sample):
        with pytest.raises(HasDependentsError) as exc:
            clients.delete_client(conn, sample["client_id"])
        assert exc.value.dependents["invoices"] == 1
        assert exc.value.dependents["projects"] == 1
        assert clients.get_client(conn, sample["client_id"])

    def test_project_delete_cascades_tasks_and_links(self, conn, sample):
        project = _project(conn, sample, copilot_id=sample["copilot_id"])
        pid = project["project_id"]
        projects.create_task(conn, pid, {"description": "Kickoff"})
        projects.create_task(conn, pid, {"description": "Deploy"})

        deleted = projects.delete_project(conn, pid)

        assert deleted == {"tasks": 2, "project_copilots": 1, "projects": 1}
        assert conn.execute("SELECT COUNT(*) FROM tasks WHERE project_id = ?", (pid,)).fetchone()[0] == 0
        with pytest.raises(NotFoundError):
            projects.get_project(conn, pid)

    def test_project_with_invoice_is_restricted(self, conn, sample):
        with pytest.raises(HasDependentsError) as exc:
            projects.delete_project(conn, sample["project_id"])
        assert exc.value.dependents == {"invoices": 1}

    def test_invoice_delete_cascades_items(self, conn, sample):
        deleted = invoices.delete_invoice(conn, sample["invoice_id"])
        assert deleted == {"invoice_items": 1, "invoices": 1}

    def test_client_with_only_interactions_cascades(self, conn):
        c = clients.create_client(conn, client_data(email="solo@example.com"))
        clients.add_interaction(conn, c["client_id"], "Call", "intro call")
        deleted = clients.delete_client(conn, c["client_id"])
        assert deleted == {"interactions": 1, "clients": 1}

    def test_restrict_below_cascade_blocks_delete(self, conn, sample):
        # A copilot is cascaded out of project_copilots but still leads a project
        with pytest.raises(HasDependentsError) as exc:
            copilots.delete_copilot(conn, sample["copilot_id"])
        assert exc.value.dependents == {"projects": 1}

    def test_delete_missing_row(self, conn):
        with pytest.raises(NotFoundError):
            clients.delete_client(conn, "CLI404")
