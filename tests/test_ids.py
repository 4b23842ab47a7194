"""
Tests for sequential prefixed ID generation (kustoc.ids).

Covers:
- Format and ordering of consecutive IDs
- Independent counters per prefix
- Concurrent callers on separate connections
- Counter not advancing when the insert it was minted for fails
- Counter sync after legacy rows
"""

import threading

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from kustoc import clients, db, ids
from kustoc.errors import ValidationError
from tests.fixtures.fixture_db import client_data


class TestFormat:
    def test_format_pads_to_three_digits(self):
        assert ids.format_id("CLI", 1) == "CLI001"
        assert ids.format_id("CLI", 42) == "CLI042"

    def test_format_does_not_truncate_wide_numbers(self):
        assert ids.format_id("CLI", 1000) == "CLI1000"

    @pytest.mark.parametrize("prefix", ["", "CL1", "C-L", "TOOLONGPREFIX", None])
    def test_invalid_prefix_rejected(self, prefix):
        with pytest.raises(ValidationError):
            ids.format_id(prefix, 1)

    def test_parse_id(self):
        assert ids.parse_id("PRJ007") == ("PRJ", 7)

    def test_parse_malformed(self):
        with pytest.raises(ValidationError):
            ids.parse_id("PRJ-7")

    # autouse fixtures only set env vars; they hold no per-example state
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(st.from_regex(r"[A-Za-z]{1,8}", fullmatch=True), st.integers(min_value=1, max_value=10**6))
    def test_parse_inverts_format(self, prefix, n):
        assert ids.parse_id(ids.format_id(prefix, n)) == (prefix, n)


class TestNextId:
    def test_first_id_for_new_prefix(self, conn):
        assert ids.next_id(conn, "ZZZ") == "ZZZ001"
        assert ids.next_id(conn, "ZZZ") == "ZZZ002"

    def test_consecutive_ids_strictly_increase(self, conn):
        minted = [ids.next_id(conn, "SEQ") for _ in range(25)]
        numbers = [ids.parse_id(v)[1] for v in minted]
        assert numbers == sorted(numbers)
        assert len(set(minted)) == 25
        assert all(v.startswith("SEQ") for v in minted)

    def test_prefixes_are_independent(self, conn):
        ids.next_id(conn, "AAA")
        ids.next_id(conn, "AAA")
        assert ids.next_id(conn, "BBB") == "BBB001"
        assert ids.peek(conn, "AAA") == 2

    def test_first_client_is_cli001(self, conn):
        created = clients.create_client(conn, client_data())
        assert created["client_id"] == "CLI001"
        second = clients.create_client(conn, client_data(email="other@example.com"))
        assert second["client_id"] == "CLI002"

    def test_failed_insert_does_not_advance_counter(self, conn):
        clients.create_client(conn, client_data())
        before = ids.peek(conn, "CLI")
        # Duplicate email violates UNIQUE after the ID was minted
        with pytest.raises(ValidationError):
            clients.create_client(conn, client_data())
        assert ids.peek(conn, "CLI") == before
        assert clients.create_client(conn, client_data(email="new@example.com"))["client_id"] == "CLI002"

    @pytest.mark.slow
    def test_concurrent_callers_get_distinct_ids(self, conn):
        workers, per_worker = 8, 15
        results: list[str] = []
        errors: list[Exception] = []
        lock = threading.Lock()

        def mint():
            try:
                with db.get_connection() as own:
                    minted = [ids.next_id(own, "CON") for _ in range(per_worker)]
                with lock:
                    results.extend(minted)
            except Exception as e:  # collected and asserted below
                errors.append(e)

        threads = [threading.Thread(target=mint) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        assert len(results) == workers * per_worker
        assert len(set(results)) == workers * per_worker
        assert ids.peek(conn, "CON") == workers * per_worker


class TestSyncCounters:
    def test_raises_counter_above_legacy_rows(self, conn):
        conn.execute(
            "INSERT INTO clients (client_id, name, company, sector, email, tax_id, status) "
            "VALUES ('CLI040', 'Legacy', 'Legacy Co', 'Other', 'legacy@example.com', 'X1', 'Active')"
        )
        raised = ids.sync_counters(conn)
        assert raised["CLI"] == 40
        assert clients.create_client(conn, client_data())["client_id"] == "CLI041"

    def test_no_change_when_counters_ahead(self, conn):
        clients.create_client(conn, client_data())
        assert "CLI" not in ids.sync_counters(conn)

    def test_timestamp_ids_do_not_move_counter(self, conn):
        conn.execute("INSERT INTO jumps (jump_id, name) VALUES ('JMP1718000000000', 'Timestamped')")
        conn.execute("INSERT INTO jumps (jump_id, name) VALUES ('JMP007', 'Sequential')")
        raised = ids.sync_counters(conn)
        assert raised["JMP"] == 7
        assert ids.next_id(conn, "JMP") == "JMP008"
