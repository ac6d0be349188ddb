from contextlib import contextmanager
from datetime import datetime, timezone

import psycopg2
import pytest

from qc_assignment import store
from qc_assignment.engine import Target
from qc_assignment.store import StorageError, TabState, fetch_tab, init_schema, save_tab


class FakeCursor:
    def __init__(self, row=None, error=None):
        self.row = row
        self.error = error
        self.executed = []

    def execute(self, query, params=None):
        if self.error:
            raise self.error
        self.executed.append((query, params))

    def fetchone(self):
        return self.row


@pytest.fixture
def fake_cursor(monkeypatch):
    cursor = FakeCursor()

    @contextmanager
    def fake_db_cursor():
        yield cursor

    monkeypatch.setattr(store, "db_cursor", fake_db_cursor)
    return cursor


def test_fetch_tab_returns_empty_default(fake_cursor) -> None:
    state = fetch_tab("Data Transfer")

    assert state == TabState(tab="Data Transfer")
    assert state.reviewers == []
    assert state.assignment == {}
    assert state.last_assigned is None
    assert fake_cursor.executed[0][1] == ("Data Transfer",)


def test_fetch_tab_decodes_stored_rows(fake_cursor) -> None:
    stamp = datetime(2026, 2, 8, tzinfo=timezone.utc)
    fake_cursor.row = (
        ["Alice", "Bob"],
        [{"name": "Carol", "role": "Senior"}, "Dave"],
        {"Alice": [{"name": "Carol", "role": "Senior"}], "Bob": ["Dave"]},
        stamp,
    )

    state = fetch_tab("Core Review")

    assert state.reviewers == ["Alice", "Bob"]
    assert state.targets == [Target("Carol", "Senior"), Target("Dave", "AA")]
    assert state.assignment == {"Alice": [Target("Carol", "Senior")], "Bob": [Target("Dave", "AA")]}
    assert state.last_assigned == stamp


def test_save_tab_without_assignment_keeps_stored_assignment(fake_cursor) -> None:
    fake_cursor.row = ({"Alice": [{"name": "Carol", "role": "AA"}]}, None)

    state = save_tab("Core Review", ["Alice"], [Target("Carol", "AA")])

    query, params = fake_cursor.executed[0]
    assert "assignment = EXCLUDED.assignment" not in query
    assert "last_assigned" not in query.split("RETURNING")[0]
    assert len(params) == 3
    assert params[1].adapted == ["Alice"]
    assert params[2].adapted == [{"name": "Carol", "role": "AA"}]
    assert state.assignment == {"Alice": [Target("Carol", "AA")]}
    assert state.last_assigned is None


def test_save_tab_with_assignment_stamps_timestamp(fake_cursor) -> None:
    stamp = datetime(2026, 2, 8, tzinfo=timezone.utc)
    fake_cursor.row = ({"Bob": [{"name": "Carol", "role": "Lead"}]}, stamp)

    state = save_tab(
        "Core Review",
        ["Bob"],
        [Target("Carol", "Lead")],
        {"Bob": [Target("Carol", "Lead")]},
    )

    query, params = fake_cursor.executed[0]
    assert "assignment = EXCLUDED.assignment" in query
    assert params[3].adapted == {"Bob": [{"name": "Carol", "role": "Lead"}]}
    assert params[4].tzinfo is not None
    assert state.last_assigned == stamp
    assert state.assignment == {"Bob": [Target("Carol", "Lead")]}


def test_database_errors_become_storage_errors(fake_cursor) -> None:
    fake_cursor.error = psycopg2.OperationalError("connection lost")

    with pytest.raises(StorageError):
        fetch_tab("Core Review")
    with pytest.raises(StorageError):
        save_tab("Core Review", ["Alice"], [Target("Carol")])


def test_init_schema_runs_packaged_ddl(fake_cursor) -> None:
    init_schema()

    query, params = fake_cursor.executed[0]
    assert "CREATE TABLE IF NOT EXISTS qc_assignment.tab_data" in query
    assert params is None


def test_init_schema_failure_becomes_storage_error(fake_cursor) -> None:
    fake_cursor.error = psycopg2.ProgrammingError("permission denied for database")

    with pytest.raises(StorageError, match="qc_assignment schema"):
        init_schema()
