"""PostgreSQL schedule repository — exercised against mocked psycopg2 connections.

Tests cover:
    - Id allocation and INSERT share one transaction
    - Version-guarded UPDATE: stale writes raise ConcurrencyError, deleted rows NotFound
    - Failed writes roll back and return the connection to the pool
    - Row mapping back to the domain model
"""

from unittest.mock import MagicMock

import pytest

from models.schedule import Frequency, RemittanceSchedule, ScheduleStatus
from repositories import schedule_repo
from repositories.schedule_repo import ScheduleRepository
from utils.errors import ConcurrencyError, ScheduleNotFoundError

ROW = (
    4, "alice", 1500, None, "custom", 10, 1000, 9000, "paused", 1200, 2000, 900, 3,
)


@pytest.fixture
def cursor():
    return MagicMock()


@pytest.fixture
def conn(cursor, monkeypatch):
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    monkeypatch.setattr(schedule_repo, "get_connection", lambda: conn)
    monkeypatch.setattr(schedule_repo, "release_connection", conn.released)
    return conn


def _schedule(**overrides):
    fields = dict(
        owner="alice", amount=1500, frequency=Frequency.WEEKLY,
        start_timestamp=1000, next_execution=1000, created_at=900,
    )
    fields.update(overrides)
    return RemittanceSchedule(**fields)


def test_row_mapping(conn, cursor):
    cursor.fetchone.return_value = ROW
    schedule = ScheduleRepository().get(4)
    assert schedule.id == 4
    assert schedule.frequency == Frequency.CUSTOM
    assert schedule.frequency_days == 10
    assert schedule.status == ScheduleStatus.PAUSED
    assert schedule.split_config_ref is None
    assert schedule.end_timestamp == 9000
    assert schedule.last_executed == 1200
    assert schedule.version == 3
    conn.released.assert_called_once_with(conn)


def test_get_missing_row(conn, cursor):
    cursor.fetchone.return_value = None
    with pytest.raises(ScheduleNotFoundError):
        ScheduleRepository().get(4)
    conn.released.assert_called_once_with(conn)


def test_insert_allocates_id_in_same_transaction(conn, cursor):
    cursor.fetchone.return_value = (12,)
    schedule = ScheduleRepository().insert(_schedule())

    assert schedule.id == 12
    assert schedule.version == 1
    first_sql = cursor.execute.call_args_list[0].args[0]
    second_sql, params = cursor.execute.call_args_list[1].args
    assert "schedule_counters" in first_sql
    assert "INSERT INTO remittance_schedules" in second_sql
    assert params[0] == 12
    assert params[4] == "weekly"
    assert params[8] == "active"
    conn.commit.assert_called_once()


def test_insert_failure_rolls_back(conn, cursor):
    cursor.execute.side_effect = RuntimeError("boom")
    schedule = _schedule()
    with pytest.raises(RuntimeError):
        ScheduleRepository().insert(schedule)
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()
    assert schedule.id is None
    conn.released.assert_called_once_with(conn)


def test_update_guards_on_version(conn, cursor):
    cursor.rowcount = 1
    schedule = _schedule(id=4, version=3)
    ScheduleRepository().update(schedule)

    sql, params = cursor.execute.call_args.args
    assert "version = version + 1" in sql
    assert "WHERE id = %s AND version = %s" in sql
    assert params[-2:] == (4, 3)
    assert schedule.version == 4
    conn.commit.assert_called_once()


def test_stale_update_raises_conflict(conn, cursor):
    cursor.rowcount = 0
    cursor.fetchone.return_value = (1,)
    schedule = _schedule(id=4, version=3)
    with pytest.raises(ConcurrencyError):
        ScheduleRepository().update(schedule)
    assert schedule.version == 3
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()


def test_update_of_deleted_row_is_not_found(conn, cursor):
    cursor.rowcount = 0
    cursor.fetchone.return_value = None
    with pytest.raises(ScheduleNotFoundError):
        ScheduleRepository().update(_schedule(id=4, version=3))


def test_delete_guards_on_version(conn, cursor):
    cursor.rowcount = 1
    ScheduleRepository().delete(_schedule(id=4, version=2))
    sql, params = cursor.execute.call_args.args
    assert sql.startswith("DELETE FROM remittance_schedules")
    assert params == (4, 2)
    conn.commit.assert_called_once()


def test_list_ready_passes_now_twice(conn, cursor):
    cursor.fetchall.return_value = [ROW]
    schedules = ScheduleRepository().list_ready(5000)
    sql, params = cursor.execute.call_args.args
    assert "status = 'active'" in sql
    assert "ORDER BY id ASC" in sql
    assert params == (5000, 5000)
    assert [s.id for s in schedules] == [4]


def test_list_due_has_no_end_filter(conn, cursor):
    cursor.fetchall.return_value = [ROW]
    ScheduleRepository().list_due(5000)
    sql, params = cursor.execute.call_args.args
    assert "status = 'active'" in sql
    assert "end_timestamp" not in sql.split("WHERE", 1)[1]
    assert params == (5000,)
