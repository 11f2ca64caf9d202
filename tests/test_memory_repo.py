"""In-process store and the retrying write loop.

Tests cover:
    - Id allocation is monotonic and never reuses a deleted id
    - Reads return copies; only update() changes stored state
    - Version guard on update/delete
    - Listing order and the ready filter
    - apply_with_retry: no write on refusal, re-evaluation after a conflict
"""

import threading

import pytest

from models.schedule import Frequency, RemittanceSchedule, ScheduleStatus
from repositories.memory_repo import InMemoryScheduleStore
from repositories.store import apply_with_retry
from utils.errors import ConcurrencyError, ScheduleNotFoundError, ValidationError


def _new(owner="alice", next_execution=1000, **overrides):
    fields = dict(
        owner=owner, amount=100, frequency=Frequency.WEEKLY,
        start_timestamp=next_execution, next_execution=next_execution, created_at=0,
    )
    fields.update(overrides)
    return RemittanceSchedule(**fields)


def test_ids_increase_and_are_not_reused(store):
    first = store.insert(_new())
    second = store.insert(_new())
    store.delete(store.get(second.id))
    third = store.insert(_new())
    assert (first.id, second.id, third.id) == (1, 2, 3)


def test_get_missing_raises(store):
    with pytest.raises(ScheduleNotFoundError):
        store.get(42)


def test_get_returns_a_copy(store):
    schedule_id = store.insert(_new()).id
    loaded = store.get(schedule_id)
    loaded.amount = 999
    assert store.get(schedule_id).amount == 100


def test_update_bumps_version(store):
    schedule_id = store.insert(_new()).id
    loaded = store.get(schedule_id)
    loaded.amount = 250
    store.update(loaded)
    assert loaded.version == 2
    assert store.get(schedule_id).amount == 250


def test_stale_update_rejected(store):
    schedule_id = store.insert(_new()).id
    first = store.get(schedule_id)
    second = store.get(schedule_id)
    store.update(first)
    with pytest.raises(ConcurrencyError):
        store.update(second)


def test_stale_delete_rejected(store):
    schedule_id = store.insert(_new()).id
    stale = store.get(schedule_id)
    store.update(store.get(schedule_id))
    with pytest.raises(ConcurrencyError):
        store.delete(stale)
    assert store.get(schedule_id)


def test_list_by_owner_in_id_order(store):
    store.insert(_new(owner="bob"))
    store.insert(_new(owner="alice"))
    store.insert(_new(owner="alice"))
    assert [s.id for s in store.list_by_owner("alice")] == [2, 3]
    assert store.list_by_owner("nobody") == []


def test_list_ready_filters(store):
    store.insert(_new(next_execution=1000))
    store.insert(_new(next_execution=5000))
    store.insert(_new(next_execution=1000, status=ScheduleStatus.PAUSED))
    store.insert(_new(next_execution=500, end_timestamp=1500))
    store.insert(_new(next_execution=500, end_timestamp=2000))
    assert [s.id for s in store.list_ready(2000)] == [1, 5]


def test_list_due_keeps_ended_schedules(store):
    store.insert(_new(next_execution=1000))
    store.insert(_new(next_execution=5000))
    store.insert(_new(next_execution=1000, status=ScheduleStatus.PAUSED))
    store.insert(_new(next_execution=500, end_timestamp=1500))
    store.insert(_new(next_execution=500, end_timestamp=1000, status=ScheduleStatus.EXPIRED))
    assert [s.id for s in store.list_due(2000)] == [1, 4]


def test_apply_with_retry_writes_nothing_on_refusal(store):
    schedule_id = store.insert(_new()).id

    def refuse(schedule):
        schedule.amount = 1
        raise ValidationError("no")

    with pytest.raises(ValidationError):
        apply_with_retry(store, schedule_id, refuse)
    stored = store.get(schedule_id)
    assert stored.amount == 100
    assert stored.version == 1


def test_apply_with_retry_reloads_after_conflict(store):
    schedule_id = store.insert(_new()).id
    seen = []

    def mutate(schedule):
        seen.append(schedule.amount)
        if len(seen) == 1:
            # someone else commits between our read and our write
            other = store.get(schedule_id)
            other.amount = 300
            store.update(other)
        schedule.amount += 1

    apply_with_retry(store, schedule_id, mutate)
    assert seen == [100, 300]
    assert store.get(schedule_id).amount == 301


def test_apply_with_retry_gives_up(store):
    schedule_id = store.insert(_new()).id

    def always_lose(schedule):
        other = store.get(schedule_id)
        store.update(other)

    with pytest.raises(ConcurrencyError):
        apply_with_retry(store, schedule_id, always_lose, attempts=3)


def test_concurrent_inserts_get_distinct_ids():
    store = InMemoryScheduleStore()
    threads = [threading.Thread(target=lambda: store.insert(_new())) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert [s.id for s in store.list_by_owner("alice")] == list(range(1, 21))
