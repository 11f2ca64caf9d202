"""
repositories/store.py
---------------------
The storage contract shared by every schedule store, and the
read-check-write loop the services run against it.
"""

from typing import Callable, Optional, Protocol, TypeVar

from config import STORE_BACKEND, WRITE_CONFLICT_ATTEMPTS
from models.schedule import RemittanceSchedule
from utils.errors import ConcurrencyError
from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ScheduleStore(Protocol):
    """
    Persisted collection of schedules keyed by a store-allocated id.

    `update` and `delete` are conditional on the schedule's `version` being
    the one that was loaded; a mismatch raises ConcurrencyError. Listings
    are ordered by ascending id.
    """
    def insert(self, schedule: RemittanceSchedule) -> RemittanceSchedule: ...
    def get(self, schedule_id: int) -> RemittanceSchedule: ...
    def update(self, schedule: RemittanceSchedule) -> None: ...
    def delete(self, schedule: RemittanceSchedule) -> None: ...
    def list_by_owner(self, owner: str) -> list[RemittanceSchedule]: ...
    def list_ready(self, now: int) -> list[RemittanceSchedule]: ...
    def list_due(self, now: int) -> list[RemittanceSchedule]: ...


def apply_with_retry(
    store: ScheduleStore,
    schedule_id: int,
    mutate: Callable[[RemittanceSchedule], T],
    *,
    remove: bool = False,
    attempts: int = WRITE_CONFLICT_ATTEMPTS,
    skip_write: Optional[Callable[[T], bool]] = None,
) -> tuple[RemittanceSchedule, T]:
    """
    Load a schedule, let `mutate` change the loaded copy, and write it back.

    `mutate` raises to refuse the operation; nothing is written in that case.
    Nothing is written either when `skip_write` returns True for the result
    of `mutate`.
    When another writer got there first the record is reloaded and `mutate`
    runs again against the fresh state, so its checks always see the
    latest committed record.

    Args:
        store: The schedule store.
        schedule_id: Record to change.
        mutate: Applies the change in place and returns the call's result.
        remove: Delete the record instead of overwriting it.
        attempts: Conflicts tolerated before giving up.
        skip_write: Given the result of `mutate`, True means nothing changed.

    Returns:
        The written schedule and whatever `mutate` returned.

    Raises:
        ScheduleNotFoundError: If the record does not exist (or vanished).
        ConcurrencyError: If every attempt lost a write race.
    """
    for attempt in range(1, attempts + 1):
        schedule = store.get(schedule_id)
        result = mutate(schedule)
        if skip_write is not None and skip_write(result):
            return schedule, result
        try:
            if remove:
                store.delete(schedule)
            else:
                store.update(schedule)
            return schedule, result
        except ConcurrencyError:
            logger.warning(
                f"Write conflict on schedule #{schedule_id} (attempt {attempt}/{attempts})"
            )
    raise ConcurrencyError(
        schedule_id,
        f"Schedule #{schedule_id} kept changing, gave up after {attempts} attempts",
    )


def create_store(backend: str = STORE_BACKEND) -> ScheduleStore:
    """Build the store named by `backend` ('postgres' or 'memory')."""
    if backend == "memory":
        from repositories.memory_repo import InMemoryScheduleStore
        return InMemoryScheduleStore()
    if backend == "postgres":
        from repositories.schedule_repo import ScheduleRepository
        return ScheduleRepository()
    raise ValueError(f"Unknown STORE_BACKEND '{backend}'")


_default_store: ScheduleStore | None = None


def get_store() -> ScheduleStore:
    """Process-wide store for STORE_BACKEND, created on first use."""
    global _default_store
    if _default_store is None:
        _default_store = create_store()
        logger.info(f"Using '{STORE_BACKEND}' schedule store.")
    return _default_store
