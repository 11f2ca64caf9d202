"""
repositories/memory_repo.py
---------------------------
In-process schedule store. Used when the core is embedded without a
database (STORE_BACKEND=memory) and by the test suite.
"""

import threading
from dataclasses import replace

from models.schedule import RemittanceSchedule
from utils.errors import ConcurrencyError, ScheduleNotFoundError


class InMemoryScheduleStore:
    """
    Dict-backed store with the same contract as ScheduleRepository.

    Callers always receive copies, so nothing they change is visible
    until written back through `update`.
    """

    def __init__(self):
        self._rows: dict[int, RemittanceSchedule] = {}
        self._last_id = 0
        self._lock = threading.Lock()

    def insert(self, schedule: RemittanceSchedule) -> RemittanceSchedule:
        with self._lock:
            self._last_id += 1
            schedule.id = self._last_id
            schedule.version = 1
            self._rows[schedule.id] = replace(schedule)
        return schedule

    def get(self, schedule_id: int) -> RemittanceSchedule:
        with self._lock:
            row = self._rows.get(schedule_id)
            if row is None:
                raise ScheduleNotFoundError(schedule_id)
            return replace(row)

    def update(self, schedule: RemittanceSchedule) -> None:
        with self._lock:
            self._check_version(schedule)
            schedule.version += 1
            self._rows[schedule.id] = replace(schedule)

    def delete(self, schedule: RemittanceSchedule) -> None:
        with self._lock:
            self._check_version(schedule)
            del self._rows[schedule.id]

    def list_by_owner(self, owner: str) -> list[RemittanceSchedule]:
        return self._scan(lambda s: s.owner == owner)

    def list_ready(self, now: int) -> list[RemittanceSchedule]:
        return self._scan(lambda s: s.is_ready(now))

    def list_due(self, now: int) -> list[RemittanceSchedule]:
        """Active and due, including schedules already past their end."""
        return self._scan(lambda s: s.active and s.is_due(now))

    def _scan(self, predicate) -> list[RemittanceSchedule]:
        with self._lock:
            return [
                replace(self._rows[i]) for i in sorted(self._rows)
                if predicate(self._rows[i])
            ]

    def _check_version(self, schedule: RemittanceSchedule) -> None:
        current = self._rows.get(schedule.id)
        if current is None:
            raise ScheduleNotFoundError(schedule.id)
        if current.version != schedule.version:
            raise ConcurrencyError(schedule.id)
