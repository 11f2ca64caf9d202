"""
models/schedule.py
------------------
Domain model for recurring remittance schedules.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

SECONDS_PER_DAY = 86_400


class Frequency(str, Enum):
    """Cadence of a schedule. MONTHLY is a fixed 30 days, not calendar-aware."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


_FIXED_DAYS = {
    Frequency.WEEKLY: 7,
    Frequency.BIWEEKLY: 14,
    Frequency.MONTHLY: 30,
}


def period_days(frequency: Frequency, frequency_days: int) -> int:
    """Number of days between executions; CUSTOM uses `frequency_days`."""
    if frequency == Frequency.CUSTOM:
        return frequency_days
    return _FIXED_DAYS[frequency]


def period_seconds(frequency: Frequency, frequency_days: int) -> int:
    return period_days(frequency, frequency_days) * SECONDS_PER_DAY


class ScheduleStatus(str, Enum):
    """
    Lifecycle state of a stored schedule.

    PAUSED is set by the owner, EXPIRED by the execution engine when a due
    execution is attempted past the end timestamp. Both are inactive.
    Cancelled schedules are deleted, so they have no status.
    """
    ACTIVE = "active"
    PAUSED = "paused"
    EXPIRED = "expired"


class ScheduleEvent(str, Enum):
    """Lifecycle events published after a successful write."""
    CREATED = "created"
    EXECUTED = "executed"
    PAUSED = "paused"
    RESUMED = "resumed"
    MODIFIED = "modified"
    CANCELLED = "cancelled"


@dataclass
class RemittanceSchedule:
    """
    Represents one recurring remittance configured by its owner.

    Attributes:
        owner: External principal that created the schedule.
        amount: Amount per execution, in minor currency units.
        frequency: Cadence of the schedule.
        start_timestamp: First eligible execution time (epoch seconds).
        next_execution: Next due time; starts at `start_timestamp`.
        created_at: Creation time, never changed afterwards.
        frequency_days: Period in days when frequency is CUSTOM.
        split_config_ref: Opaque reference to an external split configuration.
        end_timestamp: Optional last moment an execution may happen.
        status: ACTIVE, PAUSED or EXPIRED.
        last_executed: Time of the last successful execution.
        id: Store-assigned identifier (None until inserted).
        version: Optimistic concurrency counter maintained by the store.
    """
    owner: str
    amount: int
    frequency: Frequency
    start_timestamp: int
    next_execution: int
    created_at: int
    frequency_days: int = 0
    split_config_ref: Optional[str] = None
    end_timestamp: Optional[int] = None
    status: ScheduleStatus = ScheduleStatus.ACTIVE
    last_executed: Optional[int] = None
    id: Optional[int] = None
    version: int = 0

    @property
    def active(self) -> bool:
        return self.status == ScheduleStatus.ACTIVE

    @property
    def period_seconds(self) -> int:
        return period_seconds(self.frequency, self.frequency_days)

    def is_due(self, now: int) -> bool:
        return now >= self.next_execution

    def has_ended(self, now: int) -> bool:
        """True once `now` is strictly past the end timestamp."""
        return self.end_timestamp is not None and now > self.end_timestamp

    def is_ready(self, now: int) -> bool:
        """Active, due, and not past its end (the end instant itself is still eligible)."""
        return self.active and self.is_due(now) and not self.has_ended(now)

    def __str__(self) -> str:
        icons = {
            ScheduleStatus.ACTIVE: "✅",
            ScheduleStatus.PAUSED: "⏸️",
            ScheduleStatus.EXPIRED: "⌛",
        }
        cadence = self.frequency.value
        if self.frequency == Frequency.CUSTOM:
            cadence = f"every {self.frequency_days}d"
        return (
            f"{icons[self.status]} #{self.id}: {self.amount} ({cadence})"
            f" - Next: {self.next_execution}"
        )


class EndUpdateKind(str, Enum):
    NO_CHANGE = "no_change"
    CLEAR = "clear"
    SET = "set"


@dataclass(frozen=True)
class EndTimestampUpdate:
    """
    Instruction for the end timestamp in a partial update.

    Use the constructors: `no_change()`, `clear()` or `set_to(ts)`.
    """
    kind: EndUpdateKind
    value: Optional[int] = None

    @classmethod
    def no_change(cls) -> "EndTimestampUpdate":
        return cls(EndUpdateKind.NO_CHANGE)

    @classmethod
    def clear(cls) -> "EndTimestampUpdate":
        return cls(EndUpdateKind.CLEAR)

    @classmethod
    def set_to(cls, timestamp: int) -> "EndTimestampUpdate":
        return cls(EndUpdateKind.SET, timestamp)


class ExecutionOutcome(str, Enum):
    EXECUTED = "executed"
    EXPIRED = "expired"


@dataclass(frozen=True)
class ExecutionResult:
    """
    Outcome of a due-time execution attempt that was not refused.

    EXPIRED is a successful call that deactivated the schedule instead of
    advancing it; `next_execution` is then the unchanged stored value.
    """
    schedule_id: int
    outcome: ExecutionOutcome
    executed_at: int
    next_execution: int

    @property
    def succeeded(self) -> bool:
        return self.outcome == ExecutionOutcome.EXECUTED
