"""
utils/errors.py
---------------
Typed exception hierarchy for every way a schedule operation can be refused.

Every error is raised before the store is written, so a failed call leaves
the stored schedules untouched. All of them are recoverable by the caller
(fix the input, authenticate, wait for the due time, try again).
"""

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    BUSINESS_RULE = "business_rule"
    CONFLICT = "conflict"


class ScheduleError(Exception):
    """Base exception for all schedule failures."""

    def __init__(self, message: str, code: str, category: ErrorCategory):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category


class ValidationError(ScheduleError):
    """Schedule parameters are internally inconsistent."""
    def __init__(self, reason: str, field: Optional[str] = None):
        super().__init__(reason, "VALIDATION_ERROR", ErrorCategory.VALIDATION)
        self.reason = reason
        self.field = field


class ScheduleNotFoundError(ScheduleError):
    """No schedule is stored under the given id."""
    def __init__(self, schedule_id: int):
        super().__init__(
            f"Schedule #{schedule_id} not found",
            "SCHEDULE_NOT_FOUND", ErrorCategory.NOT_FOUND,
        )
        self.schedule_id = schedule_id


class UnauthorizedError(ScheduleError):
    """Caller could not prove its identity, or does not own the schedule."""
    def __init__(self, caller: str, schedule_id: Optional[int] = None):
        if schedule_id is None:
            message = f"Caller '{caller}' is not authorized"
        else:
            message = f"Caller '{caller}' is not the owner of schedule #{schedule_id}"
        super().__init__(message, "UNAUTHORIZED", ErrorCategory.UNAUTHORIZED)
        self.caller = caller
        self.schedule_id = schedule_id


class NotActiveError(ScheduleError):
    """Execution attempted on a paused or expired schedule."""
    def __init__(self, schedule_id: int, status: str):
        super().__init__(
            f"Schedule #{schedule_id} is not active ({status})",
            "SCHEDULE_NOT_ACTIVE", ErrorCategory.BUSINESS_RULE,
        )
        self.schedule_id = schedule_id
        self.status = status


class NotDueError(ScheduleError):
    """Execution attempted before the schedule's next due time."""
    def __init__(self, schedule_id: int, next_execution: int, now: int):
        super().__init__(
            f"Schedule #{schedule_id} is not due until {next_execution} (now {now})",
            "SCHEDULE_NOT_DUE", ErrorCategory.BUSINESS_RULE,
        )
        self.schedule_id = schedule_id
        self.next_execution = next_execution
        self.now = now


class ConcurrencyError(ScheduleError):
    """The stored schedule changed between read and write."""
    def __init__(self, schedule_id: int, message: Optional[str] = None):
        super().__init__(
            message or f"Schedule #{schedule_id} was modified concurrently",
            "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
        )
        self.schedule_id = schedule_id
