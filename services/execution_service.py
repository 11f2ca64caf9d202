"""
services/execution_service.py
-----------------------------
Due-time execution of remittance schedules.

The engine is passive: it owns no timer and only acts when an external
poller calls `execute_schedule` or `tick`. Timeliness is the poller's job;
the engine only guarantees that each due cycle executes at most once.
"""

from typing import Optional

from config import WRITE_CONFLICT_ATTEMPTS
from models.schedule import (
    ExecutionOutcome,
    ExecutionResult,
    RemittanceSchedule,
    ScheduleEvent,
    ScheduleStatus,
)
from repositories.store import ScheduleStore, apply_with_retry, get_store
from services.events import EventSink, LoggingEventSink, publish_safely
from utils.clock import Clock, SystemClock
from utils.errors import NotActiveError, NotDueError, ScheduleError
from utils.logger import get_logger

logger = get_logger(__name__)


class ExecutionService:
    """Advances due schedules and retires the ones past their end date."""

    def __init__(
        self,
        store: Optional[ScheduleStore] = None,
        clock: Optional[Clock] = None,
        events: Optional[EventSink] = None,
        write_attempts: int = WRITE_CONFLICT_ATTEMPTS,
    ):
        self.store = store if store is not None else get_store()
        self.clock = clock or SystemClock()
        self.events = events or LoggingEventSink()
        self.write_attempts = write_attempts

    def execute_schedule(self, schedule_id: int, now: Optional[int] = None) -> ExecutionResult:
        """
        Perform the due-time transition for one schedule.

        The next due time is computed from `now`, not from the previous due
        time, so a late call shifts the cadence forward for good.

        Args:
            schedule_id: Schedule to execute.
            now: Execution time; read from the clock when omitted.

        Returns:
            EXECUTED with the new `next_execution`, or EXPIRED if the
            schedule was past its end and has been deactivated instead.

        Raises:
            ScheduleNotFoundError: Unknown or cancelled schedule.
            NotActiveError: Schedule is paused or expired.
            NotDueError: `now` is before `next_execution`, including a
                repeat call right after a successful execution.
        """
        if now is None:
            now = self.clock.now()

        def execute(schedule: RemittanceSchedule) -> ExecutionResult:
            if not schedule.active:
                raise NotActiveError(schedule_id, schedule.status.value)
            if not schedule.is_due(now):
                raise NotDueError(schedule_id, schedule.next_execution, now)

            if schedule.has_ended(now):
                schedule.status = ScheduleStatus.EXPIRED
                return ExecutionResult(
                    schedule_id, ExecutionOutcome.EXPIRED, now, schedule.next_execution
                )

            schedule.last_executed = now
            schedule.next_execution = now + schedule.period_seconds
            return ExecutionResult(
                schedule_id, ExecutionOutcome.EXECUTED, now, schedule.next_execution
            )

        schedule, result = apply_with_retry(
            self.store, schedule_id, execute, attempts=self.write_attempts
        )

        if result.outcome == ExecutionOutcome.EXPIRED:
            logger.info(
                f"Schedule #{schedule_id} expired at {now} (end {schedule.end_timestamp})"
            )
            return result

        logger.info(
            f"Executed schedule #{schedule_id} at {now}, next at {result.next_execution}"
        )
        publish_safely(self.events, ScheduleEvent.EXECUTED, {
            "schedule_id": schedule_id,
            "owner": schedule.owner,
            "amount": schedule.amount,
            "split_config_ref": schedule.split_config_ref,
            "executed_at": now,
        })
        return result

    def get_ready_schedules(self, now: Optional[int] = None) -> list[RemittanceSchedule]:
        """Active schedules due at `now` and not past their end, ascending by id."""
        if now is None:
            now = self.clock.now()
        return self.store.list_ready(now)

    def tick(self, now: Optional[int] = None) -> list[tuple[RemittanceSchedule, ExecutionResult]]:
        """
        One poller pass: execute every active schedule that is due at `now`.

        Due schedules already past their end are included, so execution
        marks them EXPIRED instead of leaving them active. A schedule refused
        during the pass (another caller executed it first, the owner paused
        it meanwhile) is logged and skipped.

        Returns:
            (schedule as listed, result) for every schedule that was executed
            or expired in this pass.
        """
        if now is None:
            now = self.clock.now()

        results = []
        for schedule in self.store.list_due(now):
            try:
                results.append((schedule, self.execute_schedule(schedule.id, now)))
            except ScheduleError as e:
                logger.warning(f"Skipped schedule #{schedule.id} during tick: {e.message}")
        if results:
            logger.info(f"Tick at {now}: {len(results)} schedule(s) processed")
        return results
