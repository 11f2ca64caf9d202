"""
services/schedule_service.py
----------------------------
Owner-facing lifecycle of remittance schedules:
create, pause, resume, modify, cancel, and the read operations.
"""

from typing import Optional

from config import ALLOW_RESUME_EXPIRED, WRITE_CONFLICT_ATTEMPTS
from models.schedule import (
    EndTimestampUpdate,
    EndUpdateKind,
    Frequency,
    RemittanceSchedule,
    ScheduleEvent,
    ScheduleStatus,
)
from repositories.store import ScheduleStore, apply_with_retry, get_store
from security.auth import AllowListVerifier, IdentityVerifier
from services.events import EventSink, LoggingEventSink, publish_safely
from services.validator import (
    check_amount,
    check_custom_days,
    check_end_after_start,
    validate_schedule_params,
)
from utils.clock import Clock, SystemClock
from utils.errors import UnauthorizedError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)


class ScheduleService:
    """
    Handles all owner-initiated changes to remittance schedules.

    Every mutating call authenticates the caller, checks ownership and
    parameters against the freshly loaded record, writes it back, and only
    then publishes the lifecycle event.
    """

    def __init__(
        self,
        store: Optional[ScheduleStore] = None,
        clock: Optional[Clock] = None,
        verifier: Optional[IdentityVerifier] = None,
        events: Optional[EventSink] = None,
        allow_resume_expired: bool = ALLOW_RESUME_EXPIRED,
        write_attempts: int = WRITE_CONFLICT_ATTEMPTS,
    ):
        self.store = store if store is not None else get_store()
        self.clock = clock or SystemClock()
        self.verifier = verifier or AllowListVerifier()
        self.events = events or LoggingEventSink()
        self.allow_resume_expired = allow_resume_expired
        self.write_attempts = write_attempts

    # ── CREATE ────────────────────────────────────────────

    def create_schedule(
        self,
        owner: str,
        amount: int,
        frequency: Frequency,
        start_timestamp: int,
        frequency_days: int = 0,
        split_config_ref: Optional[str] = None,
        end_timestamp: Optional[int] = None,
    ) -> int:
        """
        Create a new active schedule for `owner`.

        Returns:
            The id allocated by the store.

        Raises:
            UnauthorizedError: If `owner` cannot be verified.
            ValidationError: If the parameters are inconsistent.
        """
        self.verifier.require_auth(owner)
        now = self.clock.now()
        validate_schedule_params(
            amount, frequency, frequency_days, start_timestamp, end_timestamp, now
        )

        schedule = self.store.insert(RemittanceSchedule(
            owner=owner,
            amount=amount,
            frequency=frequency,
            frequency_days=frequency_days,
            split_config_ref=split_config_ref,
            start_timestamp=start_timestamp,
            end_timestamp=end_timestamp,
            next_execution=start_timestamp,
            created_at=now,
        ))
        logger.info(
            f"Created schedule #{schedule.id} for {owner}: {amount} {frequency.value}"
        )
        publish_safely(self.events, ScheduleEvent.CREATED, {
            "schedule_id": schedule.id, "owner": owner,
        })
        return schedule.id

    # ── READ ──────────────────────────────────────────────

    def get_schedule(self, schedule_id: int) -> RemittanceSchedule:
        """Raises ScheduleNotFoundError for unknown or cancelled ids."""
        return self.store.get(schedule_id)

    def get_schedules_by_owner(self, owner: str) -> list[RemittanceSchedule]:
        return self.store.list_by_owner(owner)

    def validate_schedule_params(
        self,
        amount: int,
        frequency: Frequency,
        start_timestamp: int,
        frequency_days: int = 0,
        end_timestamp: Optional[int] = None,
    ) -> None:
        """Dry run of the creation checks against the current time. Raises ValidationError."""
        validate_schedule_params(
            amount, frequency, frequency_days, start_timestamp, end_timestamp,
            self.clock.now(),
        )

    # ── UPDATE ────────────────────────────────────────────

    def pause_schedule(self, caller: str, schedule_id: int) -> None:
        """
        Deactivate a schedule. `next_execution` is left as it is.

        An expired schedule is already inactive: it stays marked expired,
        nothing is written and no event is published.
        """
        self.verifier.require_auth(caller)

        def pause(schedule: RemittanceSchedule) -> bool:
            self._require_owner(caller, schedule)
            if schedule.status == ScheduleStatus.EXPIRED:
                return False
            schedule.status = ScheduleStatus.PAUSED
            return True

        _, changed = self._apply(schedule_id, pause, skip_write=lambda changed: not changed)
        if not changed:
            logger.info(f"Schedule #{schedule_id} is expired, nothing to pause")
            return
        logger.info(f"Paused schedule #{schedule_id}")
        publish_safely(self.events, ScheduleEvent.PAUSED, {
            "schedule_id": schedule_id, "caller": caller,
        })

    def resume_schedule(self, caller: str, schedule_id: int) -> None:
        """
        Reactivate a paused or expired schedule.

        An expired schedule is reactivated without looking at its end date
        unless `allow_resume_expired` is off, in which case resuming one
        that is still past its end fails with ValidationError.
        """
        self.verifier.require_auth(caller)
        now = self.clock.now()

        def resume(schedule: RemittanceSchedule) -> None:
            self._require_owner(caller, schedule)
            if schedule.status == ScheduleStatus.EXPIRED:
                if not self.allow_resume_expired and schedule.has_ended(now):
                    raise ValidationError(
                        "Schedule has passed its end timestamp", field="end_timestamp"
                    )
                logger.warning(
                    f"Resuming expired schedule #{schedule_id} (end {schedule.end_timestamp})"
                )
            schedule.status = ScheduleStatus.ACTIVE

        self._apply(schedule_id, resume)
        logger.info(f"Resumed schedule #{schedule_id}")
        publish_safely(self.events, ScheduleEvent.RESUMED, {
            "schedule_id": schedule_id, "caller": caller,
        })

    def modify_schedule(
        self,
        caller: str,
        schedule_id: int,
        amount: Optional[int] = None,
        frequency: Optional[Frequency] = None,
        frequency_days: Optional[int] = None,
        end_update: EndTimestampUpdate = EndTimestampUpdate.no_change(),
    ) -> RemittanceSchedule:
        """
        Partially update a schedule; omitted fields keep their stored value.

        Args:
            caller: Must be the schedule owner.
            schedule_id: Schedule to change.
            amount: New amount (> 0).
            frequency: New cadence.
            frequency_days: New custom period. Applied when the new frequency
                is CUSTOM, or when no frequency is given and the stored one is
                CUSTOM; ignored otherwise.
            end_update: Keep, clear, or set the end timestamp. A new end must
                be after the stored start timestamp.

        Returns:
            The schedule as written.
        """
        self.verifier.require_auth(caller)

        def modify(schedule: RemittanceSchedule) -> None:
            self._require_owner(caller, schedule)

            if amount is not None:
                check_amount(amount)
                schedule.amount = amount

            if frequency is not None:
                schedule.frequency = frequency
                if frequency == Frequency.CUSTOM and frequency_days is not None:
                    check_custom_days(frequency, frequency_days)
                    schedule.frequency_days = frequency_days
            elif frequency_days is not None and schedule.frequency == Frequency.CUSTOM:
                check_custom_days(schedule.frequency, frequency_days)
                schedule.frequency_days = frequency_days

            # switching to CUSTOM without days must not leave a zero period
            check_custom_days(schedule.frequency, schedule.frequency_days)

            if end_update.kind == EndUpdateKind.SET:
                check_end_after_start(schedule.start_timestamp, end_update.value)
                schedule.end_timestamp = end_update.value
            elif end_update.kind == EndUpdateKind.CLEAR:
                schedule.end_timestamp = None

        schedule, _ = self._apply(schedule_id, modify)
        logger.info(f"Modified schedule #{schedule_id}")
        publish_safely(self.events, ScheduleEvent.MODIFIED, {
            "schedule_id": schedule_id, "caller": caller,
        })
        return schedule

    # ── DELETE ────────────────────────────────────────────

    def cancel_schedule(self, caller: str, schedule_id: int) -> None:
        """Permanently delete a schedule. Its id is never reused."""
        self.verifier.require_auth(caller)
        self._apply(
            schedule_id,
            lambda schedule: self._require_owner(caller, schedule),
            remove=True,
        )
        logger.info(f"Cancelled schedule #{schedule_id}")
        publish_safely(self.events, ScheduleEvent.CANCELLED, {
            "schedule_id": schedule_id, "caller": caller,
        })

    # ── HELPERS ───────────────────────────────────────────

    def _apply(self, schedule_id: int, mutate, remove: bool = False, skip_write=None):
        return apply_with_retry(
            self.store, schedule_id, mutate,
            remove=remove, attempts=self.write_attempts, skip_write=skip_write,
        )

    @staticmethod
    def _require_owner(caller: str, schedule: RemittanceSchedule) -> None:
        if schedule.owner != caller:
            logger.warning(f"🚫 {caller} tried to change schedule #{schedule.id}")
            raise UnauthorizedError(caller, schedule.id)
