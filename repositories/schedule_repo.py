"""
repositories/schedule_repo.py
-----------------------------
Data access layer for remittance schedules.
All SQL queries related to the `remittance_schedules` table live here.
"""

from db.connection import get_connection, release_connection
from models.schedule import Frequency, RemittanceSchedule, ScheduleStatus
from utils.errors import ConcurrencyError, ScheduleError, ScheduleNotFoundError
from utils.logger import get_logger

logger = get_logger(__name__)

_COUNTER = "remittance_schedules"

_COLUMNS = (
    "id, owner, amount, split_config_ref, frequency, frequency_days, "
    "start_timestamp, end_timestamp, status, last_executed, next_execution, "
    "created_at, version"
)


class ScheduleRepository:
    """PostgreSQL-backed schedule store with optimistic versioning."""

    # ── CREATE ────────────────────────────────────────────

    def insert(self, schedule: RemittanceSchedule) -> RemittanceSchedule:
        """
        Allocate an id and insert a new schedule in one transaction.

        The counter row is bumped inside the same transaction as the INSERT,
        so a failed insert also rolls back the id allocation.

        Args:
            schedule: The RemittanceSchedule to persist (id is ignored).

        Returns:
            The same object with `id` and `version` populated.
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE schedule_counters SET value = value + 1 "
                    "WHERE name = %s RETURNING value;",
                    (_COUNTER,),
                )
                schedule_id = cur.fetchone()[0]
                cur.execute(
                    f"INSERT INTO remittance_schedules ({_COLUMNS}) "
                    "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, 1);",
                    (
                        schedule_id, schedule.owner, schedule.amount,
                        schedule.split_config_ref, schedule.frequency.value,
                        schedule.frequency_days, schedule.start_timestamp,
                        schedule.end_timestamp, schedule.status.value,
                        schedule.last_executed, schedule.next_execution,
                        schedule.created_at,
                    ),
                )
            conn.commit()
            schedule.id = schedule_id
            schedule.version = 1
            logger.info(f"Inserted schedule #{schedule_id} for owner {schedule.owner}")
            return schedule
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to insert schedule: {e}")
            raise
        finally:
            release_connection(conn)

    # ── READ ──────────────────────────────────────────────

    def get(self, schedule_id: int) -> RemittanceSchedule:
        """
        Fetch a single schedule by id.

        Raises:
            ScheduleNotFoundError: If no row has this id.
        """
        sql = f"SELECT {_COLUMNS} FROM remittance_schedules WHERE id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (schedule_id,))
                row = cur.fetchone()
            if row is None:
                raise ScheduleNotFoundError(schedule_id)
            return self._row_to_schedule(row)
        finally:
            release_connection(conn)

    def list_by_owner(self, owner: str) -> list[RemittanceSchedule]:
        """All schedules of one owner, ascending by id."""
        sql = f"SELECT {_COLUMNS} FROM remittance_schedules WHERE owner = %s ORDER BY id ASC;"
        return self._fetch_all(sql, (owner,))

    def list_ready(self, now: int) -> list[RemittanceSchedule]:
        """
        Schedules eligible for execution at `now`, ascending by id.
        A schedule whose end equals `now` is still eligible.
        """
        sql = f"""
            SELECT {_COLUMNS} FROM remittance_schedules
            WHERE status = 'active'
              AND next_execution <= %s
              AND (end_timestamp IS NULL OR end_timestamp >= %s)
            ORDER BY id ASC;
        """
        return self._fetch_all(sql, (now, now))

    def list_due(self, now: int) -> list[RemittanceSchedule]:
        """
        Active schedules due at `now`, ascending by id, whether or not their
        end has passed. The poller runs these through execution so that the
        ones past their end get expired.
        """
        sql = f"""
            SELECT {_COLUMNS} FROM remittance_schedules
            WHERE status = 'active'
              AND next_execution <= %s
            ORDER BY id ASC;
        """
        return self._fetch_all(sql, (now,))

    # ── UPDATE ────────────────────────────────────────────

    def update(self, schedule: RemittanceSchedule) -> None:
        """
        Overwrite a schedule if nobody else wrote it since it was loaded.

        Raises:
            ScheduleNotFoundError: If the row was deleted meanwhile.
            ConcurrencyError: If the stored version moved on.
        """
        sql = """
            UPDATE remittance_schedules
            SET amount = %s, split_config_ref = %s, frequency = %s,
                frequency_days = %s, end_timestamp = %s, status = %s,
                last_executed = %s, next_execution = %s, version = version + 1
            WHERE id = %s AND version = %s;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    schedule.amount, schedule.split_config_ref,
                    schedule.frequency.value, schedule.frequency_days,
                    schedule.end_timestamp, schedule.status.value,
                    schedule.last_executed, schedule.next_execution,
                    schedule.id, schedule.version,
                ))
                if cur.rowcount == 0:
                    self._raise_missing_or_stale(cur, schedule.id)
            conn.commit()
            schedule.version += 1
        except ScheduleError:
            conn.rollback()
            raise
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to update schedule #{schedule.id}: {e}")
            raise
        finally:
            release_connection(conn)

    # ── DELETE ────────────────────────────────────────────

    def delete(self, schedule: RemittanceSchedule) -> None:
        """Hard-delete a schedule, guarded by its loaded version."""
        sql = "DELETE FROM remittance_schedules WHERE id = %s AND version = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (schedule.id, schedule.version))
                if cur.rowcount == 0:
                    self._raise_missing_or_stale(cur, schedule.id)
            conn.commit()
            logger.info(f"Deleted schedule #{schedule.id}")
        except ScheduleError:
            conn.rollback()
            raise
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to delete schedule #{schedule.id}: {e}")
            raise
        finally:
            release_connection(conn)

    # ── HELPERS ───────────────────────────────────────────

    def _fetch_all(self, sql: str, params: tuple) -> list[RemittanceSchedule]:
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return [self._row_to_schedule(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    @staticmethod
    def _raise_missing_or_stale(cur, schedule_id: int) -> None:
        cur.execute("SELECT 1 FROM remittance_schedules WHERE id = %s;", (schedule_id,))
        if cur.fetchone() is None:
            raise ScheduleNotFoundError(schedule_id)
        raise ConcurrencyError(schedule_id)

    @staticmethod
    def _row_to_schedule(row: tuple) -> RemittanceSchedule:
        """Convert a database row tuple to a RemittanceSchedule domain object."""
        return RemittanceSchedule(
            id=row[0],
            owner=row[1],
            amount=int(row[2]),
            split_config_ref=row[3],
            frequency=Frequency(row[4]),
            frequency_days=row[5],
            start_timestamp=row[6],
            end_timestamp=row[7],
            status=ScheduleStatus(row[8]),
            last_executed=row[9],
            next_execution=row[10],
            created_at=row[11],
            version=row[12],
        )
