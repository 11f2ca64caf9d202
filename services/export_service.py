"""
services/export_service.py
---------------------------
Generates CSV and Excel exports of an owner's schedules.
"""

import io
from datetime import datetime, timezone
from typing import Optional

import pandas as pd

from config import CURRENCY_MINOR_UNITS, DEFAULT_CURRENCY
from models.schedule import RemittanceSchedule, period_days
from repositories.store import ScheduleStore, get_store
from utils.logger import get_logger

logger = get_logger(__name__)


def _iso(timestamp: Optional[int]) -> str:
    if timestamp is None:
        return ""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


class ExportService:
    """Generates downloadable schedule reports in CSV and Excel formats."""

    def __init__(self, store: Optional[ScheduleStore] = None, currency: str = DEFAULT_CURRENCY):
        self.store = store if store is not None else get_store()
        self.currency = currency

    def _frame(self, owner: str) -> pd.DataFrame:
        schedules = self.store.list_by_owner(owner)
        return pd.DataFrame([self._row(s) for s in schedules], columns=[
            "id", "amount", "currency", "frequency", "period_days", "status",
            "start", "end", "next_execution", "last_executed", "split_config_ref",
        ])

    def _row(self, schedule: RemittanceSchedule) -> dict:
        return {
            "id": schedule.id,
            "amount": schedule.amount / CURRENCY_MINOR_UNITS,
            "currency": self.currency,
            "frequency": schedule.frequency.value,
            "period_days": period_days(schedule.frequency, schedule.frequency_days),
            "status": schedule.status.value,
            "start": _iso(schedule.start_timestamp),
            "end": _iso(schedule.end_timestamp),
            "next_execution": _iso(schedule.next_execution),
            "last_executed": _iso(schedule.last_executed),
            "split_config_ref": schedule.split_config_ref or "",
        }

    def export_owner_csv(self, owner: str) -> io.BytesIO:
        """
        Export all schedules of `owner` as a CSV file.

        Returns:
            A BytesIO buffer containing the CSV data.
        """
        df = self._frame(owner)
        buffer = io.BytesIO()
        df.to_csv(buffer, index=False, encoding="utf-8-sig")
        buffer.seek(0)
        logger.info(f"Exported {len(df)} schedules as CSV for owner {owner}")
        return buffer

    def export_owner_excel(self, owner: str) -> io.BytesIO:
        """
        Export all schedules of `owner` as an Excel (.xlsx) file,
        with a summary sheet of totals per frequency.

        Returns:
            A BytesIO buffer containing the Excel data.
        """
        df = self._frame(owner)

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Schedules", index=False)

            if not df.empty:
                summary = df.groupby("frequency")["amount"].agg(["count", "sum"]).reset_index()
                summary.columns = ["frequency", "schedules", "total_amount"]
                summary.to_excel(writer, sheet_name="Summary", index=False)

        buffer.seek(0)
        logger.info(f"Exported {len(df)} schedules as Excel for owner {owner}")
        return buffer
