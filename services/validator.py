"""
services/validator.py
---------------------
Pure consistency checks for schedule parameters.
Nothing here reads the store or the clock; callers pass `now` in.
"""

from typing import Optional

from models.schedule import Frequency
from utils.errors import ValidationError


def check_amount(amount: int) -> None:
    if amount <= 0:
        raise ValidationError("Amount must be positive", field="amount")


def check_custom_days(frequency: Frequency, frequency_days: int) -> None:
    if frequency == Frequency.CUSTOM and frequency_days <= 0:
        raise ValidationError(
            "Custom frequency requires frequency_days > 0", field="frequency_days"
        )


def check_end_after_start(start_timestamp: int, end_timestamp: Optional[int]) -> None:
    if end_timestamp is not None and end_timestamp <= start_timestamp:
        raise ValidationError(
            "End timestamp must be after start timestamp", field="end_timestamp"
        )


def validate_schedule_params(
    amount: int,
    frequency: Frequency,
    frequency_days: int,
    start_timestamp: int,
    end_timestamp: Optional[int],
    now: int,
) -> None:
    """
    Check creation parameters for internal consistency.

    A start equal to `now` is accepted; anything earlier is back-dating.

    Raises:
        ValidationError: On the first rule that does not hold.
    """
    check_amount(amount)
    check_custom_days(frequency, frequency_days)
    if start_timestamp < now:
        raise ValidationError(
            "Start timestamp must not be in the past", field="start_timestamp"
        )
    check_end_after_start(start_timestamp, end_timestamp)
