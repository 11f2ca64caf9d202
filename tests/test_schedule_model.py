"""Schedule model — cadence arithmetic and readiness predicates."""

import pytest

from models.schedule import (
    EndTimestampUpdate,
    EndUpdateKind,
    Frequency,
    RemittanceSchedule,
    ScheduleStatus,
    period_seconds,
)


def _schedule(**overrides):
    fields = dict(
        owner="alice", amount=100, frequency=Frequency.WEEKLY,
        start_timestamp=1000, next_execution=1000, created_at=500,
    )
    fields.update(overrides)
    return RemittanceSchedule(**fields)


@pytest.mark.parametrize("frequency, days, expected", [
    (Frequency.WEEKLY, 0, 604_800),
    (Frequency.BIWEEKLY, 0, 1_209_600),
    (Frequency.MONTHLY, 0, 2_592_000),
    (Frequency.CUSTOM, 3, 259_200),
])
def test_period_seconds(frequency, days, expected):
    assert period_seconds(frequency, days) == expected


def test_fixed_frequencies_ignore_frequency_days():
    assert period_seconds(Frequency.MONTHLY, 5) == 30 * 86_400


def test_active_is_derived_from_status():
    assert _schedule().active
    assert not _schedule(status=ScheduleStatus.PAUSED).active
    assert not _schedule(status=ScheduleStatus.EXPIRED).active


def test_ready_includes_the_end_instant():
    schedule = _schedule(end_timestamp=2000)
    assert schedule.is_ready(2000)
    assert not schedule.is_ready(2001)


def test_not_ready_before_due():
    assert not _schedule().is_ready(999)
    assert _schedule().is_ready(1000)


def test_end_update_constructors():
    assert EndTimestampUpdate.no_change().kind == EndUpdateKind.NO_CHANGE
    assert EndTimestampUpdate.clear().kind == EndUpdateKind.CLEAR
    update = EndTimestampUpdate.set_to(5000)
    assert update.kind == EndUpdateKind.SET
    assert update.value == 5000
