"""
handlers/schedule_handler.py
-----------------------------
Owner commands for remittance schedules.
Parses the command text, delegates to ScheduleService, and replies.
"""

import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from dateutil.parser import isoparse
from telegram import Update
from telegram.ext import ContextTypes

from config import CURRENCY_MINOR_UNITS, DEFAULT_CURRENCY
from models.schedule import EndTimestampUpdate, Frequency, RemittanceSchedule
from services.schedule_service import ScheduleService
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from utils.errors import ScheduleError
from utils.logger import get_logger

logger = get_logger(__name__)
schedule_service = ScheduleService()

# Frequency mapping
_FREQ_MAP = {
    "weekly": Frequency.WEEKLY, "week": Frequency.WEEKLY,
    "biweekly": Frequency.BIWEEKLY, "fortnightly": Frequency.BIWEEKLY,
    "monthly": Frequency.MONTHLY, "month": Frequency.MONTHLY,
}
# custom:10  or  10d
_CUSTOM_RE = re.compile(r"^(?:custom:(\d+)|(\d+)d)$")

_CLEAR_WORDS = {"none", "clear", "-"}


# ── Parsing ───────────────────────────────────────────────

def parse_frequency(text: str) -> Optional[tuple[Frequency, int]]:
    """Return (frequency, frequency_days) or None if unrecognised."""
    text = text.strip().lower()
    if text in _FREQ_MAP:
        return _FREQ_MAP[text], 0
    match = _CUSTOM_RE.match(text)
    if match:
        return Frequency.CUSTOM, int(match.group(1) or match.group(2))
    return None


def parse_amount(text: str) -> Optional[int]:
    """Major units as typed ("12.50") to minor units (1250). None if not a whole number of minor units."""
    try:
        value = Decimal(text.strip().replace(",", ".")) * CURRENCY_MINOR_UNITS
    except InvalidOperation:
        return None
    if not value.is_finite() or value != value.to_integral_value():
        return None
    return int(value)


def parse_timestamp(text: str) -> Optional[int]:
    """ISO-8601 date or datetime to epoch seconds. Naive values are UTC."""
    try:
        moment = isoparse(text.strip())
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def parse_create_args(text: str) -> Optional[dict]:
    """
    Parse the structured creation format:
      amount | frequency | start [| end]
    Example:
      150 | monthly | 2026-11-01
      25.5 | 10d | 2026-11-01T09:00 | 2027-11-01
    """
    parts = [p.strip() for p in text.split("|")]
    if len(parts) < 3:
        return None

    amount = parse_amount(parts[0])
    frequency = parse_frequency(parts[1])
    start = parse_timestamp(parts[2])
    if amount is None or frequency is None or start is None:
        return None

    end = None
    if len(parts) >= 4 and parts[3]:
        end = parse_timestamp(parts[3])
        if end is None:
            return None

    return {
        "amount": amount,
        "frequency": frequency[0],
        "frequency_days": frequency[1],
        "start_timestamp": start,
        "end_timestamp": end,
    }


def parse_modify_args(tokens: list[str]) -> Optional[dict]:
    """
    Parse `key=value` tokens into modify_schedule keyword arguments.
    Keys: amount, frequency, days, end (a date, or none to clear).
    """
    changes: dict = {}
    for token in tokens:
        key, sep, value = token.partition("=")
        if not sep or not value:
            return None
        key = key.strip().lower()

        if key == "amount":
            amount = parse_amount(value)
            if amount is None:
                return None
            changes["amount"] = amount
        elif key == "frequency":
            frequency = parse_frequency(value)
            if frequency is None:
                return None
            changes["frequency"] = frequency[0]
            if frequency[0] == Frequency.CUSTOM:
                changes.setdefault("frequency_days", frequency[1])
        elif key == "days":
            if not value.isdigit():
                return None
            changes["frequency_days"] = int(value)
        elif key == "end":
            if value.lower() in _CLEAR_WORDS:
                changes["end_update"] = EndTimestampUpdate.clear()
            else:
                end = parse_timestamp(value)
                if end is None:
                    return None
                changes["end_update"] = EndTimestampUpdate.set_to(end)
        else:
            return None
    return changes or None


def parse_schedule_id(args: Optional[list[str]]) -> Optional[int]:
    if not args:
        return None
    text = args[0].lstrip("#")
    return int(text) if text.isdigit() else None


# ── Formatting ────────────────────────────────────────────

def format_amount(minor_units: int) -> str:
    return f"{Decimal(minor_units) / CURRENCY_MINOR_UNITS:.2f} {DEFAULT_CURRENCY}"


def _format_time(timestamp: Optional[int]) -> str:
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def format_schedule(schedule: RemittanceSchedule) -> str:
    cadence = schedule.frequency.value
    if schedule.frequency == Frequency.CUSTOM:
        cadence = f"every {schedule.frequency_days} days"
    return (
        f"#{schedule.id} {format_amount(schedule.amount)} ({cadence}) [{schedule.status.value}]\n"
        f"  next: {_format_time(schedule.next_execution)}"
        f" | last: {_format_time(schedule.last_executed)}"
        f" | end: {_format_time(schedule.end_timestamp)}"
    )


# ── Commands ──────────────────────────────────────────────

@authorized_only
@rate_limited
async def schedules_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /schedules - list all schedules of the caller."""
    owner = str(update.effective_user.id)
    schedules = schedule_service.get_schedules_by_owner(owner)
    if not schedules:
        await update.message.reply_text("📭 You have no remittance schedules.")
        return
    lines = ["🔁 Your remittance schedules:\n"]
    lines.extend(format_schedule(s) for s in schedules)
    await update.message.reply_text("\n".join(lines))


@authorized_only
@rate_limited
async def add_schedule_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /add_schedule - create a new schedule.

    Format:
        /add_schedule amount | frequency | start [| end]

    Examples:
        /add_schedule 150 | monthly | 2026-11-01
        /add_schedule 40 | biweekly | 2026-11-01T08:00
        /add_schedule 25 | 10d | 2026-11-01 | 2027-05-01
    """
    if not context.args:
        await update.message.reply_text(
            "📝 Add a remittance schedule\n\n"
            "/add_schedule amount | frequency | start [| end]\n\n"
            "Examples:\n"
            "• /add_schedule 150 | monthly | 2026-11-01\n"
            "• /add_schedule 25 | 10d | 2026-11-01 | 2027-05-01\n\n"
            "Frequency: weekly, biweekly, monthly, custom:N or Nd"
        )
        return

    parsed = parse_create_args(" ".join(context.args))
    if parsed is None:
        await update.message.reply_text("🤔 Could not read that. Send /add_schedule for the format.")
        return

    owner = str(update.effective_user.id)
    try:
        schedule_id = schedule_service.create_schedule(owner=owner, **parsed)
    except ScheduleError as e:
        await update.message.reply_text(f"⚠️ {e.message}")
        return

    await update.message.reply_text(
        f"✅ Schedule #{schedule_id} created: {format_amount(parsed['amount'])}, "
        f"first run {_format_time(parsed['start_timestamp'])}."
    )


async def _owner_action(update: Update, context: ContextTypes.DEFAULT_TYPE, usage: str, action, done: str) -> None:
    schedule_id = parse_schedule_id(context.args)
    if schedule_id is None:
        await update.message.reply_text(f"⚠️ Usage: {usage}")
        return
    try:
        action(str(update.effective_user.id), schedule_id)
    except ScheduleError as e:
        await update.message.reply_text(f"⚠️ {e.message}")
        return
    await update.message.reply_text(done.format(id=schedule_id))


@authorized_only
@rate_limited
async def pause_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /pause <id>."""
    await _owner_action(
        update, context, "/pause <id>",
        schedule_service.pause_schedule, "⏸️ Schedule #{id} paused.",
    )


@authorized_only
@rate_limited
async def resume_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /resume <id>."""
    await _owner_action(
        update, context, "/resume <id>",
        schedule_service.resume_schedule, "▶️ Schedule #{id} resumed.",
    )


@authorized_only
@rate_limited
async def cancel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /cancel_schedule <id> - permanent deletion."""
    await _owner_action(
        update, context, "/cancel_schedule <id>",
        schedule_service.cancel_schedule, "🗑️ Schedule #{id} cancelled.",
    )


@authorized_only
@rate_limited
async def modify_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /modify <id> key=value ...
    Example: /modify 3 amount=200 frequency=biweekly end=none
    """
    schedule_id = parse_schedule_id(context.args)
    changes = parse_modify_args(context.args[1:]) if schedule_id is not None else None
    if changes is None:
        await update.message.reply_text(
            "⚠️ Usage: /modify <id> amount=.. frequency=.. days=.. end=YYYY-MM-DD|none"
        )
        return

    try:
        schedule = schedule_service.modify_schedule(
            str(update.effective_user.id), schedule_id, **changes
        )
    except ScheduleError as e:
        await update.message.reply_text(f"⚠️ {e.message}")
        return
    await update.message.reply_text(f"✏️ Updated:\n{format_schedule(schedule)}")
