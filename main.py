"""
main.py
-------
Entry point for RemitBot.

Responsibilities:
    - Initialize the database connection pool and schema.
    - Configure and start the Telegram bot with all owner commands.
    - Poll for due schedules on a fixed interval and notify their owners.
"""

from telegram import BotCommand
from telegram.ext import Application, CommandHandler

from config import STORE_BACKEND, TELEGRAM_BOT_TOKEN, TICK_INTERVAL_SECONDS
from db.connection import init_pool, close_pool
from db.init_db import create_tables
from handlers.start_handler import start_command, help_command, myid_command
from handlers.schedule_handler import (
    add_schedule_command,
    cancel_command,
    format_amount,
    modify_command,
    pause_command,
    resume_command,
    schedules_command,
)
from handlers.export_handler import export_csv_command, export_excel_command
from models.schedule import ExecutionOutcome, period_days
from services.execution_service import ExecutionService
from utils.logger import get_logger

logger = get_logger(__name__)
execution_service = ExecutionService()


async def run_tick(context) -> None:
    """
    Scheduled job: execute every due schedule and tell its owner.
    Runs every TICK_INTERVAL_SECONDS.
    """
    for schedule, result in execution_service.tick():
        if result.outcome == ExecutionOutcome.EXECUTED:
            text = (
                f"💸 Schedule #{schedule.id} executed: {format_amount(schedule.amount)}.\n"
                f"Next run in {period_days(schedule.frequency, schedule.frequency_days)} days."
            )
        else:
            text = f"⌛ Schedule #{schedule.id} passed its end date and was deactivated."

        if not schedule.owner.isdigit():
            continue
        try:
            await context.bot.send_message(chat_id=int(schedule.owner), text=text)
        except Exception as e:
            logger.error(f"Failed to notify {schedule.owner} about #{schedule.id}: {e}")


async def set_bot_commands(application: Application) -> None:
    """Register bot commands menu in Telegram on startup."""
    commands = [
        BotCommand("start", "🚀 Start the bot"),
        BotCommand("help", "📖 Show help"),
        BotCommand("schedules", "🔁 List your schedules"),
        BotCommand("add_schedule", "➕ Create a schedule"),
        BotCommand("pause", "⏸️ Pause a schedule"),
        BotCommand("resume", "▶️ Resume a schedule"),
        BotCommand("modify", "✏️ Change a schedule"),
        BotCommand("cancel_schedule", "🗑️ Cancel a schedule"),
        BotCommand("export_csv", "📄 Export CSV"),
        BotCommand("export_excel", "📊 Export Excel"),
        BotCommand("myid", "🆔 Your Telegram ID"),
    ]
    await application.bot.set_my_commands(commands)
    logger.info("Bot commands menu registered successfully.")


def main() -> None:
    """Initialize and run the bot."""

    # ── 1. Database setup ─────────────────────────────────
    if STORE_BACKEND == "postgres":
        logger.info("Initializing database...")
        init_pool()
        create_tables()
    else:
        logger.warning(f"Store backend is '{STORE_BACKEND}'; schedules will not survive a restart.")

    # ── 2. Build the Telegram application ─────────────────
    logger.info("Starting Telegram bot...")
    app = Application.builder().token(TELEGRAM_BOT_TOKEN).post_init(set_bot_commands).build()

    # ── 3. Register command handlers ──────────────────────
    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", help_command))
    app.add_handler(CommandHandler("myid", myid_command))
    app.add_handler(CommandHandler("schedules", schedules_command))
    app.add_handler(CommandHandler("add_schedule", add_schedule_command))
    app.add_handler(CommandHandler("pause", pause_command))
    app.add_handler(CommandHandler("resume", resume_command))
    app.add_handler(CommandHandler("modify", modify_command))
    app.add_handler(CommandHandler("cancel_schedule", cancel_command))
    app.add_handler(CommandHandler("export_csv", export_csv_command))
    app.add_handler(CommandHandler("export_excel", export_excel_command))

    # ── 4. Schedule the execution poller ──────────────────
    job_queue = app.job_queue
    if job_queue:
        job_queue.run_repeating(run_tick, interval=TICK_INTERVAL_SECONDS, first=5, name="tick")
        logger.info(f"Scheduled execution tick every {TICK_INTERVAL_SECONDS}s")
    else:
        logger.warning("No job queue available; schedules will only run on external ticks.")

    # ── 5. Start polling ──────────────────────────────────
    logger.info("🚀 RemitBot is running! Press Ctrl+C to stop.")
    app.run_polling(drop_pending_updates=True, allowed_updates=["message"])

    # ── 6. Cleanup on shutdown ────────────────────────────
    if STORE_BACKEND == "postgres":
        close_pool()
    logger.info("RemitBot stopped.")


if __name__ == "__main__":
    main()
