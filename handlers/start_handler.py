"""
handlers/start_handler.py
--------------------------
Handles /start, /help and /myid commands.
"""

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import authorized_only
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)

HELP_TEXT = """
🤖 *RemitBot* - recurring remittances 💸

*🔧 Commands:*
/schedules - list your schedules
/add\\_schedule - create a schedule
/pause <id> - pause a schedule
/resume <id> - resume a schedule
/modify <id> key=value - change amount, frequency, days or end
/cancel\\_schedule <id> - delete a schedule for good
/export\\_csv - export your schedules as CSV
/export\\_excel - export your schedules as Excel
/myid - show your Telegram ID

Due schedules are executed automatically and you get a message each time.
"""


@authorized_only
@rate_limited
async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command - show welcome message."""
    user = update.effective_user
    logger.info(f"User {user.id} ({user.first_name}) started the bot.")

    await update.message.reply_text(
        f"Hi {user.first_name}! 👋\n"
        f"I run your recurring remittances on schedule.\n\n"
        f"Send /help to see all commands."
    )


@authorized_only
@rate_limited
async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command - show all available commands."""
    await update.message.reply_text(HELP_TEXT, parse_mode="Markdown")


async def myid_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /myid command - show user's Telegram ID for the allow-list."""
    user = update.effective_user
    await update.message.reply_text(
        f"🆔 Your ID: `{user.id}`\n"
        f"Add it to `ALLOWED_OWNER_IDS` in the `.env` file to lock the bot down.",
        parse_mode="Markdown",
    )
