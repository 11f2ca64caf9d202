"""
handlers/export_handler.py
---------------------------
Handles schedule export commands (CSV, Excel).
Delegates to ExportService.
"""

from telegram import Update
from telegram.ext import ContextTypes

from services.export_service import ExportService
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)
export_service = ExportService()


@authorized_only
@rate_limited
async def export_csv_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /export_csv command - send the caller's schedules as CSV."""
    owner = str(update.effective_user.id)
    await update.message.reply_text("📄 Preparing CSV...")

    try:
        buffer = export_service.export_owner_csv(owner)
        await update.message.reply_document(
            document=buffer,
            filename="schedules.csv",
            caption="📊 Your remittance schedules - CSV",
        )
    except Exception as e:
        logger.error(f"CSV export failed for {owner}: {e}")
        await update.message.reply_text("❌ Export failed. Please try again.")


@authorized_only
@rate_limited
async def export_excel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /export_excel command - send the caller's schedules as Excel."""
    owner = str(update.effective_user.id)
    await update.message.reply_text("📊 Preparing Excel file...")

    try:
        buffer = export_service.export_owner_excel(owner)
        await update.message.reply_document(
            document=buffer,
            filename="schedules.xlsx",
            caption="📊 Your remittance schedules - Excel",
        )
    except Exception as e:
        logger.error(f"Excel export failed for {owner}: {e}")
        await update.message.reply_text("❌ Export failed. Please try again.")
