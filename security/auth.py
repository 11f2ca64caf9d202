"""
security/auth.py
-----------------
Identity verification for schedule owners.

`AllowListVerifier` is the collaborator the services call before any
mutation; `authorized_only` applies the same allow-list to bot handlers.
"""

from functools import wraps
from typing import Callable, Iterable, Optional, Protocol

from telegram import Update
from telegram.ext import ContextTypes

from config import ALLOWED_OWNER_IDS
from utils.errors import UnauthorizedError
from utils.logger import get_logger

logger = get_logger(__name__)


class IdentityVerifier(Protocol):
    def require_auth(self, principal: str) -> None: ...


class AllowListVerifier:
    """
    Accepts a principal only if it is on the allow-list.

    Behavior:
        - If the allow-list is empty, ALL principals are accepted (dev mode).
        - Otherwise unknown principals raise UnauthorizedError and are logged.
    """

    def __init__(self, allowed_ids: Optional[Iterable[str]] = None):
        source = ALLOWED_OWNER_IDS if allowed_ids is None else allowed_ids
        self.allowed_ids = {str(uid) for uid in source}

    def is_allowed(self, principal: str) -> bool:
        return not self.allowed_ids or str(principal) in self.allowed_ids

    def require_auth(self, principal: str) -> None:
        if not self.is_allowed(principal):
            logger.warning(f"🚫 Rejected principal '{principal}'")
            raise UnauthorizedError(str(principal))


_verifier = AllowListVerifier()


def authorized_only(func: Callable):
    """
    Decorator that restricts a handler to allow-listed Telegram users.

    Usage:
        @authorized_only
        async def my_handler(update, context):
            ...
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user:
            return

        if not _verifier.is_allowed(str(user.id)):
            logger.warning(
                f"🚫 Unauthorized access attempt: user_id={user.id}, "
                f"username={user.username}"
            )
            await update.message.reply_text("⛔ Sorry, this bot is private.")
            return

        return await func(update, context, *args, **kwargs)

    return wrapper
