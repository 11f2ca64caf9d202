"""
security/rate_limiter.py
-------------------------
Sliding-window rate limiting for bot commands.
Owners hammering /add_schedule or /pause should not be able to flood the store.
"""

import time
from collections import defaultdict
from functools import wraps
from typing import Callable, Optional

from telegram import Update
from telegram.ext import ContextTypes

from config import RATE_LIMIT_MESSAGES, RATE_LIMIT_WINDOW_SECONDS
from utils.logger import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """
    Tracks request timestamps per key and refuses keys over the limit.

    Args:
        max_requests: Requests allowed inside one window.
        window_seconds: Length of the sliding window.
        clock: Callable returning the current time in seconds.
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MESSAGES,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock or time.time
        self._hits: dict[str, list[float]] = defaultdict(list)

    def _cleanup(self, now: float) -> None:
        """Drop hits older than the window, and keys left with none."""
        cutoff = now - self.window_seconds
        for key in list(self._hits):
            recent = [t for t in self._hits[key] if t > cutoff]
            if recent:
                self._hits[key] = recent
            else:
                del self._hits[key]

    def allow(self, key: str) -> bool:
        """Record a hit for `key` and return False if it exceeds the limit."""
        now = self._clock()
        self._cleanup(now)
        if len(self._hits[key]) >= self.max_requests:
            return False
        self._hits[key].append(now)
        return True


_limiter = RateLimiter()


def rate_limited(func: Callable):
    """
    Decorator that enforces rate limiting per Telegram user.

    Configuration (via .env):
        RATE_LIMIT_MESSAGES: Max commands per window (default: 30).
        RATE_LIMIT_WINDOW_SECONDS: Window duration in seconds (default: 60).
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user:
            return

        if not _limiter.allow(str(user.id)):
            logger.warning(f"⚠️ Rate limit hit for user {user.id}")
            await update.message.reply_text(
                "⚠️ Too many commands. Please wait a moment and try again."
            )
            return

        return await func(update, context, *args, **kwargs)

    return wrapper
