import time
from collections import defaultdict
from typing import Any, Callable, Awaitable

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery

from mtokaa.config import RATE_LIMIT_WINDOW, RATE_LIMIT_MAX_HITS
from mtokaa.i18n.en import TEXTS_EN


# Prefixes that trigger rate limiting
CRITICAL_PREFIXES = ("near:", "biz:", "rate:")


class RateLimitMiddleware(BaseMiddleware):
    """
    Rate-limit middleware for callback queries.
    Allows max RATE_LIMIT_MAX_HITS within RATE_LIMIT_WINDOW seconds
    for critical action prefixes.
    """

    def __init__(self, window: float = RATE_LIMIT_WINDOW, max_hits: int = RATE_LIMIT_MAX_HITS):
        super().__init__()
        self.window = window
        self.max_hits = max_hits
        self.hits: dict[int, list[float]] = defaultdict(list)

    async def __call__(
        self,
        handler: Callable[[CallbackQuery, dict[str, Any]], Awaitable[Any]],
        event: CallbackQuery,
        data: dict[str, Any],
    ) -> Any:
        if not isinstance(event, CallbackQuery) or not event.data:
            return await handler(event, data)

        # Only rate-limit critical actions
        is_critical = any(event.data.startswith(p) for p in CRITICAL_PREFIXES)
        if not is_critical:
            return await handler(event, data)

        user_id = event.from_user.id
        now = time.monotonic()

        # Clean old timestamps
        self.hits[user_id] = [
            t for t in self.hits[user_id] if now - t < self.window
        ]

        if len(self.hits[user_id]) >= self.max_hits:
            texts = data.get("texts", TEXTS_EN)
            await event.answer(texts["rate_limit"], show_alert=True)
            return

        self.hits[user_id].append(now)
        return await handler(event, data)
