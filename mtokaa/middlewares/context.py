from typing import Any, Callable, Awaitable

from aiogram import BaseMiddleware
from aiogram.types import Message, CallbackQuery

from mtokaa.config import DEFAULT_LANGUAGE
from mtokaa.i18n.en import TEXTS_EN
from mtokaa.services.chat_location import LocationHub

TEXTS = {"en": TEXTS_EN}


class ContextMiddleware(BaseMiddleware):
    """
    Injects `lang`, `texts`, `location_hub` and the user's own
    `location_service` into handler data.
    """

    def __init__(self, hub: LocationHub):
        super().__init__()
        self.hub = hub

    async def __call__(
        self,
        handler: Callable[[Message | CallbackQuery, dict[str, Any]], Awaitable[Any]],
        event: Message | CallbackQuery,
        data: dict[str, Any],
    ) -> Any:
        user = event.from_user
        lang = user.language_code if user and user.language_code in TEXTS else DEFAULT_LANGUAGE
        data["lang"] = lang
        data["texts"] = TEXTS[lang]
        data["location_hub"] = self.hub
        if user is not None:
            data["location_service"] = self.hub.service_for(user.id)

        return await handler(event, data)
