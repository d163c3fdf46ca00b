from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.memory import MemoryStorage

from mtokaa.config import BOT_TOKEN

if not BOT_TOKEN:
    raise RuntimeError("BOT_TOKEN not found. Add BOT_TOKEN to your .env file.")

bot = Bot(token=BOT_TOKEN, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
dp = Dispatcher(storage=MemoryStorage())
