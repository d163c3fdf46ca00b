"""Common handlers - /start, main menu, admin commands."""
import logging

from aiogram import Router, F
from aiogram.types import Message, CallbackQuery
from aiogram.filters import Command, CommandStart, CommandObject
from aiogram.fsm.context import FSMContext

from mtokaa.config import ADMINS
from mtokaa.i18n.en import TEXTS_EN
from mtokaa.keyboards.reply import main_menu_keyboard
from mtokaa.services import business_service
from mtokaa.services.chat_location import LocationHub
from mtokaa.services.location_service import LocationService

logger = logging.getLogger("mtokaa")

router = Router(name="common")


@router.message(CommandStart())
async def cmd_start(message: Message, state: FSMContext, texts: dict,
                    location_service: LocationService, **kwargs):
    await state.clear()
    await message.answer(
        texts["welcome"].format(name=message.from_user.first_name),
        reply_markup=main_menu_keyboard(texts, watching=location_service.is_watching),
    )


@router.message(F.text == TEXTS_EN["main_menu"])
async def on_main_menu(message: Message, state: FSMContext, texts: dict,
                       location_hub: LocationHub, location_service: LocationService, **kwargs):
    await state.clear()
    # Wake up a nearby search still waiting for a location share
    provider = location_hub.provider_for(message.from_user.id)
    if provider.has_pending_request:
        provider.deny()
    await message.answer(
        texts["select_action"],
        reply_markup=main_menu_keyboard(texts, watching=location_service.is_watching),
    )


@router.callback_query(F.data == "noop")
async def on_noop(callback: CallbackQuery, **kwargs):
    await callback.answer()


# ═══════════════════════════════════════════
# Admin
# ═══════════════════════════════════════════

@router.message(Command("stats"), F.from_user.id.in_(ADMINS))
async def cmd_stats(message: Message, texts: dict, **kwargs):
    counts = await business_service.get_business_counts()
    await message.answer(texts["admin_stats"].format(**counts))


@router.message(Command("verify"), F.from_user.id.in_(ADMINS))
async def cmd_verify(message: Message, command: CommandObject, texts: dict, **kwargs):
    if not command.args or not command.args.strip().isdigit():
        await message.answer(texts["admin_usage_verify"])
        return

    business_id = int(command.args.strip())
    business = await business_service.get_business(business_id)
    if not business:
        await message.answer(texts["business_not_found"])
        return

    await business_service.set_verified(business_id)
    logger.info(f"Admin {message.from_user.id} verified business {business_id}")
    await message.answer(texts["admin_verified"].format(business_id=business_id))
