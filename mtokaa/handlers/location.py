"""Location sharing, live updates, my location, forget."""
import logging

from aiogram import Router, F
from aiogram.types import Message
from aiogram.fsm.context import FSMContext
from aiogram.exceptions import TelegramBadRequest

from mtokaa.i18n.en import TEXTS_EN
from mtokaa.keyboards.inline import city_keyboard
from mtokaa.keyboards.reply import main_menu_keyboard
from mtokaa.services.chat_location import LocationHub
from mtokaa.services.errors import LocationError
from mtokaa.services.geo_service import Coordinate
from mtokaa.services.location_service import LocationService, LocationSnapshot, now_ms
from mtokaa.states import NearbySearch
from mtokaa.utils.time_utils import format_age

logger = logging.getLogger("mtokaa")

router = Router(name="location")


# ═══════════════════════════════════════════
# Incoming locations
# ═══════════════════════════════════════════

@router.message(F.location)
async def on_location(message: Message, texts: dict, location_hub: LocationHub,
                      location_service: LocationService, **kwargs):
    lat = message.location.latitude
    lon = message.location.longitude
    if not Coordinate(lat, lon).is_valid():
        await message.answer(texts["invalid_location"])
        return

    provider = location_hub.provider_for(message.from_user.id)
    was_pending = provider.has_pending_request
    await provider.publish(lat, lon, message.location.horizontal_accuracy)

    # A waiting search or a live watcher takes it from here
    if was_pending or location_service.is_watching:
        return

    try:
        snapshot = await location_service.request_location()
    except LocationError as e:
        logger.warning(f"Shared location from {message.from_user.id} not accepted: {e}")
        await message.answer(texts["location_unavailable"], reply_markup=city_keyboard(texts))
        return

    await message.answer(
        texts["location_received"].format(place=snapshot.label()),
        reply_markup=main_menu_keyboard(texts, watching=location_service.is_watching),
    )


@router.edited_message(F.location)
async def on_live_location(message: Message, location_hub: LocationHub, **kwargs):
    """Live location updates arrive as edits of the original location message."""
    lat = message.location.latitude
    lon = message.location.longitude
    if not Coordinate(lat, lon).is_valid():
        return
    provider = location_hub.provider_for(message.from_user.id)
    await provider.publish(lat, lon, message.location.horizontal_accuracy)


@router.message(F.text == TEXTS_EN["enter_manually_btn"])
async def on_enter_manually(message: Message, state: FSMContext, texts: dict,
                            location_hub: LocationHub, **kwargs):
    provider = location_hub.provider_for(message.from_user.id)
    if provider.has_pending_request:
        # The waiting search shows the city picker
        provider.deny()
        return

    await state.set_state(NearbySearch.choosing_city)
    await message.answer(texts["choose_city"], reply_markup=city_keyboard(texts))


# ═══════════════════════════════════════════
# My location / forget
# ═══════════════════════════════════════════

@router.message(F.text == TEXTS_EN["btn_my_location"])
async def on_my_location(message: Message, texts: dict, location_service: LocationService, **kwargs):
    snapshot = await location_service.get_current_location()
    if snapshot is None:
        await message.answer(texts["no_location_yet"])
        return

    await message.answer(texts["my_location"].format(
        place=snapshot.label(),
        age=format_age(now_ms() - snapshot.timestamp),
    ))
    await message.answer_location(latitude=snapshot.latitude, longitude=snapshot.longitude)


@router.message(F.text == TEXTS_EN["btn_forget_location"])
async def on_forget_location(message: Message, texts: dict, location_service: LocationService, **kwargs):
    location_service.stop_watching()
    await location_service.clear_stored_location()
    logger.info(f"User {message.from_user.id} cleared their stored location")
    await message.answer(texts["location_forgotten"], reply_markup=main_menu_keyboard(texts))


# ═══════════════════════════════════════════
# Live updates
# ═══════════════════════════════════════════

@router.message(F.text == TEXTS_EN["btn_live_on"])
async def on_live_on(message: Message, texts: dict, location_service: LocationService, **kwargs):
    status = await message.answer(
        texts["live_started"],
        reply_markup=main_menu_keyboard(texts, watching=True),
    )

    async def on_update(snapshot: LocationSnapshot):
        try:
            await status.edit_text(texts["live_update"].format(place=snapshot.label()))
        except TelegramBadRequest as e:
            if "message is not modified" not in str(e).lower():
                logger.debug(f"Cannot edit live status message: {e}")

    location_service.start_watching(on_update)
    logger.info(f"User {message.from_user.id} started live location updates")


@router.message(F.text == TEXTS_EN["btn_live_off"])
async def on_live_off(message: Message, texts: dict, location_service: LocationService, **kwargs):
    location_service.stop_watching()
    await message.answer(texts["live_stopped"], reply_markup=main_menu_keyboard(texts, watching=False))
