"""Nearby search: location, radius, type, sort, tiered results."""
import logging

from aiogram import Router, F
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from mtokaa.config import CHAT_LOCATION_TIMEOUT_MS, CITY_PRESETS, NEARBY_LIMIT, RADIUS_OPTIONS
from mtokaa.i18n.en import TEXTS_EN
from mtokaa.keyboards.inline import (
    city_keyboard, radius_keyboard, type_keyboard, sort_keyboard, results_keyboard,
)
from mtokaa.keyboards.reply import location_request_keyboard, main_menu_keyboard
from mtokaa.services import listing_service
from mtokaa.services.chat_location import LocationHub
from mtokaa.services.errors import PermissionDenied, PositionUnavailable, RequestSuperseded, Timeout
from mtokaa.services.geocoding_service import PlaceInfo
from mtokaa.services.location_service import LocationService, LocationSnapshot
from mtokaa.services.proximity_service import (
    SORT_KEYS, find_nearby, attach_travel_times, group_by_distance_tier, format_distance,
)
from mtokaa.states import NearbySearch
from mtokaa.utils.flow_message import ensure_flow_message
from mtokaa.utils.pagination import paginate

logger = logging.getLogger("mtokaa")

router = Router(name="nearby")

TIER_ORDER = ("nearby", "moderate", "far")

ACQUISITION_ERROR_TEXTS = {
    PermissionDenied: "location_denied",
    Timeout: "location_timeout",
    PositionUnavailable: "location_unavailable",
}


# ═══════════════════════════════════════════
# Entry point and location acquisition
# ═══════════════════════════════════════════

@router.message(F.text == TEXTS_EN["btn_nearby"])
async def start_nearby(message: Message, state: FSMContext, texts: dict,
                       location_hub: LocationHub, location_service: LocationService, **kwargs):
    await state.clear()

    snapshot = await location_service.get_current_location()
    if snapshot is None:
        snapshot = await _acquire_location(message, state, texts, location_hub, location_service)
        if snapshot is None:
            return

    await state.update_data(place=snapshot.label())
    await state.set_state(NearbySearch.choosing_radius)
    await ensure_flow_message(
        message, texts["choose_radius"].format(place=snapshot.label()), state,
        keyboard=radius_keyboard(texts),
    )


async def _acquire_location(message: Message, state: FSMContext, texts: dict,
                            location_hub: LocationHub,
                            location_service: LocationService) -> LocationSnapshot | None:
    """
    Ask for a location share and wait for it. On refusal, timeout or failure
    the city picker is shown and None is returned.
    """
    provider = location_hub.provider_for(message.from_user.id)
    provider.reset()

    await state.set_state(NearbySearch.waiting_location)
    await message.answer(texts["share_location"], reply_markup=location_request_keyboard(texts))

    try:
        snapshot = await location_service.request_location(timeout_ms=CHAT_LOCATION_TIMEOUT_MS)
    except RequestSuperseded:
        # A newer "Nearby" press owns the flow now
        return None
    except (PermissionDenied, Timeout, PositionUnavailable) as e:
        if await state.get_state() != NearbySearch.waiting_location.state:
            # User left the flow while we were waiting
            return None
        logger.info(f"Location not acquired for {message.from_user.id}: {e}")
        await state.set_state(NearbySearch.choosing_city)
        await message.answer(texts[ACQUISITION_ERROR_TEXTS[type(e)]], reply_markup=city_keyboard(texts))
        return None

    await message.answer(
        texts["location_received"].format(place=snapshot.label()),
        reply_markup=main_menu_keyboard(texts, watching=location_service.is_watching),
    )
    return snapshot


@router.callback_query(F.data.startswith("near:city:"))
async def on_city_chosen(callback: CallbackQuery, state: FSMContext, texts: dict,
                         location_service: LocationService, **kwargs):
    key = callback.data.split(":")[2]
    preset = CITY_PRESETS.get(key)
    if preset is None:
        await callback.answer(texts["error_generic"], show_alert=True)
        return

    name, lat, lon = preset
    snapshot = await location_service.set_manual_location(
        lat, lon, PlaceInfo(city=name, formatted_address=name)
    )
    await state.update_data(place=snapshot.label())
    await state.set_state(NearbySearch.choosing_radius)
    await ensure_flow_message(
        callback, texts["choose_radius"].format(place=snapshot.label()), state,
        keyboard=radius_keyboard(texts),
    )


# ═══════════════════════════════════════════
# Radius → type → sort
# ═══════════════════════════════════════════

def _callback_int(data: str) -> int | None:
    """Numeric tail of `near:<action>:<n>` callback data, None if malformed."""
    try:
        return int(data.split(":")[2])
    except (IndexError, ValueError):
        return None


@router.callback_query(F.data.startswith("near:radius:"))
async def on_radius_chosen(callback: CallbackQuery, state: FSMContext, texts: dict, **kwargs):
    radius_km = _callback_int(callback.data)
    if radius_km not in RADIUS_OPTIONS:
        await callback.answer(texts["error_generic"], show_alert=True)
        return

    await state.update_data(radius=radius_km)
    await state.set_state(NearbySearch.choosing_type)
    await ensure_flow_message(callback, texts["choose_type"], state, keyboard=type_keyboard(texts))


@router.callback_query(F.data.startswith("near:type:"))
async def on_type_chosen(callback: CallbackQuery, state: FSMContext, texts: dict, **kwargs):
    service_type = callback.data.split(":")[2]
    await state.update_data(service_type=None if service_type == "all" else service_type)
    await state.set_state(NearbySearch.choosing_sort)
    await ensure_flow_message(callback, texts["choose_sort"], state, keyboard=sort_keyboard(texts))


@router.callback_query(F.data.startswith("near:sort:"))
async def on_sort_chosen(callback: CallbackQuery, state: FSMContext, texts: dict,
                         location_service: LocationService, **kwargs):
    sort_by = callback.data.split(":")[2]
    if sort_by not in SORT_KEYS:
        await callback.answer(texts["error_generic"], show_alert=True)
        return

    snapshot = await location_service.get_current_location()
    if snapshot is None:
        await state.clear()
        await ensure_flow_message(callback, texts["no_location_yet"], state)
        return

    data = await state.get_data()
    radius_km = data.get("radius", RADIUS_OPTIONS[0])

    candidates = await listing_service.get_nearby_candidates(
        snapshot.latitude, snapshot.longitude, radius_km
    )
    ranked = find_nearby(
        snapshot,
        candidates,
        max_distance=radius_km,
        service_type=data.get("service_type"),
        limit=NEARBY_LIMIT,
        sort_by=sort_by,
    )
    attach_travel_times(ranked, "driving")

    tier_of = {}
    for tier, items in group_by_distance_tier(ranked).items():
        for item in items:
            tier_of[item.listing.id] = tier

    results = [
        {
            "id": item.listing.id,
            "name": item.listing.name,
            "distance": format_distance(item.distance_km),
            "travel": item.travel_time,
            "rating": item.listing.rating,
            "reviews": item.listing.reviews,
            "tier": tier_of.get(item.listing.id),
        }
        for item in ranked
        if item.distance_km is not None
    ]
    logger.info(
        f"Nearby search by {callback.from_user.id}: {len(results)} result(s) "
        f"within {radius_km} km, sorted by {sort_by}"
    )

    await state.update_data(results=results, place=snapshot.label())
    await state.set_state(NearbySearch.results)
    await _show_results(callback, state, texts, 0)


# ═══════════════════════════════════════════
# Results
# ═══════════════════════════════════════════

def render_results(results: list[dict], texts: dict, radius_km: int, place: str,
                   total: int | None = None) -> str:
    """
    One page of results grouped by distance tier, keeping the chosen order
    inside each tier. `total` is the size of the whole result set.
    """
    count = len(results) if total is None else total
    lines = [texts["results_title"].format(count=count, km=radius_km, place=place)]
    for tier in TIER_ORDER:
        items = [r for r in results if r["tier"] == tier]
        if not items:
            continue
        lines.append("")
        lines.append(texts[f"tier_{tier}"])
        lines.extend(
            texts["result_line"].format(
                name=r["name"], distance=r["distance"], travel=r["travel"],
                rating=r["rating"], reviews=r["reviews"],
            )
            for r in items
        )
    return "\n".join(lines)


async def _show_results(event: Message | CallbackQuery, state: FSMContext, texts: dict, page: int):
    data = await state.get_data()
    results = data.get("results")
    radius_km = data.get("radius", RADIUS_OPTIONS[0])

    if results is None:
        await ensure_flow_message(event, texts["error_generic"], state)
        return
    if not results:
        await ensure_flow_message(event, texts["no_results"].format(km=radius_km), state,
                                  keyboard=radius_keyboard(texts))
        return

    page_items, page, total_pages = paginate(results, page)
    await ensure_flow_message(
        event,
        render_results(page_items, texts, radius_km, data.get("place", ""), total=len(results)),
        state,
        keyboard=results_keyboard(page_items, page, total_pages),
    )


@router.callback_query(F.data.startswith("near:page:"))
async def on_results_page(callback: CallbackQuery, state: FSMContext, texts: dict, **kwargs):
    page = _callback_int(callback.data)
    if page is None:
        await callback.answer(texts["error_generic"], show_alert=True)
        return
    await _show_results(callback, state, texts, page)
