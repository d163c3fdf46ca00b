"""Featured businesses, area statistics and text search."""
import html
import logging

from aiogram import Router, F
from aiogram.types import Message
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext

from mtokaa.config import FEATURED_LIMIT, DENSITY_RADIUS_KM, PAGE_SIZE
from mtokaa.i18n.en import TEXTS_EN
from mtokaa.keyboards.inline import results_keyboard
from mtokaa.services import business_service, listing_service
from mtokaa.services.geo_service import distance_km
from mtokaa.services.location_service import LocationService
from mtokaa.services.proximity_service import format_distance, get_service_density

logger = logging.getLogger("mtokaa")

router = Router(name="featured")


@router.message(F.text == TEXTS_EN["btn_featured"])
async def on_featured(message: Message, state: FSMContext, texts: dict,
                      location_service: LocationService, **kwargs):
    await state.clear()
    snapshot = await location_service.get_current_location()
    lat = snapshot.latitude if snapshot else None
    lon = snapshot.longitude if snapshot else None

    businesses = await listing_service.get_featured_businesses(FEATURED_LIMIT, lat, lon)
    if not businesses:
        await message.answer(texts["featured_empty"])
        return

    title = (
        texts["featured_title_near"].format(place=snapshot.label())
        if snapshot else texts["featured_title"]
    )
    lines = [title, ""]
    buttons = []
    for listing in businesses:
        distance = ""
        coordinate = listing.coordinate()
        if snapshot and coordinate is not None:
            distance = format_distance(distance_km(snapshot.coordinate, coordinate))
        lines.append(texts["featured_line"].format(
            name=html.escape(listing.name),
            type=texts["business_types"].get(listing.business_type, listing.business_type),
            rating=listing.rating,
            reviews=listing.reviews,
            distance=f" · {distance}" if distance else "",
        ))
        buttons.append({"id": listing.id, "name": listing.name, "distance": distance})

    await message.answer("\n".join(lines), reply_markup=results_keyboard(buttons, 0, 1))


@router.message(F.text == TEXTS_EN["btn_density"])
async def on_density(message: Message, texts: dict, location_service: LocationService, **kwargs):
    snapshot = await location_service.get_current_location()
    if snapshot is None:
        await message.answer(texts["no_location_yet"])
        return

    businesses = await business_service.list_active_businesses()
    density = get_service_density(snapshot, businesses, DENSITY_RADIUS_KM)
    by_type = density["count_by_type"]

    await message.answer(texts["density"].format(
        km=DENSITY_RADIUS_KM,
        place=snapshot.label(),
        total=density["total_count"],
        garage=by_type.get("garage", 0),
        mechanic=by_type.get("mechanic", 0),
        parts=by_type.get("parts", 0),
        average=format_distance(density["average_distance"]) if density["total_count"] else "-",
    ))


@router.message(Command("search"))
async def on_search(message: Message, command: CommandObject, texts: dict,
                    location_service: LocationService, **kwargs):
    query = (command.args or "").strip()
    if not query:
        await message.answer(texts["search_usage"])
        return

    snapshot = await location_service.get_current_location()
    lat = snapshot.latitude if snapshot else None
    lon = snapshot.longitude if snapshot else None
    services = await listing_service.search_services(query, user_lat=lat, user_lon=lon)
    logger.info(f"Search '{query}' by {message.from_user.id}: {len(services)} result(s)")
    if not services:
        await message.answer(texts["search_empty"].format(query=html.escape(query)))
        return

    lines = [texts["search_title"].format(query=html.escape(query)), ""]
    buttons = []
    for listing in services[:PAGE_SIZE]:
        distance = ""
        coordinate = listing.coordinate()
        if snapshot and coordinate is not None:
            distance = format_distance(distance_km(snapshot.coordinate, coordinate))
        lines.append(texts["search_line"].format(
            title=html.escape(listing.name),
            business=html.escape(listing.data["business_name"]),
            distance=f" · {distance}" if distance else "",
        ))
        buttons.append({"id": listing.data["business_id"], "name": listing.data["business_name"],
                        "distance": distance})

    await message.answer("\n".join(lines), reply_markup=results_keyboard(buttons, 0, 1))
