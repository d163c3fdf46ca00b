"""Business card, map pin and rating flow."""
import html
import logging

from aiogram import Router, F
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from mtokaa.keyboards.inline import business_card_keyboard, rating_stars_keyboard, skip_comment_keyboard
from mtokaa.services import business_service, review_service
from mtokaa.services.geo_service import distance_km
from mtokaa.services.listing_models import Listing
from mtokaa.services.location_service import LocationService
from mtokaa.services.proximity_service import format_distance, estimate_travel_time
from mtokaa.states import NearbySearch, Rating
from mtokaa.utils.flow_message import ensure_flow_message

logger = logging.getLogger("mtokaa")

router = Router(name="business")


def _is_listed(business: dict | None) -> bool:
    return bool(business and business["is_active"] and business["is_verified"])


def _as_listing(business: dict) -> Listing:
    return Listing(
        id=business["id"],
        kind="business",
        name=business["business_name"],
        business_type=business["business_type"],
        rating=business["rating"] or 0.0,
        reviews=business["total_reviews"] or 0,
        addresses=business["addresses"],
        data=business,
    )


def _price(value) -> str:
    return f"KES {value:,}" if value is not None else "-"


async def render_card(business: dict, texts: dict, snapshot=None) -> str:
    listing = _as_listing(business)
    address = listing.primary_address()

    text = texts["business_card"].format(
        name=html.escape(listing.name),
        type=texts["business_types"].get(listing.business_type, listing.business_type),
        rating=listing.rating,
        reviews=listing.reviews,
        address=html.escape(address.label()) if address and address.label() else "-",
        phone=business.get("phone") or "-",
        description=html.escape(business.get("description") or ""),
    )

    coordinate = listing.coordinate()
    if snapshot is not None and coordinate is not None:
        km = distance_km(snapshot.coordinate, coordinate)
        text += texts["card_distance"].format(
            distance=format_distance(km),
            driving=estimate_travel_time(km, "driving"),
            walking=estimate_travel_time(km, "walking"),
        )

    if business["services"]:
        text += texts["card_services"].format(items="\n".join(
            f"• {html.escape(s['title'])}: {_price(s['price'])}" for s in business["services"]
        ))
    if business["products"]:
        text += texts["card_products"].format(items="\n".join(
            f"• {html.escape(p['name'])}: {_price(p['price'])}" for p in business["products"]
        ))

    comments = await review_service.get_recent_comments(business["id"])
    if comments:
        text += texts["card_reviews"].format(items="\n".join(
            f"{'⭐' * c['stars']} {html.escape(c['comment'])}" for c in comments
        ))
    return text


# ═══════════════════════════════════════════
# Card and map
# ═══════════════════════════════════════════

@router.callback_query(F.data.startswith("biz:view:"))
async def on_business_view(callback: CallbackQuery, state: FSMContext, texts: dict,
                           location_service: LocationService, **kwargs):
    business_id = int(callback.data.split(":")[2])
    business = await business_service.get_business(business_id)
    if not _is_listed(business):
        await callback.answer(texts["business_not_found"], show_alert=True)
        return

    snapshot = await location_service.get_current_location()
    from_results = await state.get_state() == NearbySearch.results.state
    has_location = _as_listing(business).coordinate() is not None

    await ensure_flow_message(
        callback,
        await render_card(business, texts, snapshot),
        state,
        keyboard=business_card_keyboard(business_id, texts, has_location=has_location,
                                        from_results=from_results),
    )


@router.callback_query(F.data.startswith("biz:map:"))
async def on_business_map(callback: CallbackQuery, texts: dict, **kwargs):
    business_id = int(callback.data.split(":")[2])
    business = await business_service.get_business(business_id)
    if not _is_listed(business):
        await callback.answer(texts["business_not_found"], show_alert=True)
        return

    listing = _as_listing(business)
    coordinate = listing.coordinate()
    if coordinate is None:
        await callback.answer(texts["no_location_data"], show_alert=True)
        return

    address = listing.primary_address()
    await callback.message.answer_venue(
        latitude=coordinate.latitude,
        longitude=coordinate.longitude,
        title=listing.name,
        address=address.label() or listing.name,
    )
    await callback.answer()


# ═══════════════════════════════════════════
# Rating
# ═══════════════════════════════════════════

@router.callback_query(F.data.startswith("biz:rate:"))
async def on_rate_start(callback: CallbackQuery, state: FSMContext, texts: dict, **kwargs):
    business_id = int(callback.data.split(":")[2])
    business = await business_service.get_business(business_id)
    if not _is_listed(business):
        await callback.answer(texts["business_not_found"], show_alert=True)
        return

    if await review_service.get_review(business_id, callback.from_user.id):
        await callback.answer(texts["already_rated"], show_alert=True)
        return

    await ensure_flow_message(
        callback,
        texts["rate_prompt"].format(name=html.escape(business["business_name"])),
        state,
        keyboard=rating_stars_keyboard(business_id),
    )


@router.callback_query(F.data == "rate:skip")
async def on_skip_comment(callback: CallbackQuery, state: FSMContext, texts: dict, **kwargs):
    await state.set_state(None)
    await ensure_flow_message(callback, texts["rate_thank_you"], state)


@router.callback_query(F.data.startswith("rate:"))
async def on_rate_stars(callback: CallbackQuery, state: FSMContext, texts: dict, **kwargs):
    _, stars, business_id = callback.data.split(":")
    stars, business_id = int(stars), int(business_id)

    saved = await review_service.add_review(business_id, callback.from_user.id, stars)
    if not saved:
        await callback.answer(texts["already_rated"], show_alert=True)
        return

    logger.info(f"User {callback.from_user.id} rated business {business_id}: {stars} star(s)")
    await state.set_state(Rating.waiting_comment)
    await state.update_data(rating_business_id=business_id)
    await ensure_flow_message(
        callback, texts["rate_comment_prompt"], state, keyboard=skip_comment_keyboard(texts)
    )


@router.message(Rating.waiting_comment, F.text, ~F.text.startswith("/"))
async def on_rate_comment(message: Message, state: FSMContext, texts: dict, **kwargs):
    data = await state.get_data()
    business_id = data.get("rating_business_id")
    if business_id is not None:
        await review_service.update_comment(business_id, message.from_user.id, message.text.strip()[:500])

    await state.set_state(None)
    await message.answer(texts["rate_thank_you"])
