"""Inline keyboards for the bot."""
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton
from aiogram.utils.keyboard import InlineKeyboardBuilder

from mtokaa.config import CITY_PRESETS, RADIUS_OPTIONS, BUSINESS_TYPES


def city_keyboard(texts: dict) -> InlineKeyboardMarkup:
    """Manual location fallback: preset cities."""
    builder = InlineKeyboardBuilder()
    for key, (name, _lat, _lon) in CITY_PRESETS.items():
        builder.button(text=name, callback_data=f"near:city:{key}")
    builder.adjust(2)
    return builder.as_markup()


def radius_keyboard(texts: dict) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for km in RADIUS_OPTIONS:
        builder.button(text=texts["radius_btn"].format(km=km), callback_data=f"near:radius:{km}")
    builder.adjust(len(RADIUS_OPTIONS))
    return builder.as_markup()


def type_keyboard(texts: dict) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.button(text=texts["type_all"], callback_data="near:type:all")
    for business_type in BUSINESS_TYPES:
        builder.button(text=texts[f"type_{business_type}"], callback_data=f"near:type:{business_type}")
    builder.adjust(1, 3)
    return builder.as_markup()


def sort_keyboard(texts: dict) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for key in ("distance", "rating", "reviews"):
        builder.button(text=texts[f"sort_{key}"], callback_data=f"near:sort:{key}")
    builder.adjust(3)
    return builder.as_markup()


def results_keyboard(items: list[dict], page: int, total_pages: int) -> InlineKeyboardMarkup:
    """Paginated result buttons; each item is {"id", "name", "distance"}."""
    builder = InlineKeyboardBuilder()
    for item in items:
        label = f"🔧 {item['name']} ({item['distance']})" if item.get("distance") else f"🔧 {item['name']}"
        builder.button(text=label, callback_data=f"biz:view:{item['id']}")
    builder.adjust(1)

    nav_buttons = []
    if page > 0:
        nav_buttons.append(InlineKeyboardButton(text="⬅️", callback_data=f"near:page:{page - 1}"))
    nav_buttons.append(InlineKeyboardButton(text=f"{page + 1}/{total_pages}", callback_data="noop"))
    if page < total_pages - 1:
        nav_buttons.append(InlineKeyboardButton(text="➡️", callback_data=f"near:page:{page + 1}"))

    if len(nav_buttons) > 1:
        builder.row(*nav_buttons)
    return builder.as_markup()


def business_card_keyboard(business_id: int, texts: dict, has_location: bool = True,
                           from_results: bool = False) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    if has_location:
        builder.button(text=texts["btn_show_on_map"], callback_data=f"biz:map:{business_id}")
    builder.button(text=texts["btn_rate"], callback_data=f"biz:rate:{business_id}")
    if from_results:
        builder.button(text=texts["btn_back_to_results"], callback_data="near:page:0")
    builder.adjust(2, 1)
    return builder.as_markup()


def rating_stars_keyboard(business_id: int) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for stars in range(1, 6):
        builder.button(text="⭐" * stars, callback_data=f"rate:{stars}:{business_id}")
    builder.adjust(1)
    return builder.as_markup()


def skip_comment_keyboard(texts: dict) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text=texts["btn_skip"], callback_data="rate:skip")]]
    )
