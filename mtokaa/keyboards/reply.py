from aiogram.types import ReplyKeyboardMarkup, KeyboardButton


def main_menu_keyboard(texts: dict, watching: bool = False) -> ReplyKeyboardMarkup:
    """Persistent main menu."""
    live_btn = texts["btn_live_off"] if watching else texts["btn_live_on"]
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=texts["btn_nearby"]), KeyboardButton(text=texts["btn_featured"])],
            [KeyboardButton(text=texts["btn_density"]), KeyboardButton(text=texts["btn_my_location"])],
            [KeyboardButton(text=live_btn), KeyboardButton(text=texts["btn_forget_location"])],
        ],
        resize_keyboard=True,
        is_persistent=True,
    )


def location_request_keyboard(texts: dict) -> ReplyKeyboardMarkup:
    """Reply keyboard with location share button, manual entry and Main Menu."""
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=texts["share_location_btn"], request_location=True)],
            [KeyboardButton(text=texts["enter_manually_btn"])],
            [KeyboardButton(text=texts["main_menu"])],
        ],
        resize_keyboard=True,
        one_time_keyboard=True,
    )