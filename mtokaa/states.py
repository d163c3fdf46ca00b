"""FSM States for all user flows."""
from aiogram.fsm.state import State, StatesGroup


class NearbySearch(StatesGroup):
    """Nearby search flow."""
    waiting_location = State()
    choosing_city = State()
    choosing_radius = State()
    choosing_type = State()
    choosing_sort = State()
    results = State()


class Rating(StatesGroup):
    """Business rating flow."""
    waiting_comment = State()
