import logging
from aiogram import Bot
from aiogram.types import Message, CallbackQuery, InlineKeyboardMarkup
from aiogram.fsm.context import FSMContext
from aiogram.exceptions import TelegramBadRequest

logger = logging.getLogger("mtokaa")


async def ensure_flow_message(
    event: Message | CallbackQuery,
    text: str,
    state: FSMContext,
    keyboard: InlineKeyboardMarkup | None = None,
    bot: Bot | None = None,
):
    """
    Edit the current flow message or send a new one.
    The flow message ID is kept in FSM state data.
    """
    data = await state.get_data()
    flow_msg_id = data.get("flow_msg_id")
    chat_id = event.from_user.id

    if bot is None:
        bot = event.bot

    # Remove the loading spinner
    if isinstance(event, CallbackQuery):
        try:
            await event.answer()
        except TelegramBadRequest as e:
            logger.debug(f"Callback answer failed: {e}")

    if flow_msg_id:
        try:
            await bot.edit_message_text(
                chat_id=chat_id,
                message_id=flow_msg_id,
                text=text,
                reply_markup=keyboard,
            )
            return flow_msg_id
        except TelegramBadRequest as e:
            if "message is not modified" in str(e).lower():
                return flow_msg_id
            logger.debug(f"Cannot edit flow message {flow_msg_id}: {e}")

        try:
            await bot.delete_message(chat_id=chat_id, message_id=flow_msg_id)
        except TelegramBadRequest as e:
            logger.debug(f"Cannot delete flow message {flow_msg_id}: {e}")

    msg = await bot.send_message(
        chat_id=chat_id,
        text=text,
        reply_markup=keyboard,
    )
    await state.update_data(flow_msg_id=msg.message_id)
    return msg.message_id
