from __future__ import annotations

import logging
from typing import Optional

from aiogram import Bot
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from ..domain.interfaces import ChatGateway
from ..domain.models import InlineButton

logger = logging.getLogger(__name__)


def build_keyboard(button: InlineButton) -> InlineKeyboardMarkup:
    # Telegram allows one action per button, so the press is routed through
    # callback_data and the URL travels in the message text.
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text=button.label, callback_data=button.correlation_token)]]
    )


class AiogramChatGateway(ChatGateway):
    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def send_message(
        self,
        chat_id: int,
        text: str,
        button: Optional[InlineButton] = None,
    ) -> Optional[int]:
        reply_markup = build_keyboard(button) if button else None
        try:
            message = await self._bot.send_message(
                chat_id=chat_id,
                text=text,
                parse_mode=ParseMode.HTML,
                reply_markup=reply_markup,
            )
        except TelegramAPIError as exc:
            logger.error(f"send_message to chat {chat_id} failed: {exc}")
            return None
        return message.message_id

    async def edit_message(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        button: InlineButton,
    ) -> bool:
        try:
            await self._bot.edit_message_text(
                text=text,
                chat_id=chat_id,
                message_id=message_id,
                parse_mode=ParseMode.HTML,
                reply_markup=build_keyboard(button),
            )
        except TelegramAPIError as exc:
            logger.error(f"edit_message {chat_id}/{message_id} failed: {exc}")
            return False
        return True

    async def answer_press(
        self,
        query_id: str,
        text: str,
        *,
        show_alert: bool = False,
        cache_time: int = 0,
    ) -> bool:
        try:
            await self._bot.answer_callback_query(
                callback_query_id=query_id,
                text=text,
                show_alert=show_alert,
                cache_time=cache_time,
            )
        except TelegramAPIError as exc:
            logger.error(f"answer_callback_query {query_id} failed: {exc}")
            return False
        return True
