"""
Update routing for tracked links: messages register links, button presses count clicks.
"""
import logging
from typing import Optional

from aiogram import F, Router
from aiogram.types import CallbackQuery, Message

from clickbot.modules.tracking.domain.models import ButtonPress
from clickbot.modules.tracking.services.click_service import ClickService
from clickbot.modules.tracking.services.registration_service import LinkRegistrationService

logger = logging.getLogger(__name__)


def press_from_callback(callback: CallbackQuery) -> Optional[ButtonPress]:
    """
    Build a button press from a callback query.

    Returns:
        None if the query carries no callback data (e.g. game buttons)
    """
    if not callback.data:
        return None

    return ButtonPress(
        link_id=callback.data,
        query_id=callback.id,
    )


def create_tracking_router(
    registration_service: LinkRegistrationService,
    click_service: ClickService,
) -> Router:
    """
    Create router for link registration and click counting.

    Every message goes to the registration flow (non-commands get the help
    reply); every callback query is treated as a counter button press.
    Other update kinds are not handled.
    """
    router = Router(name="tracking")

    @router.message(~F.via_bot)
    async def on_message(message: Message) -> None:
        await registration_service.handle_message(message.chat.id, message.text)

    @router.callback_query()
    async def on_button_press(callback: CallbackQuery) -> None:
        press = press_from_callback(callback)
        if press is None:
            logger.warning(f"Callback query {callback.id} without data ignored")
            return
        await click_service.handle_press(press)

    return router
