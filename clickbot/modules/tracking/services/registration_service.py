"""
Registration of new tracked links from chat commands.
"""
import logging
from dataclasses import replace
from datetime import UTC, datetime
from typing import Optional

from aiogram.exceptions import TelegramAPIError

from clickbot.modules.shared.services.bot_info import BotInfoService
from clickbot.modules.tracking.domain.interfaces import ChatGateway, LinkRepository
from clickbot.modules.tracking.domain.models import (
    RegistrationResult,
    RegistrationStatus,
    TrackedLink,
)
from clickbot.modules.tracking.utils.command_parser import (
    DEFAULT_COMMAND,
    is_valid_url,
    parse_track_command,
)
from clickbot.modules.tracking.utils.link_ids import new_link_id
from clickbot.modules.tracking.utils.rendering import (
    HELP_TEXT,
    INVALID_URL_TEXT,
    build_counter_button,
    format_link_message,
)

logger = logging.getLogger(__name__)


class LinkRegistrationService:

    def __init__(
        self,
        repository: LinkRepository,
        gateway: ChatGateway,
        bot_info: Optional[BotInfoService] = None,
        command: str = DEFAULT_COMMAND,
    ):
        self._repository = repository
        self._gateway = gateway
        self._bot_info = bot_info
        self._command = command

    async def handle_message(self, chat_id: int, text: Optional[str]) -> RegistrationResult:
        bot_username = await self._get_bot_username()
        candidate = parse_track_command(text, self._command, bot_username)

        if candidate is None:
            await self._gateway.send_message(chat_id, HELP_TEXT)
            return RegistrationResult(status=RegistrationStatus.HELP)

        if not is_valid_url(candidate):
            logger.info(f"Rejected link {candidate!r} in chat {chat_id}")
            await self._gateway.send_message(chat_id, INVALID_URL_TEXT)
            return RegistrationResult(status=RegistrationStatus.INVALID_URL)

        return await self.register_link(chat_id, candidate)

    async def register_link(self, chat_id: int, url: str) -> RegistrationResult:
        link = TrackedLink(
            link_id=new_link_id(),
            url=url,
            chat_id=chat_id,
            created_at=datetime.now(UTC),
        )

        if not await self._repository.create_link(link):
            logger.error(f"Could not store link {link.link_id} for chat {chat_id}")
            return RegistrationResult(status=RegistrationStatus.FAILED)

        message_id = await self._gateway.send_message(
            chat_id,
            format_link_message(url),
            build_counter_button(link.link_id, url, 0),
        )
        if message_id is None:
            # Record stays without message_id; presses are still counted.
            logger.error(f"Counter message for link {link.link_id} was not sent to chat {chat_id}")
            return RegistrationResult(status=RegistrationStatus.FAILED, link=link)

        if not await self._repository.merge_update(link.link_id, message_id=message_id):
            logger.warning(
                f"Link {link.link_id} created but message {message_id} was not attached; "
                f"counter edits will be skipped"
            )
            return RegistrationResult(status=RegistrationStatus.CREATED, link=link)

        logger.info(f"Tracking link {link.link_id} -> {url} in chat {chat_id} (message {message_id})")
        return RegistrationResult(
            status=RegistrationStatus.CREATED,
            link=replace(link, message_id=message_id),
            message_id=message_id,
        )

    async def _get_bot_username(self) -> Optional[str]:
        if self._bot_info is None:
            return None
        try:
            return await self._bot_info.get_username()
        except (RuntimeError, TelegramAPIError) as e:
            logger.warning(f"Bot username unavailable, /{self._command}@mention disabled: {e}")
            return None
