from __future__ import annotations

import logging
from dataclasses import dataclass

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties

from .config import AppConfig
from .handlers.errors import create_errors_router
from ..modules.shared.services.bot_info import BotInfoService
from ..modules.tracking.domain.interfaces import ChatGateway, LinkRepository
from ..modules.tracking.handlers.tracking_router import create_tracking_router
from ..modules.tracking.infrastructure.storage import SQLiteLinkRepository
from ..modules.tracking.infrastructure.telegram_gateway import AiogramChatGateway
from ..modules.tracking.services.click_service import ClickService
from ..modules.tracking.services.registration_service import LinkRegistrationService

logger = logging.getLogger(__name__)

ALLOWED_UPDATES = ["message", "callback_query"]


def create_bot(config: AppConfig) -> Bot:
    return Bot(
        token=config.telegram_bot_token,
        default=DefaultBotProperties(parse_mode="HTML"),
    )


@dataclass
class AppContainer:
    config: AppConfig
    bot: Bot
    bot_info: BotInfoService
    link_repository: LinkRepository
    gateway: ChatGateway
    registration_service: LinkRegistrationService
    click_service: ClickService

    @classmethod
    async def build(cls, config: AppConfig, bot: Bot) -> "AppContainer":
        bot_info = BotInfoService(bot=bot, config_username=config.bot_username)

        link_repository = SQLiteLinkRepository(
            config.tracking_db_path,
            busy_timeout=config.db_busy_timeout_seconds,
            transaction_attempts=config.transaction_attempts,
        )
        await link_repository.initialize()
        logger.info(f"Tracking database ready at {config.tracking_db_path}")

        gateway = AiogramChatGateway(bot)
        registration_service = LinkRegistrationService(
            repository=link_repository,
            gateway=gateway,
            bot_info=bot_info,
            command=config.track_command,
        )
        click_service = ClickService(repository=link_repository, gateway=gateway)

        return cls(
            config=config,
            bot=bot,
            bot_info=bot_info,
            link_repository=link_repository,
            gateway=gateway,
            registration_service=registration_service,
            click_service=click_service,
        )

    def create_dispatcher(self) -> Dispatcher:
        dispatcher = Dispatcher()
        dispatcher.include_router(create_errors_router())
        dispatcher.include_router(
            create_tracking_router(
                registration_service=self.registration_service,
                click_service=self.click_service,
            )
        )
        return dispatcher
