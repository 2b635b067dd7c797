"""
Cached access to the bot's own username.
"""
import logging

from aiogram import Bot

logger = logging.getLogger(__name__)


class BotInfoService:
    """
    Resolves the bot username once and keeps it for the process lifetime.

    Commands addressed as ``/track@username`` in group chats are matched
    against this value.
    """

    def __init__(self, bot: Bot, config_username: str | None = None):
        """
        Args:
            bot: Aiogram Bot instance
            config_username: Username from config; skips the get_me call when set
        """
        self._bot = bot
        self._cached_username: str | None = (config_username or "").lstrip("@") or None

    async def get_username(self) -> str:
        """
        Returns:
            Bot username without @ prefix

        Raises:
            RuntimeError: If the bot has no username in Telegram
        """
        if self._cached_username:
            return self._cached_username

        me = await self._bot.get_me()
        if not me.username:
            raise RuntimeError("Bot username is required but not configured in Telegram")

        self._cached_username = me.username
        logger.info(f"Resolved bot username @{me.username}")
        return self._cached_username
