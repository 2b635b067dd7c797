from __future__ import annotations

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiohttp import web

from .config import AppConfig
from .di import ALLOWED_UPDATES, AppContainer, create_bot
from .webhook import create_web_app

logger = logging.getLogger(__name__)


async def run_webhook(config: AppConfig, bot: Bot, dispatcher: Dispatcher) -> None:
    app = create_web_app(
        bot,
        dispatcher,
        path=config.webhook_path,
        secret=config.webhook_secret,
    )
    await bot.set_webhook(
        config.webhook_endpoint,
        secret_token=config.webhook_secret,
        allowed_updates=ALLOWED_UPDATES,
    )
    logger.info(f"Webhook registered at {config.webhook_endpoint}")

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, config.web_server_host, config.web_server_port)
    await site.start()
    logger.info(f"Listening on {config.web_server_host}:{config.web_server_port}{config.webhook_path}")
    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


async def run_polling(bot: Bot, dispatcher: Dispatcher) -> None:
    # A webhook left over from a previous deployment blocks getUpdates
    await bot.delete_webhook(drop_pending_updates=True)
    logger.info("No WEBHOOK_URL configured, starting long polling")
    await dispatcher.start_polling(bot, allowed_updates=ALLOWED_UPDATES)


async def main() -> None:
    config = AppConfig()
    config.ensure_dirs()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    bot = create_bot(config)
    container = await AppContainer.build(config, bot)
    dispatcher = container.create_dispatcher()
    try:
        if config.use_webhook:
            await run_webhook(config, bot, dispatcher)
        else:
            await run_polling(bot, dispatcher)
    finally:
        await bot.session.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
