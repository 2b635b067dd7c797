"""
HTTP endpoint receiving Telegram updates.

The endpoint answers 200 for every request, whatever happened while handling
the update, so Telegram never redelivers an update because of our failures.
"""
from __future__ import annotations

import hmac
import logging

from aiogram import Bot, Dispatcher
from aiogram.types import Update
from aiohttp import web
from pydantic import ValidationError

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

BOT_KEY = web.AppKey("bot", Bot)
DISPATCHER_KEY = web.AppKey("dispatcher", Dispatcher)
SECRET_KEY = web.AppKey("webhook_secret", str)


def _status(status: str) -> web.Response:
    return web.json_response({"status": status}, status=200)


def _secret_matches(request: web.Request, expected: str) -> bool:
    if not expected:
        return True
    received = request.headers.get(SECRET_HEADER, "")
    return hmac.compare_digest(received, expected)


async def handle_update(request: web.Request) -> web.Response:
    bot = request.app[BOT_KEY]
    dispatcher = request.app[DISPATCHER_KEY]

    if not _secret_matches(request, request.app[SECRET_KEY]):
        logger.warning(f"Webhook call from {request.remote} with invalid secret token ignored")
        return _status("ignored")

    try:
        payload = await request.json()
        update = Update.model_validate(payload, context={"bot": bot})
    except (ValueError, ValidationError) as e:
        logger.warning(f"Malformed update ignored: {e}")
        return _status("ignored")

    try:
        await dispatcher.feed_update(bot, update)
    except Exception as e:
        logger.error(f"Update {update.update_id} failed: {e}", exc_info=True)

    return _status("ok")


async def handle_health(request: web.Request) -> web.Response:
    return _status("ok")


def create_web_app(
    bot: Bot,
    dispatcher: Dispatcher,
    *,
    path: str = "/webhook",
    secret: str | None = None,
) -> web.Application:
    app = web.Application()
    app[BOT_KEY] = bot
    app[DISPATCHER_KEY] = dispatcher
    app[SECRET_KEY] = secret or ""
    app.router.add_post(path, handle_update)
    app.router.add_get("/healthz", handle_health)
    return app
