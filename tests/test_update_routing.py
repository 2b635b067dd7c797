from __future__ import annotations

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from aiogram import Bot, Dispatcher
from aiogram.types import CallbackQuery, Chat, Message, Update, User
from aiohttp import test_utils

from clickbot.app.handlers.errors import create_errors_router
from clickbot.app.webhook import SECRET_HEADER, create_web_app
from clickbot.modules.tracking.domain.models import ButtonPress
from clickbot.modules.tracking.handlers.tracking_router import create_tracking_router, press_from_callback

TOKEN = "123456789:AAHdqTcvCH1vGWJxfSeofSAs0K5PALDsaw"


@pytest_asyncio.fixture
async def bot():
    bot = Bot(token=TOKEN)
    yield bot
    await bot.session.close()


def make_message(text: str | None = "/track https://example.com", chat_id: int = 42) -> Message:
    return Message(
        message_id=10,
        date=datetime.now(),
        chat=Chat(id=chat_id, type="private"),
        from_user=User(id=7, is_bot=False, first_name="Ana"),
        text=text,
    )


def make_callback(data: str | None = "a" * 32, with_message: bool = True) -> CallbackQuery:
    return CallbackQuery(
        id="query-1",
        from_user=User(id=7, is_bot=False, first_name="Ana"),
        chat_instance="instance",
        data=data,
        message=make_message(text="🔗 https://example.com") if with_message else None,
    )


def build_dispatcher(registration: AsyncMock, clicks: AsyncMock) -> Dispatcher:
    dispatcher = Dispatcher()
    dispatcher.include_router(create_errors_router())
    dispatcher.include_router(create_tracking_router(registration, clicks))
    return dispatcher


class TestPressFromCallback:

    def test_builds_press(self):
        press = press_from_callback(make_callback())
        assert press == ButtonPress(link_id="a" * 32, query_id="query-1")

    def test_inaccessible_message(self):
        press = press_from_callback(make_callback(with_message=False))
        assert press == ButtonPress(link_id="a" * 32, query_id="query-1")

    def test_without_data(self):
        assert press_from_callback(make_callback(data=None)) is None


class TestDispatch:

    @pytest.mark.asyncio
    async def test_message_goes_to_registration(self, bot):
        registration, clicks = AsyncMock(), AsyncMock()
        dispatcher = build_dispatcher(registration, clicks)

        await dispatcher.feed_update(bot, Update(update_id=1, message=make_message()))

        registration.handle_message.assert_awaited_once_with(42, "/track https://example.com")
        clicks.handle_press.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_callback_goes_to_click_service(self, bot):
        registration, clicks = AsyncMock(), AsyncMock()
        dispatcher = build_dispatcher(registration, clicks)

        await dispatcher.feed_update(bot, Update(update_id=2, callback_query=make_callback()))

        clicks.handle_press.assert_awaited_once()
        press = clicks.handle_press.await_args.args[0]
        assert press.link_id == "a" * 32
        assert press.query_id == "query-1"
        registration.handle_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_updates_ignored(self, bot):
        registration, clicks = AsyncMock(), AsyncMock()
        dispatcher = build_dispatcher(registration, clicks)

        await dispatcher.feed_update(bot, Update(update_id=3, edited_message=make_message()))

        registration.handle_message.assert_not_awaited()
        clicks.handle_press.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handler_errors_are_contained(self, bot):
        registration, clicks = AsyncMock(), AsyncMock()
        registration.handle_message.side_effect = RuntimeError("boom")
        dispatcher = build_dispatcher(registration, clicks)

        await dispatcher.feed_update(bot, Update(update_id=4, message=make_message()))

        registration.handle_message.assert_awaited_once()


class TestWebhook:

    @pytest.mark.asyncio
    async def test_update_is_fed_to_dispatcher(self, bot):
        registration, clicks = AsyncMock(), AsyncMock()
        app = create_web_app(bot, build_dispatcher(registration, clicks), path="/webhook")
        payload = Update(update_id=5, message=make_message()).model_dump(mode="json", by_alias=True, exclude_none=True)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            response = await client.post("/webhook", json=payload)
            body = await response.json()

        assert response.status == 200
        assert body == {"status": "ok"}
        registration.handle_message.assert_awaited_once_with(42, "/track https://example.com")

    @pytest.mark.asyncio
    async def test_always_answers_200_on_failure(self, bot):
        dispatcher = MagicMock()
        dispatcher.feed_update = AsyncMock(side_effect=RuntimeError("storage down"))
        app = create_web_app(bot, dispatcher)
        payload = Update(update_id=6, message=make_message()).model_dump(mode="json", by_alias=True, exclude_none=True)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            response = await client.post("/webhook", json=payload)
            body = await response.json()

        assert response.status == 200
        assert body == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_malformed_body_answers_200(self, bot):
        dispatcher = MagicMock()
        dispatcher.feed_update = AsyncMock()
        app = create_web_app(bot, dispatcher)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            response = await client.post("/webhook", data="not json")
            body = await response.json()

        assert response.status == 200
        assert body == {"status": "ignored"}
        dispatcher.feed_update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_secret_token_checked(self, bot):
        dispatcher = MagicMock()
        dispatcher.feed_update = AsyncMock()
        app = create_web_app(bot, dispatcher, secret="s3cret")
        payload = {"update_id": 7}

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            rejected = await client.post("/webhook", json=payload, headers={SECRET_HEADER: "wrong"})
            accepted = await client.post("/webhook", json=payload, headers={SECRET_HEADER: "s3cret"})

        assert rejected.status == 200
        assert accepted.status == 200
        dispatcher.feed_update.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_health(self, bot):
        app = create_web_app(bot, MagicMock())

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            response = await client.get("/healthz")

        assert response.status == 200
