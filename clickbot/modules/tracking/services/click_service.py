"""
Click counting for tracked link buttons.

A press increments the link's counter in a short storage transaction. Only
after that transaction has committed is the counter message edited and the
press acknowledged. Presses on the same link are serialized by the repository
through both steps, so edits reach the chat in commit order and every edit
shows the value committed by its own press. Presses on different links do not
wait for each other's chat calls. If the transaction does not commit, neither
the edit nor the acknowledgment is sent.

Presses are not deduplicated: a redelivered callback query counts again.
"""
import logging
from dataclasses import replace
from functools import partial
from typing import Optional

from clickbot.modules.tracking.domain.interfaces import ChatGateway, LinkRepository, LinkTransaction
from clickbot.modules.tracking.domain.models import (
    ButtonPress,
    ClickResult,
    ClickStatus,
    TrackedLink,
)
from clickbot.modules.tracking.utils.link_ids import is_valid_link_id
from clickbot.modules.tracking.utils.rendering import (
    counter_button_for,
    format_ack_text,
    format_link_message,
)

logger = logging.getLogger(__name__)


class ClickService:

    def __init__(self, repository: LinkRepository, gateway: ChatGateway):
        self._repository = repository
        self._gateway = gateway

    async def handle_press(self, press: ButtonPress) -> ClickResult:
        if not is_valid_link_id(press.link_id):
            logger.warning(f"Press {press.query_id}: link {press.link_id!r} not found")
            return ClickResult(status=ClickStatus.NOT_FOUND, link_id=press.link_id)

        outcome = await self._repository.run_transaction(
            press.link_id,
            partial(self._count_press, press=press),
            after_commit=partial(self._publish_count, press=press),
        )

        if not outcome.committed:
            logger.error(
                f"Press {press.query_id} on link {press.link_id} was not counted: {outcome.error}"
            )
            return ClickResult(status=ClickStatus.FAILED, link_id=press.link_id)

        return outcome.value

    async def _count_press(self, tx: LinkTransaction, press: ButtonPress) -> Optional[TrackedLink]:
        link = await tx.get(press.link_id)
        if link is None:
            logger.warning(f"Press {press.query_id}: link {press.link_id} not found")
            return None

        new_clicks = link.clicks + 1
        await tx.set_clicks(link.link_id, new_clicks)
        return replace(link, clicks=new_clicks)

    async def _publish_count(self, link: Optional[TrackedLink], press: ButtonPress) -> ClickResult:
        if link is None:
            return ClickResult(status=ClickStatus.NOT_FOUND, link_id=press.link_id)

        edited = await self._sync_counter(link)
        acknowledged = await self._gateway.answer_press(
            press.query_id,
            format_ack_text(link.clicks),
            show_alert=False,
            cache_time=0,
        )

        return ClickResult(
            status=ClickStatus.COUNTED,
            link_id=link.link_id,
            clicks=link.clicks,
            edited=edited,
            acknowledged=acknowledged,
        )

    async def _sync_counter(self, link: TrackedLink) -> bool:
        if not link.has_message:
            logger.warning(f"Link {link.link_id} has no message attached; counter {link.clicks} not shown")
            return False

        return await self._gateway.edit_message(
            link.chat_id,
            link.message_id,
            format_link_message(link.url),
            counter_button_for(link),
        )
