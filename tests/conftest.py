from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest
import pytest_asyncio

from clickbot.modules.tracking.domain.interfaces import ChatGateway
from clickbot.modules.tracking.domain.models import InlineButton
from clickbot.modules.tracking.infrastructure.storage import SQLiteLinkRepository


class FakeChatGateway(ChatGateway):
    """Records every outbound call instead of talking to Telegram."""

    def __init__(self) -> None:
        self.sent: list[tuple[int, str, Optional[InlineButton]]] = []
        self.edits: list[tuple[int, int, str, InlineButton]] = []
        self.answers: list[tuple[str, str, bool, int]] = []
        self.next_message_id = 100
        self.fail_send = False
        self.fail_edit = False
        self.edit_hook = None

    async def send_message(self, chat_id, text, button=None):
        if self.fail_send:
            return None
        self.sent.append((chat_id, text, button))
        self.next_message_id += 1
        return self.next_message_id

    async def edit_message(self, chat_id, message_id, text, button):
        if self.edit_hook is not None:
            await self.edit_hook(chat_id, message_id, button)
        if self.fail_edit:
            return False
        self.edits.append((chat_id, message_id, text, button))
        return True

    async def answer_press(self, query_id, text, *, show_alert=False, cache_time=0):
        self.answers.append((query_id, text, show_alert, cache_time))
        return True

    @property
    def edit_labels(self) -> list[str]:
        return [button.label for _, _, _, button in self.edits]


@pytest_asyncio.fixture
async def repository(tmp_path: Path):
    """Create a temporary repository for testing."""
    repo = SQLiteLinkRepository(tmp_path / "tracking.db", busy_timeout=10.0)
    await repo.initialize()
    return repo


@pytest_asyncio.fixture
async def gateway():
    return FakeChatGateway()


@pytest.fixture
def read_link(repository):
    """Read a link's committed state through a storage transaction."""

    async def read(link_id: str, repo: Optional[SQLiteLinkRepository] = None):
        result = await (repo or repository).run_transaction(link_id, lambda tx: tx.get(link_id))
        assert result.committed
        return result.value

    return read
