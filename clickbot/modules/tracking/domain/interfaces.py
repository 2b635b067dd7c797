"""
Domain interfaces for tracking module.
"""
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Optional, TypeVar

from clickbot.modules.tracking.domain.models import InlineButton, TrackedLink, TransactionResult

T = TypeVar("T")


class LinkTransaction(ABC):
    """Read/write handle valid only inside a running storage transaction."""

    @abstractmethod
    async def get(self, link_id: str) -> Optional[TrackedLink]:
        """
        Read a tracked link inside the transaction's isolation scope.

        Args:
            link_id: Link identifier

        Returns:
            Tracked link or None if not found
        """
        pass

    @abstractmethod
    async def set_clicks(self, link_id: str, clicks: int) -> None:
        """
        Stage a new click count; it becomes visible to others only on commit.

        Args:
            link_id: Link identifier
            clicks: New counter value
        """
        pass


class LinkRepository(ABC):
    """Repository interface for tracked link persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create the schema if it does not exist yet."""
        pass

    @abstractmethod
    async def create_link(self, link: TrackedLink) -> bool:
        """
        Persist a new tracked link.

        Args:
            link: Link to store (clicks=0, message_id=None)

        Returns:
            True if the record was written, False on storage failure
        """
        pass

    @abstractmethod
    async def merge_update(self, link_id: str, **fields: Any) -> bool:
        """
        Update only the given fields of an existing link.

        Args:
            link_id: Link identifier
            **fields: Partial fields; only ``message_id`` is mergeable

        Returns:
            True if the record was updated, False otherwise

        Raises:
            ValueError: If a field outside the mergeable set is passed
        """
        pass

    @abstractmethod
    async def run_transaction(
        self,
        link_id: str,
        body: Callable[[LinkTransaction], Awaitable[T]],
        after_commit: Optional[Callable[[T], Awaitable[Any]]] = None,
    ) -> TransactionResult[Any]:
        """
        Run ``body`` as one atomic read-modify-write unit on a single link.

        Transactions on the same link are serialized, including their
        ``after_commit`` step; transactions on different links do not wait
        for each other.

        Args:
            link_id: Link the transaction works on
            body: Coroutine function receiving the transaction handle
            after_commit: Called with the body's value only after a successful
                commit, before the next transaction on the same link starts

        Returns:
            Committed result carrying ``after_commit``'s value (or the body's
            value without it), or a failed result carrying the error when the
            transaction did not commit
        """
        pass


class ChatGateway(ABC):
    """Outbound calls to the chat platform. Failures are returned, not raised."""

    @abstractmethod
    async def send_message(
        self,
        chat_id: int,
        text: str,
        button: Optional[InlineButton] = None,
    ) -> Optional[int]:
        """
        Send a message, optionally with a single inline button.

        Returns:
            Platform message id, or None if sending failed
        """
        pass

    @abstractmethod
    async def edit_message(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        button: InlineButton,
    ) -> bool:
        """Replace text and button of an already sent message."""
        pass

    @abstractmethod
    async def answer_press(
        self,
        query_id: str,
        text: str,
        *,
        show_alert: bool = False,
        cache_time: int = 0,
    ) -> bool:
        """Acknowledge a button press with a transient notification."""
        pass
