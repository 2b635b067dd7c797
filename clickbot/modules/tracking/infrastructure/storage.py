"""
SQLite-based repository for tracked links.
"""
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Optional, TypeVar

import aiosqlite

from clickbot.modules.shared.utils.key_lock import KeyedLock
from clickbot.modules.shared.utils.retry import retry_async
from clickbot.modules.tracking.domain.interfaces import LinkRepository, LinkTransaction
from clickbot.modules.tracking.domain.models import TrackedLink, TransactionResult

T = TypeVar("T")

logger = logging.getLogger(__name__)

_LINK_COLUMNS = "link_id, url, clicks, chat_id, message_id, created_at"
_MERGEABLE_FIELDS = frozenset({"message_id"})


def _row_to_link(row) -> TrackedLink:
    return TrackedLink(
        link_id=row[0],
        url=row[1],
        clicks=row[2],
        chat_id=row[3],
        message_id=row[4],
        created_at=datetime.fromisoformat(row[5]).replace(tzinfo=UTC),
    )


class _SQLiteLinkTransaction(LinkTransaction):

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def get(self, link_id: str) -> Optional[TrackedLink]:
        cursor = await self._db.execute(
            f"SELECT {_LINK_COLUMNS} FROM tracked_links WHERE link_id = ?",
            (link_id,)
        )
        row = await cursor.fetchone()
        await cursor.close()

        if not row:
            return None

        return _row_to_link(row)

    async def set_clicks(self, link_id: str, clicks: int) -> None:
        if clicks < 0:
            raise ValueError("clicks must be non-negative")

        # Counter never goes backwards.
        cursor = await self._db.execute(
            "UPDATE tracked_links SET clicks = ? WHERE link_id = ? AND clicks <= ?",
            (clicks, link_id, clicks)
        )
        affected = cursor.rowcount
        await cursor.close()

        if affected != 1:
            raise RuntimeError(f"Failed to stage clicks={clicks} for link {link_id}")


class SQLiteLinkRepository(LinkRepository):

    def __init__(
        self,
        db_path: Path,
        *,
        busy_timeout: float = 5.0,
        transaction_attempts: int = 3,
    ):
        self.db_path = db_path
        self.busy_timeout = busy_timeout
        self.transaction_attempts = transaction_attempts
        self._link_locks = KeyedLock()

    def _connect(self, **kwargs: Any) -> aiosqlite.Connection:
        return aiosqlite.connect(self.db_path, timeout=self.busy_timeout, **kwargs)

    async def initialize(self) -> None:
        async with self._connect() as db:
            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute("""
                CREATE TABLE IF NOT EXISTS tracked_links (
                    link_id TEXT PRIMARY KEY,
                    url TEXT NOT NULL,
                    clicks INTEGER NOT NULL DEFAULT 0 CHECK (clicks >= 0),
                    chat_id INTEGER NOT NULL,
                    message_id INTEGER,
                    created_at TEXT NOT NULL
                )
            """)
            await db.commit()

    async def create_link(self, link: TrackedLink) -> bool:
        created_at = link.created_at or datetime.now(UTC)

        try:
            async with self._connect() as db:
                await db.execute(
                    """
                    INSERT INTO tracked_links (link_id, url, clicks, chat_id, message_id, created_at)
                    VALUES (?, ?, 0, ?, NULL, ?)
                    """,
                    (link.link_id, link.url, link.chat_id, created_at.isoformat())
                )
                await db.commit()
        except aiosqlite.IntegrityError as e:
            logger.error(f"Link id {link.link_id} already exists: {e}")
            return False
        except aiosqlite.Error as e:
            logger.error(f"Failed to create link {link.link_id}: {e}", exc_info=True)
            return False

        return True

    async def merge_update(self, link_id: str, **fields: Any) -> bool:
        if not fields:
            raise ValueError("No fields to update")
        unknown = set(fields) - _MERGEABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be merged: {', '.join(sorted(unknown))}")

        message_id = fields["message_id"]
        if message_id is None:
            raise ValueError("message_id cannot be cleared")

        try:
            async with self._connect() as db:
                # message_id is write-once
                cursor = await db.execute(
                    """
                    UPDATE tracked_links
                    SET message_id = ?
                    WHERE link_id = ? AND message_id IS NULL
                    """,
                    (message_id, link_id)
                )
                affected = cursor.rowcount
                await db.commit()
                await cursor.close()
        except aiosqlite.Error as e:
            logger.error(f"Failed to update link {link_id}: {e}", exc_info=True)
            return False

        return affected > 0

    async def run_transaction(
        self,
        link_id: str,
        body: Callable[[LinkTransaction], Awaitable[T]],
        after_commit: Optional[Callable[[T], Awaitable[Any]]] = None,
    ) -> TransactionResult[Any]:
        async with self._link_locks.hold(link_id):
            outcome = await self._execute(body)
            if not outcome.committed or after_commit is None:
                return outcome
            # Runs outside the SQLite write lock but before the next transaction on this link.
            return TransactionResult(committed=True, value=await after_commit(outcome.value))

    async def _execute(
        self,
        body: Callable[[LinkTransaction], Awaitable[T]],
    ) -> TransactionResult[T]:
        try:
            db = await retry_async(
                self._begin_immediate,
                attempts=self.transaction_attempts,
                retry_exceptions=(aiosqlite.OperationalError,),
                operation="BEGIN IMMEDIATE",
            )
        except aiosqlite.Error as e:
            logger.error(f"Could not start transaction on {self.db_path}: {e}")
            return TransactionResult(committed=False, error=e)

        try:
            value = await body(_SQLiteLinkTransaction(db))
            await db.execute("COMMIT")
        except Exception as e:
            logger.error(f"Transaction rolled back: {e}", exc_info=True)
            await self._rollback(db)
            return TransactionResult(committed=False, error=e)
        finally:
            await db.close()

        return TransactionResult(committed=True, value=value)

    async def _begin_immediate(self) -> aiosqlite.Connection:
        # Takes the write lock up front so concurrent read-modify-write bodies serialize.
        db = await self._connect(isolation_level=None)
        try:
            await db.execute("BEGIN IMMEDIATE")
        except BaseException:
            await db.close()
            raise
        return db

    async def _rollback(self, db: aiosqlite.Connection) -> None:
        if not db.in_transaction:
            return
        try:
            await db.execute("ROLLBACK")
        except aiosqlite.Error as e:
            logger.error(f"Rollback failed: {e}")
