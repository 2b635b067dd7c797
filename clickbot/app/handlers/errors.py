from __future__ import annotations

import logging

from aiogram import Router
from aiogram.types import ErrorEvent

logger = logging.getLogger(__name__)


def create_errors_router() -> Router:
    router = Router(name="errors")

    @router.errors()
    async def handle_error(event: ErrorEvent) -> bool:
        # Handled: the exception does not propagate to the webhook response.
        logger.error(
            f"Unhandled error while processing update {event.update.update_id}: {event.exception}",
            exc_info=event.exception,
        )
        return True

    return router
