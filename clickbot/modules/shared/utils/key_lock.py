from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass
class _KeyState:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class KeyedLock:
    """One asyncio lock per key. A key's state is dropped once nobody holds or waits for it."""

    def __init__(self) -> None:
        self._states: dict[str, _KeyState] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        state = self._states.get(key)
        if state is None:
            state = self._states[key] = _KeyState()
        state.users += 1
        try:
            async with state.lock:
                yield
        finally:
            state.users -= 1
            if state.users == 0:
                del self._states[key]

    def __len__(self) -> int:
        return len(self._states)
