import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class RoomLockRegistry:
    """Per-room mutual exclusion for read-modify-write transactions."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, code: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(code, asyncio.Lock())
        self._holders[code] = self._holders.get(code, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[code] -= 1
            if self._holders[code] == 0:
                del self._holders[code]
                del self._locks[code]

    def is_held(self, code: str) -> bool:
        lock = self._locks.get(code)
        return lock is not None and lock.locked()


room_locks = RoomLockRegistry()
