import asyncio
import logging
from collections.abc import AsyncIterator

from mathduel.schemas.room import RoomFeed

logger = logging.getLogger(__name__)


class RoomSubscription:
    """Latest-value channel of room snapshots for one subscriber."""

    def __init__(self, manager: "RoomChannelManager", code: str):
        self.manager = manager
        self.code = code
        self.closed = False
        self._queue: asyncio.Queue[RoomFeed | None] = asyncio.Queue(maxsize=1)

    def push(self, feed: RoomFeed) -> None:
        if self.closed:
            return
        if self._queue.full():
            # collapse: only the most recent state matters
            self._queue.get_nowait()
        self._queue.put_nowait(feed)

    async def get(self) -> RoomFeed | None:
        if self.closed and self._queue.empty():
            return None
        return await self._queue.get()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.manager.unsubscribe(self)
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    def __aiter__(self) -> AsyncIterator[RoomFeed]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[RoomFeed]:
        while True:
            feed = await self.get()
            if feed is None:
                return
            yield feed

    async def __aenter__(self) -> "RoomSubscription":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class RoomChannelManager:
    def __init__(self) -> None:
        self.subscriptions: dict[str, set[RoomSubscription]] = {}

    def subscribe(self, code: str) -> RoomSubscription:
        subscription = RoomSubscription(self, code)
        self.subscriptions.setdefault(code, set()).add(subscription)
        return subscription

    def unsubscribe(self, subscription: RoomSubscription) -> None:
        subscribers = self.subscriptions.get(subscription.code)
        if subscribers is None:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self.subscriptions[subscription.code]

    def publish(self, feed: RoomFeed) -> int:
        subscribers = list(self.subscriptions.get(feed.code, ()))
        for subscription in subscribers:
            subscription.push(feed)
        logger.debug(
            "Published room %s (%s) to %d subscriber(s)",
            feed.code,
            feed.room.status.value if feed.room else "closed",
            len(subscribers),
        )
        return len(subscribers)

    def subscriber_count(self, code: str) -> int:
        return len(self.subscriptions.get(code, ()))


room_channel = RoomChannelManager()
