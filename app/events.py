"""
Process-local publish/subscribe event bus

Route handlers publish booking and location updates; WebSocket routes
subscribe and forward them to connected clients. Delivery is best effort:
there is no persistence and slow subscribers drop their oldest messages.
"""

import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any, Optional

from .config import EVENT_QUEUE_SIZE

logger = logging.getLogger(__name__)


class Channels:
    """Channel name helpers"""

    @staticmethod
    def booking_new(provider_id: int) -> str:
        return f"booking:new:{provider_id}"

    @staticmethod
    def booking_status(booking_id: int) -> str:
        return f"booking:status:{booking_id}"

    @staticmethod
    def booking_chat(booking_id: int) -> str:
        return f"booking:chat:{booking_id}"

    @staticmethod
    def booking_items(booking_id: int) -> str:
        return f"booking:items:{booking_id}"

    @staticmethod
    def booking_attachments(booking_id: int) -> str:
        return f"booking:attachments:{booking_id}"

    @staticmethod
    def provider_location(provider_id: int) -> str:
        return f"provider:loc:{provider_id}"


channels = Channels()


class Subscription:
    """A single subscriber's bounded queue on one channel"""

    def __init__(self, bus: "EventBus", channel: str, maxsize: int):
        self.bus = bus
        self.channel = channel
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.loop = asyncio.get_running_loop()
        self.dropped = 0

    def _deliver(self, message: Any) -> None:
        if self.queue.full():
            # Drop the oldest message so the newest state always gets through
            self.queue.get_nowait()
            self.dropped += 1
            logger.warning(f"⚠️ Subscriber on {self.channel} is lagging, dropped oldest message")
        self.queue.put_nowait(message)

    def deliver(self, message: Any) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self.loop:
            self._deliver(message)
        else:
            self.loop.call_soon_threadsafe(self._deliver, message)

    async def get(self, timeout: Optional[float] = None) -> Any:
        if timeout is None:
            return await self.queue.get()
        return await asyncio.wait_for(self.queue.get(), timeout=timeout)

    def close(self) -> None:
        self.bus.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class EventBus:
    def __init__(self, queue_size: int = EVENT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: dict[str, set[Subscription]] = defaultdict(set)
        self._lock = threading.Lock()

    def subscribe(self, channel: str) -> Subscription:
        """Subscribe from inside a running event loop"""
        subscription = Subscription(self, channel, self.queue_size)
        with self._lock:
            self._subscribers[channel].add(subscription)
        logger.debug(f"📡 Subscribed to {channel}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.channel)
            if subscribers is None:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[subscription.channel]
        logger.debug(f"📴 Unsubscribed from {subscription.channel}")

    def publish(self, channel: str, message: Any) -> int:
        """Fan a message out to every subscriber; returns the number reached"""
        with self._lock:
            subscribers = list(self._subscribers.get(channel, ()))

        for subscription in subscribers:
            try:
                subscription.deliver(message)
            except RuntimeError as e:
                # Subscriber's loop already closed
                logger.warning(f"⚠️ Dropping dead subscriber on {channel}: {e}")
                self.unsubscribe(subscription)

        return len(subscribers)

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subscribers.get(channel, ()))


# Global event bus instance
event_bus = EventBus()
