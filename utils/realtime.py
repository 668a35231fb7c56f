"""In-process change feeds pushed to WebSocket subscribers.

Publishers may run on any thread (sync endpoints execute in the threadpool,
commit hooks fire wherever the session commits); each subscriber owns an
asyncio queue bound to the loop that created it, and publishing hands the
payload to that loop with ``call_soon_threadsafe``.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def comments_channel(article_id: str) -> str:
    return f"comments:{article_id}"


def notifications_channel(user_id: str) -> str:
    return f"notifications:{user_id}"


def auth_channel(user_id: str) -> str:
    return f"auth:{user_id}"


@dataclass(eq=False)
class Subscription:
    channel: str
    loop: asyncio.AbstractEventLoop
    viewer_id: Optional[str] = None
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)

    async def get(self) -> Dict[str, Any]:
        return await self.queue.get()


class RealtimeHub:
    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, channel: str, viewer_id: Optional[str] = None) -> Subscription:
        """Must be called from inside the event loop that will consume the queue."""
        subscription = Subscription(channel=channel, loop=asyncio.get_running_loop(), viewer_id=viewer_id)
        with self._lock:
            self._subscribers.setdefault(channel, []).append(subscription)
        logger.debug("Subscribed to %s (viewer=%s)", channel, viewer_id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.channel, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscribers.pop(subscription.channel, None)
        logger.debug("Unsubscribed from %s", subscription.channel)

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subscribers.get(channel, []))

    def publish(self, channel: str, payload: Dict[str, Any]) -> int:
        with self._lock:
            subscribers = list(self._subscribers.get(channel, []))

        delivered = 0
        for subscription in subscribers:
            try:
                subscription.loop.call_soon_threadsafe(subscription.queue.put_nowait, payload)
                delivered += 1
            except RuntimeError:
                # Loop já encerrado: a conexão morreu sem cancelar a inscrição
                logger.warning("Dropping dead subscriber on %s", channel)
                self.unsubscribe(subscription)
        return delivered


hub = RealtimeHub()
