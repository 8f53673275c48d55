"""
ecotrack/realtime/hub.py
In-memory pubsub hub for session observers.

Subscribers receive every published snapshot and notice, in publish order.
A subscriber that raises is pruned.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Union
from uuid import uuid4

logger = logging.getLogger(__name__)

Subscriber = Callable[[Any], Union[None, Awaitable[None]]]


class SessionHub:
    """
    Subscription registry for session events.

    Maps token -> callback, allows safe concurrent access.
    """

    def __init__(self):
        self._subscribers: Dict[str, Subscriber] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, callback: Subscriber) -> str:
        """
        Register a callback; sync and async callables are both accepted.

        Returns:
            Token to pass to unsubscribe()
        """
        token = uuid4().hex
        async with self._lock:
            self._subscribers[token] = callback
            logger.debug(f"[HUB] Registered subscriber {token}. Total: {len(self._subscribers)}")
        return token

    async def unsubscribe(self, token: str) -> None:
        async with self._lock:
            self._subscribers.pop(token, None)
            logger.debug(f"[HUB] Unregistered subscriber {token}. Remaining: {len(self._subscribers)}")

    async def publish(self, event: Any) -> int:
        """
        Deliver an event to every subscriber.

        Handles subscriber failures gracefully by pruning them.

        Returns:
            Number of subscribers that received the event
        """
        async with self._lock:
            if not self._subscribers:
                return 0
            # Copy to avoid modification during iteration
            subscribers = dict(self._subscribers)

        delivered = 0
        dead = []
        for token, callback in subscribers.items():
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception as e:
                logger.debug(f"[HUB] Failed to deliver to subscriber {token}: {e}")
                dead.append(token)

        if dead:
            async with self._lock:
                for token in dead:
                    self._subscribers.pop(token, None)
                logger.debug(f"[HUB] Pruned {len(dead)} dead subscribers")
        return delivered

    async def subscriber_count(self) -> int:
        async with self._lock:
            return len(self._subscribers)
