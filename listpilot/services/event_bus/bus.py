"""
In-process event bus for asynchronous messaging between components.

The job engine publishes every job state change and every user-facing notice
here; subscribers (and the recent-history buffer) are how the console layer
observes the engine without touching its internals.
"""
import asyncio
import logging
import uuid
from collections import deque
from typing import Deque, Dict, List, Callable, Any, Set, Optional, Tuple
from datetime import datetime, timezone

logger = logging.getLogger("listpilot.eventbus")


class EventBus:
    """
    Event bus supporting subscription, publishing and a bounded history.
    """

    def __init__(self, max_history: int = 200):
        self._subscribers: Dict[str, List[Tuple[str, Callable]]] = {}
        self._subscriber_ids: Dict[str, Set[str]] = {}
        self._lock = asyncio.Lock()
        self._initialized = False
        self._event_history: Deque[Dict[str, Any]] = deque(maxlen=max_history)

    async def initialize(self) -> None:
        """Initialize the event bus."""
        if self._initialized:
            return

        logger.info("Initializing event bus")
        self._initialized = True

    async def shutdown(self) -> None:
        """Shutdown the event bus and clean up resources."""
        logger.info("Shutting down event bus")
        self._initialized = False

        async with self._lock:
            self._subscribers.clear()
            self._subscriber_ids.clear()
        self._event_history.clear()

    async def publish(
        self,
        event_type: str,
        data: Dict[str, Any],
        record: bool = True
    ) -> bool:
        """
        Publish an event to subscribers.

        Args:
            event_type: Type of event
            data: Event data
            record: Keep the event in the recent-history buffer

        Returns:
            bool: True if every subscriber handled the event
        """
        if not self._initialized:
            await self.initialize()

        event_type = getattr(event_type, "value", event_type)

        async with self._lock:
            subscribers = list(self._subscribers.get(event_type, []))

        payload = dict(data)
        payload.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        payload["event_type"] = event_type
        payload["event_id"] = str(uuid.uuid4())

        if record:
            self._event_history.append(payload)

        if not subscribers:
            logger.debug(f"No subscribers for event: {event_type}")
            return True

        logger.debug(f"Publishing event {event_type} to {len(subscribers)} subscribers")

        all_successful = True
        for subscriber_id, callback in subscribers:
            try:
                await callback(payload)
            except asyncio.CancelledError:
                logger.warning(f"Subscriber {subscriber_id} was cancelled during event {event_type}")
                raise
            except Exception as e:
                logger.error(f"Error in subscriber {subscriber_id} for {event_type}: {e}", exc_info=True)
                all_successful = False

        return all_successful

    async def subscribe(
        self,
        event_type: str,
        callback: Callable,
        subscriber_id: Optional[str] = None
    ) -> str:
        """
        Subscribe to an event type.

        Args:
            event_type: Event type to subscribe to
            callback: Coroutine function called with the event payload
            subscriber_id: Optional subscriber ID

        Returns:
            str: Subscriber ID
        """
        if not self._initialized:
            await self.initialize()

        event_type = getattr(event_type, "value", event_type)
        if subscriber_id is None:
            subscriber_id = f"{callback.__module__}.{getattr(callback, '__name__', 'callback')}_{str(uuid.uuid4())[:8]}"

        async with self._lock:
            self._subscribers.setdefault(event_type, [])
            self._subscriber_ids.setdefault(event_type, set())

            if subscriber_id in self._subscriber_ids[event_type]:
                self._subscribers[event_type] = [
                    (sid, callback if sid == subscriber_id else cb)
                    for sid, cb in self._subscribers[event_type]
                ]
                logger.debug(f"Updated subscriber callback for {event_type}: {subscriber_id}")
            else:
                self._subscribers[event_type].append((subscriber_id, callback))
                self._subscriber_ids[event_type].add(subscriber_id)
                logger.info(f"Subscribed to {event_type}: {subscriber_id}")

        return subscriber_id

    async def unsubscribe(self, event_type: str, subscriber_id: str) -> bool:
        """
        Unsubscribe from an event type.

        Returns:
            bool: True if unsubscribed, False if not found
        """
        event_type = getattr(event_type, "value", event_type)

        async with self._lock:
            if subscriber_id not in self._subscriber_ids.get(event_type, set()):
                return False

            self._subscribers[event_type] = [
                (sid, callback) for sid, callback in self._subscribers[event_type]
                if sid != subscriber_id
            ]
            self._subscriber_ids[event_type].remove(subscriber_id)

        logger.info(f"Unsubscribed from {event_type}: {subscriber_id}")
        return True

    def get_subscriber_count(self, event_type: Optional[str] = None) -> int:
        """Get the number of subscribers, optionally for one event type."""
        if event_type:
            event_type = getattr(event_type, "value", event_type)
            return len(self._subscribers.get(event_type, []))
        return sum(len(subscribers) for subscribers in self._subscribers.values())

    def get_event_history(
        self,
        limit: int = 10,
        event_types: Optional[Set[str]] = None
    ) -> List[Dict[str, Any]]:
        """
        Get recent events, oldest first.

        Args:
            limit: Maximum number of events to return
            event_types: Optional filter on event type values
        """
        events = list(self._event_history)
        if event_types is not None:
            wanted = {getattr(t, "value", t) for t in event_types}
            events = [e for e in events if e["event_type"] in wanted]
        return events[-limit:] if limit > 0 else []


# Singleton instance
_event_bus = EventBus()

def get_event_bus() -> EventBus:
    """Get the singleton event bus instance."""
    return _event_bus
