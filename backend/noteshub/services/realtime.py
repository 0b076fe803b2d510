"""
In-process realtime channel.

The record store publishes every inserted row here; subscribers register an
async handler per table. Delivery is fan-out to all current subscribers,
each receiving the same `InsertEvent`.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional
import structlog

logger = structlog.get_logger()


class InsertEvent:
    """One inserted row, shared by every subscriber it is delivered to."""

    def __init__(self, table: str, row: Dict[str, Any]):
        self.table = table
        self.row = row
        self._derived: Dict[str, Any] = {}

    async def derive(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        """
        Value computed from the row once per event. Later subscribers asking
        for the same key get the first result.
        """
        if key not in self._derived:
            self._derived[key] = await factory()
        return self._derived[key]


Handler = Callable[[InsertEvent], Awaitable[None]]


class Subscription:
    def __init__(self, channel: "RealtimeChannel", table: str, handler: Handler):
        self.channel = channel
        self.table = table
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self.channel._remove(self)


class RealtimeChannel:
    def __init__(self):
        self._subscribers: Dict[str, List[Subscription]] = {}

    def subscribe(self, table: str, handler: Handler) -> Subscription:
        sub = Subscription(self, table, handler)
        self._subscribers.setdefault(table, []).append(sub)
        logger.debug("realtime_subscribed", table=table, subscribers=self.subscriber_count(table))
        return sub

    def _remove(self, sub: Subscription) -> None:
        try:
            self._subscribers.get(sub.table, []).remove(sub)
        except ValueError:
            pass

    def subscriber_count(self, table: Optional[str] = None) -> int:
        if table is not None:
            return len(self._subscribers.get(table, []))
        return sum(len(subs) for subs in self._subscribers.values())

    async def publish_insert(self, table: str, row: Dict[str, Any]) -> None:
        """
        Deliver a new row to every subscriber of `table`.
        A failing handler is logged and does not affect the others.
        """
        event = InsertEvent(table, row)
        for sub in list(self._subscribers.get(table, [])):
            if not sub.active:
                continue
            try:
                await sub.handler(event)
            except Exception as e:
                logger.error("realtime_handler_failed", table=table, error=str(e))
