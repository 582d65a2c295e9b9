"""
Realtime change stream.

Writers publish one ChangeEvent per committed row change; subscribers get the
events of the tables they joined. Dispatch is scheduled on the running event
loop, so a handler never runs in the middle of the writer's current step.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from app.core.exceptions import SubscriptionError

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"

TABLES = ("businesses", "products", "notifications")


@dataclass
class ChangeEvent:
    """Payload of a row change: event type plus the row after and before it."""

    table: str
    event_type: str
    new: Dict[str, Any] = field(default_factory=dict)
    old: Dict[str, Any] = field(default_factory=dict)


ChangeHandler = Callable[[ChangeEvent], None]


@dataclass
class Subscription:
    table: str
    handler: ChangeHandler
    active: bool = True


class ChangeFeed:
    """Per-table publish/subscribe hub for row changes."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._subscriptions: Dict[str, List[Subscription]] = defaultdict(list)

    def subscribe(self, table: str, handler: ChangeHandler) -> Subscription:
        """Join the change stream of a table."""
        if not self.enabled:
            raise SubscriptionError("Realtime change stream is disabled")
        if table not in TABLES:
            raise SubscriptionError(f"Unknown table '{table}'")

        subscription = Subscription(table=table, handler=handler)
        self._subscriptions[table].append(subscription)
        logger.debug(f"Subscribed to '{table}' changes")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        handlers = self._subscriptions.get(subscription.table, [])
        if subscription in handlers:
            handlers.remove(subscription)

    def subscriber_count(self, table: str) -> int:
        return len(self._subscriptions.get(table, []))

    def publish(self, event: ChangeEvent) -> None:
        """
        Deliver an event to the table's subscribers.

        Handlers run on a later turn of the event loop when one is running,
        otherwise immediately.
        """
        subscriptions = list(self._subscriptions.get(event.table, []))
        if not subscriptions:
            return

        loop = _running_loop()
        for subscription in subscriptions:
            if loop is not None:
                loop.call_soon(self._safe_dispatch, subscription, event)
            else:
                self._safe_dispatch(subscription, event)

    def _safe_dispatch(self, subscription: Subscription, event: ChangeEvent) -> None:
        if not subscription.active:
            return
        try:
            subscription.handler(event)
        except Exception:
            logger.exception(f"Error processing {event.event_type} change on '{event.table}'")


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
