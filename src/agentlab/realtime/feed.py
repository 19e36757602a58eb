"""In-process change feed.

Observers subscribe to a table, optionally narrowed by a payload filter,
and receive a ChangeEvent after every committed write to that table.
Delivery is synchronous, in subscription order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

logger = logging.getLogger(__name__)

EventType = Literal["INSERT", "UPDATE", "DELETE"]


@dataclass(frozen=True)
class ChangeEvent:
    """One committed change to a table row."""

    table: str
    event_type: EventType
    record_id: str
    payload: dict[str, Any] = field(default_factory=dict)


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by ChangeFeed.subscribe."""

    def __init__(
        self,
        feed: ChangeFeed,
        table: str,
        callback: ChangeCallback,
        filter: dict[str, Any] | None = None,
    ):
        self.feed = feed
        self.table = table
        self.callback = callback
        self.filter = dict(filter or {})
        self.active = True

    def matches(self, event: ChangeEvent) -> bool:
        """Check table and every filter key against the event."""
        if event.table != self.table:
            return False
        return all(event.payload.get(key) == value for key, value in self.filter.items())

    def unsubscribe(self) -> None:
        """Stop receiving events. Safe to call twice."""
        if self.active:
            self.active = False
            self.feed._remove(self)


class ChangeFeed:
    """Publish/subscribe hub for table changes."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        filter: dict[str, Any] | None = None,
    ) -> Subscription:
        """Subscribe to changes of one table.

        Args:
            table: Table name, e.g. "experiments".
            callback: Called with each matching ChangeEvent.
            filter: Payload key -> required value. All keys must match.

        Returns:
            Subscription handle.
        """
        subscription = Subscription(self, table, callback, filter)
        self._subscriptions.append(subscription)
        return subscription

    def publish(self, event: ChangeEvent) -> int:
        """Deliver an event to every matching subscriber.

        A callback that raises is logged and skipped; the others still
        receive the event.

        Returns:
            Number of subscribers the event was delivered to.
        """
        delivered = 0
        # Copy: callbacks may unsubscribe while we iterate
        for subscription in list(self._subscriptions):
            if not subscription.matches(event):
                continue
            try:
                subscription.callback(event)
                delivered += 1
            except Exception:
                logger.exception(
                    "Change feed subscriber failed for %s %s", event.table, event.event_type
                )
        return delivered

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def __len__(self) -> int:
        return len(self._subscriptions)


# Default feed shared by the API layer
change_feed = ChangeFeed()
