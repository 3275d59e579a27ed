"""In-process fan-out of group events to live subscribers."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from ..models import ResolvedMetadata

logger = logging.getLogger(__name__)

EventType = Literal["subscribed", "content-added", "content-removed"]
Subscriber = Callable[[dict[str, Any]], Awaitable[None]]


class GroupEvent(BaseModel):
    """Envelope sent to subscribers: ``{type, groupId, ts, payload}``."""

    type: EventType
    group_id: str = Field(serialization_alias="groupId")
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def subscribed_event(group_id: str) -> GroupEvent:
    return GroupEvent(type="subscribed", group_id=group_id)


def content_added_event(group_id: str, info: ResolvedMetadata) -> GroupEvent:
    return GroupEvent(type="content-added", group_id=group_id, payload=info.to_payload())


def content_removed_event(
    group_id: str, content_id: int, title: str, content_type: str
) -> GroupEvent:
    return GroupEvent(
        type="content-removed",
        group_id=group_id,
        payload={"contentId": content_id, "title": title, "type": content_type},
    )


class GroupNotifier:
    """Deliver events to whoever is subscribed to a group right now.

    Delivery is at-most-once with no persistence: subscribers that join
    after a publish never see it, and a failing subscriber is skipped.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, dict[str, Subscriber]] = defaultdict(dict)
        self._counter = 0

    def subscribe(self, group_id: str, callback: Subscriber) -> str:
        self._counter += 1
        subscription_id = f"sub_{self._counter}"
        self._subscribers[group_id][subscription_id] = callback
        logger.debug("Subscribed %s to group %s", subscription_id, group_id)
        return subscription_id

    def unsubscribe(self, group_id: str, subscription_id: str) -> None:
        subscribers = self._subscribers.get(group_id)
        if subscribers is None:
            return
        subscribers.pop(subscription_id, None)
        if not subscribers:
            del self._subscribers[group_id]
        logger.debug("Unsubscribed %s from group %s", subscription_id, group_id)

    def subscriber_count(self, group_id: str) -> int:
        return len(self._subscribers.get(group_id, {}))

    async def publish(self, group_id: str, event: GroupEvent) -> int:
        """Send ``event`` to current subscribers; return how many received it."""

        subscribers = list(self._subscribers.get(group_id, {}).items())
        payload = event.to_dict()
        delivered = 0
        for subscription_id, callback in subscribers:
            try:
                await callback(payload)
            except Exception:
                logger.exception(
                    "Dropping %s event for subscriber %s", event.type, subscription_id
                )
                continue
            delivered += 1
        return delivered
