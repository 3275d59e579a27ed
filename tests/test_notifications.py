"""Group notifier tests."""

from __future__ import annotations

from typing import Any

import pytest

from app.models import ResolvedMetadata
from app.services.notifications import (
    GroupNotifier,
    content_added_event,
    content_removed_event,
    subscribed_event,
)

SHAWSHANK = ResolvedMetadata(
    imdb_id="tt0111161",
    title="The Shawshank Redemption",
    type="movie",
    genres="Drama",
)


def _collector(bucket: list[dict[str, Any]]):
    async def collect(event: dict[str, Any]) -> None:
        bucket.append(event)

    return collect


@pytest.mark.anyio("asyncio")
async def test_publish_reaches_only_the_group() -> None:
    notifier = GroupNotifier()
    movie_night: list[dict[str, Any]] = []
    anime_club: list[dict[str, Any]] = []
    notifier.subscribe("ab12cd34", _collector(movie_night))
    notifier.subscribe("ef56ab78", _collector(anime_club))

    delivered = await notifier.publish(
        "ab12cd34", content_added_event("ab12cd34", SHAWSHANK)
    )

    assert delivered == 1
    assert anime_club == []
    event = movie_night[0]
    assert event["type"] == "content-added"
    assert event["groupId"] == "ab12cd34"
    assert event["payload"]["title"] == "The Shawshank Redemption"
    assert isinstance(event["ts"], str)


@pytest.mark.anyio("asyncio")
async def test_unsubscribe_and_late_subscribers_miss_events() -> None:
    notifier = GroupNotifier()
    early: list[dict[str, Any]] = []
    subscription_id = notifier.subscribe("ab12cd34", _collector(early))

    await notifier.publish("ab12cd34", content_added_event("ab12cd34", SHAWSHANK))
    late: list[dict[str, Any]] = []
    notifier.subscribe("ab12cd34", _collector(late))
    notifier.unsubscribe("ab12cd34", subscription_id)
    await notifier.publish(
        "ab12cd34", content_removed_event("ab12cd34", 1, "The Shawshank Redemption", "movie")
    )

    assert [event["type"] for event in early] == ["content-added"]
    assert [event["type"] for event in late] == ["content-removed"]
    assert notifier.subscriber_count("ab12cd34") == 1


@pytest.mark.anyio("asyncio")
async def test_failing_subscriber_is_skipped() -> None:
    notifier = GroupNotifier()
    received: list[dict[str, Any]] = []

    async def broken(event: dict[str, Any]) -> None:
        raise RuntimeError("socket gone")

    notifier.subscribe("ab12cd34", broken)
    notifier.subscribe("ab12cd34", _collector(received))

    delivered = await notifier.publish("ab12cd34", subscribed_event("ab12cd34"))

    assert delivered == 1
    assert len(received) == 1


@pytest.mark.anyio("asyncio")
async def test_publish_without_subscribers() -> None:
    notifier = GroupNotifier()

    assert await notifier.publish("ab12cd34", subscribed_event("ab12cd34")) == 0
    notifier.unsubscribe("ab12cd34", "sub_404")
    assert notifier.subscriber_count("ab12cd34") == 0
