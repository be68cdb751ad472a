"""Tests for the realtime event broadcaster."""

import asyncio
import logging
import threading

import pytest
from backend.app.services.notifier import EventBroadcaster
from pydantic import ValidationError


class TestPublish:
    def test_every_observer_receives_event(self) -> None:
        async def scenario() -> list[dict]:
            broadcaster = EventBroadcaster()
            first = broadcaster.subscribe()
            second = broadcaster.subscribe()
            reached = broadcaster.publish("newIdea", {"id": 1, "title": "Bikes"})
            assert reached == 2
            return [
                await asyncio.wait_for(first.get(), timeout=1),
                await asyncio.wait_for(second.get(), timeout=1),
            ]

        received = asyncio.run(scenario())
        expected = {"type": "newIdea", "payload": {"id": 1, "title": "Bikes"}}
        assert received == [expected, expected]

    def test_publish_from_worker_thread(self) -> None:
        async def scenario() -> dict:
            broadcaster = EventBroadcaster()
            sub = broadcaster.subscribe()
            worker = threading.Thread(
                target=broadcaster.publish, args=("likeIdea", {"id": 3}),
            )
            worker.start()
            worker.join()
            return await asyncio.wait_for(sub.get(), timeout=1)

        assert asyncio.run(scenario()) == {"type": "likeIdea", "payload": {"id": 3}}

    def test_no_observers_is_fine(self) -> None:
        assert EventBroadcaster().publish("newIdea", {"id": 1}) == 0

    def test_unknown_event_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EventBroadcaster().publish("deleteIdea", {"id": 1})

    def test_publish_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            EventBroadcaster().publish("newIdea", {"id": 1})
        assert "event_broadcast" in caplog.text
        assert "type=newIdea" in caplog.text


class TestSubscriptions:
    def test_unsubscribed_observer_not_reached(self) -> None:
        async def scenario() -> int:
            broadcaster = EventBroadcaster()
            sub = broadcaster.subscribe()
            broadcaster.unsubscribe(sub)
            assert broadcaster.observer_count == 0
            return broadcaster.publish("newIdea", {"id": 1})

        assert asyncio.run(scenario()) == 0

    def test_subscribe_requires_running_loop(self) -> None:
        with pytest.raises(RuntimeError):
            EventBroadcaster().subscribe()


class TestBackpressure:
    def test_full_queue_drops_events(self, caplog: pytest.LogCaptureFixture) -> None:
        async def scenario() -> list[dict]:
            broadcaster = EventBroadcaster(max_queue_size=2)
            sub = broadcaster.subscribe()
            for n in range(4):
                broadcaster.publish("likeIdea", {"id": n})
            await asyncio.sleep(0.05)
            assert sub.queue.qsize() == 2
            return [sub.queue.get_nowait(), sub.queue.get_nowait()]

        with caplog.at_level(logging.WARNING):
            received = asyncio.run(scenario())

        assert [m["payload"]["id"] for m in received] == [0, 1]
        assert "event_dropped" in caplog.text
