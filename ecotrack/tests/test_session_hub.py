"""
ecotrack/tests/test_session_hub.py
Pub/sub fan-out to session observers.
"""

import pytest

from ecotrack.realtime.hub import SessionHub


class TestSessionHub:
    @pytest.mark.asyncio
    async def test_subscribe_and_unsubscribe(self, hub):
        token = await hub.subscribe(lambda event: None)
        assert await hub.subscriber_count() == 1
        await hub.unsubscribe(token)
        assert await hub.subscriber_count() == 0

    @pytest.mark.asyncio
    async def test_publish_to_sync_and_async_subscribers(self, hub):
        sync_seen, async_seen = [], []

        async def async_subscriber(event):
            async_seen.append(event)

        await hub.subscribe(sync_seen.append)
        await hub.subscribe(async_subscriber)

        delivered = await hub.publish({"n": 1})
        await hub.publish({"n": 2})

        assert delivered == 2
        assert sync_seen == [{"n": 1}, {"n": 2}]
        assert async_seen == [{"n": 1}, {"n": 2}]

    @pytest.mark.asyncio
    async def test_failing_subscriber_pruned(self, hub):
        seen = []

        def broken(event):
            raise RuntimeError("socket closed")

        await hub.subscribe(broken)
        await hub.subscribe(seen.append)

        delivered = await hub.publish("event")

        assert delivered == 1
        assert seen == ["event"]
        assert await hub.subscriber_count() == 1

    @pytest.mark.asyncio
    async def test_publish_without_subscribers(self):
        assert await SessionHub().publish("nobody listening") == 0
