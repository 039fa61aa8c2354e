"""
Tests for the in-process change feed and the websocket subscription endpoint.
"""

import asyncio
import threading

import pytest
from starlette.websockets import WebSocketDisconnect

from app.modules.realtime.hub import RealtimeHub, build_change_event
from tests.conftest import API


def run(coro):
    return asyncio.run(coro)


# =============================================================================
# HUB
# =============================================================================


class TestRealtimeHub:
    def test_event_shape(self):
        event = build_change_event("r1", "room_messages", "INSERT", new={"id": "m1"})
        assert event["event"] == "INSERT"
        assert event["schema"] == "public"
        assert event["table"] == "room_messages"
        assert event["room_id"] == "r1"
        assert event["new"] == {"id": "m1"}
        assert event["old"] == {}
        assert event["commit_timestamp"]

    def test_unknown_event_type(self):
        with pytest.raises(ValueError):
            build_change_event("r1", "rooms", "TRUNCATE")

    def test_delivers_to_room_subscribers_only(self):
        async def scenario():
            hub = RealtimeHub()
            mine = hub.subscribe("r1")
            other = hub.subscribe("r2")
            assert hub.publish("r1", "room_messages", "INSERT", new={"id": "m1"}) == 1
            event = await asyncio.wait_for(mine.get(), timeout=1)
            assert event["new"]["id"] == "m1"
            assert other.queue.empty()

        run(scenario())

    def test_table_filter(self):
        async def scenario():
            hub = RealtimeHub()
            polls_only = hub.subscribe("r1", {"polls"})
            assert hub.publish("r1", "room_messages", "INSERT") == 0
            assert hub.publish("r1", "polls", "UPDATE") == 1
            event = await asyncio.wait_for(polls_only.get(), timeout=1)
            assert event["table"] == "polls"

        run(scenario())

    def test_full_queue_drops_oldest(self):
        async def scenario():
            hub = RealtimeHub(queue_size=2)
            sub = hub.subscribe("r1")
            for i in range(3):
                hub.publish("r1", "room_messages", "INSERT", new={"n": i})
            await asyncio.sleep(0.01)
            assert sub.dropped == 1
            received = [(await sub.get())["new"]["n"] for _ in range(2)]
            assert received == [1, 2]

        run(scenario())

    def test_publish_from_worker_thread(self):
        async def scenario():
            hub = RealtimeHub()
            sub = hub.subscribe("r1")
            worker = threading.Thread(target=hub.publish, args=("r1", "rooms", "UPDATE"), kwargs={"new": {"id": "r1"}})
            worker.start()
            worker.join()
            event = await asyncio.wait_for(sub.get(), timeout=1)
            assert event["table"] == "rooms"

        run(scenario())

    def test_unsubscribe(self):
        async def scenario():
            hub = RealtimeHub()
            sub = hub.subscribe("r1")
            assert hub.subscriber_count("r1") == 1
            hub.unsubscribe(sub)
            hub.unsubscribe(sub)
            assert hub.subscriber_count("r1") == 0
            assert hub.publish("r1", "rooms", "UPDATE") == 0

        run(scenario())

    def test_publish_without_room_is_ignored(self):
        assert RealtimeHub().publish("", "rooms", "INSERT") == 0


# =============================================================================
# WEBSOCKET
# =============================================================================


class TestRoomChangesSocket:
    def test_streams_room_changes(self, client, host, room):
        url = f"{API}/realtime/rooms/{room['id']}?tables=room_messages"
        with client.websocket_connect(url) as ws:
            hello = ws.receive_json()
            assert hello["type"] == "subscribed"
            assert hello["tables"] == ["room_messages"]

            client.post(f"{API}/rooms/{room['id']}/messages", json={"content": "live!"}, headers=host["headers"])
            event = ws.receive_json()
            assert event["event"] == "INSERT"
            assert event["table"] == "room_messages"
            assert event["new"]["content"] == "live!"

    def test_ping(self, client, room):
        with client.websocket_connect(f"{API}/realtime/rooms/{room['id']}") as ws:
            ws.receive_json()
            ws.send_text("ping")
            assert ws.receive_json() == {"type": "pong"}

    def test_unknown_room_closes_with_4404(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"{API}/realtime/rooms/nope") as ws:
                ws.receive_json()
        assert exc_info.value.code == 4404
