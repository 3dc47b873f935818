import asyncio
import json

import pytest

from heartconnect.services.realtime import RealtimeHub, SubscriberRegistry


class FakeConnection:
    def __init__(self, name="conn", fail=False):
        self.name = name
        self.fail = fail
        self.sent = []

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


def _subscribe(match_id):
    return json.dumps({"type": "subscribe", "matchId": match_id})


@pytest.fixture
def matches(storage, make_member):
    for uid in ("alice", "bob", "carol"):
        make_member(uid)
    ab, _ = storage.create_match("alice", "bob")
    ac, _ = storage.create_match("alice", "carol")
    return {"ab": ab["id"], "ac": ac["id"]}


def test_registry_resubscribe_moves_connection():
    registry = SubscriberRegistry()
    conn = FakeConnection()

    async def scenario():
        assert await registry.subscribe(conn, "m1") is None
        assert await registry.subscribe(conn, "m2") == "m1"
        return await registry.subscribers("m1"), await registry.subscribers("m2")

    old, new = asyncio.run(scenario())

    assert old == []
    assert new == [conn]
    assert registry.subscription_of(conn) == "m2"
    assert registry.active_matches() == ["m2"]


def test_registry_prunes_empty_matches_on_unsubscribe():
    registry = SubscriberRegistry()
    first, second = FakeConnection("a"), FakeConnection("b")

    async def scenario():
        await registry.subscribe(first, "m1")
        await registry.subscribe(second, "m1")
        assert registry.subscriber_count("m1") == 2
        assert await registry.unsubscribe(first) == "m1"
        assert registry.subscriber_count("m1") == 1
        assert await registry.unsubscribe(second) == "m1"
        assert await registry.unsubscribe(second) is None

    asyncio.run(scenario())

    assert registry.active_matches() == []


def test_subscribe_acknowledges_participant(storage, matches):
    hub = RealtimeHub()
    conn = FakeConnection()

    asyncio.run(hub.handle_message(conn, "alice", _subscribe(matches["ab"]), storage))

    assert conn.sent == [{"type": "subscribed", "matchId": matches["ab"]}]
    assert hub.registry.subscription_of(conn) == matches["ab"]


def test_subscribe_rejects_non_participant(storage, matches):
    hub = RealtimeHub()
    conn = FakeConnection()

    asyncio.run(hub.handle_message(conn, "carol", _subscribe(matches["ab"]), storage))

    assert conn.sent == [{"type": "error", "message": "Unauthorized"}]
    assert hub.registry.subscription_of(conn) is None


def test_subscribe_to_unknown_match_reports_error(storage, matches):
    hub = RealtimeHub()
    conn = FakeConnection()

    asyncio.run(hub.handle_message(conn, "alice", _subscribe("missing"), storage))

    assert conn.sent == [{"type": "error", "message": "Match not found"}]


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2, 3]",
        json.dumps({"type": "typing", "matchId": "m1"}),
        json.dumps({"type": "subscribe"}),
        json.dumps({"type": "subscribe", "matchId": "  "}),
    ],
)
def test_malformed_or_unknown_frames_are_ignored(storage, matches, raw):
    hub = RealtimeHub()
    conn = FakeConnection()

    asyncio.run(hub.handle_message(conn, "alice", raw, storage))

    assert conn.sent == []
    assert hub.registry.active_matches() == []


def test_publish_reaches_only_that_match(storage, matches):
    hub = RealtimeHub()
    alice, bob, carol = FakeConnection("alice"), FakeConnection("bob"), FakeConnection("carol")

    async def scenario():
        await hub.handle_message(alice, "alice", _subscribe(matches["ab"]), storage)
        await hub.handle_message(bob, "bob", _subscribe(matches["ab"]), storage)
        await hub.handle_message(carol, "carol", _subscribe(matches["ac"]), storage)
        return await hub.publish(
            matches["ab"],
            {"type": "new_message", "matchId": matches["ab"], "message": {"id": "x1", "sender_id": "bob", "seq": 7}},
        )

    delivered = asyncio.run(scenario())

    assert delivered == 2
    for conn in (alice, bob):
        event = conn.sent[-1]
        assert event["type"] == "new_message"
        assert event["message"] == {"id": "x1", "senderId": "bob"}
    assert carol.sent == [{"type": "subscribed", "matchId": matches["ac"]}]


def test_moving_subscription_stops_old_events(storage, matches):
    hub = RealtimeHub()
    conn = FakeConnection()

    async def scenario():
        await hub.handle_message(conn, "alice", _subscribe(matches["ab"]), storage)
        await hub.handle_message(conn, "alice", _subscribe(matches["ac"]), storage)
        return await hub.publish(matches["ab"], {"type": "new_message", "matchId": matches["ab"]})

    assert asyncio.run(scenario()) == 0
    assert [e["type"] for e in conn.sent] == ["subscribed", "subscribed"]


def test_failed_send_drops_the_connection(storage, matches):
    hub = RealtimeHub()
    healthy = FakeConnection("healthy")
    broken = FakeConnection("broken")

    async def scenario():
        await hub.handle_message(healthy, "alice", _subscribe(matches["ab"]), storage)
        await hub.handle_message(broken, "bob", _subscribe(matches["ab"]), storage)
        broken.fail = True
        return await hub.publish(matches["ab"], {"type": "new_message", "matchId": matches["ab"]})

    assert asyncio.run(scenario()) == 1
    assert hub.registry.subscription_of(broken) is None
    assert hub.registry.subscriber_count(matches["ab"]) == 1


def test_disconnect_removes_subscription(storage, matches):
    hub = RealtimeHub()
    conn = FakeConnection()

    async def scenario():
        await hub.handle_message(conn, "alice", _subscribe(matches["ab"]), storage)
        await hub.disconnect(conn)
        await hub.disconnect(conn)

    asyncio.run(scenario())

    assert hub.registry.active_matches() == []
