import asyncio
import json

from oauth_mcp_server.protocol.events import KEEPALIVE_FRAME, EventChannel, EventHub, format_sse


async def _collect(channel, limit=10):
    frames = []
    async for frame in channel.stream():
        frames.append(frame)
        if len(frames) >= limit:
            break
    return frames


def _event_name(frame):
    return frame.split("\n", 1)[0].removeprefix("event: ")


def test_format_sse():
    assert format_sse("message", {"a": 1}) == 'event: message\ndata: {"a": 1}\n\n'


def test_connected_event_comes_first_then_published_order():
    channel = EventChannel("c1")
    channel.publish("message", {"n": 1})
    channel.publish("message", {"n": 2})
    channel.close()

    frames = asyncio.run(_collect(channel))

    assert _event_name(frames[0]) == "connected"
    assert json.loads(frames[0].split("data: ", 1)[1]) == {"status": "connected"}
    assert frames[1:] == [format_sse("message", {"n": 1}), format_sse("message", {"n": 2})]


def test_nothing_is_delivered_after_close():
    channel = EventChannel("c1")
    channel.close()

    assert channel.publish("message", {"late": True}) is False
    assert channel.closed
    assert asyncio.run(_collect(channel)) == [format_sse("connected", {"status": "connected"})]


def test_keepalive_is_sent_while_idle():
    channel = EventChannel("c1", keepalive_interval=0.01)

    frames = asyncio.run(_collect(channel, limit=3))

    assert frames[1:] == [KEEPALIVE_FRAME, KEEPALIVE_FRAME]


def test_hub_publishes_to_subject_channels_only():
    hub = EventHub()
    first = hub.open("alice")
    second = hub.open("alice")
    other = hub.open("bob")

    assert len(hub) == 3
    assert hub.publish("alice", "message", {"hello": "alice"}) == 2

    hub.close()
    assert len(hub) == 0
    for channel in (first, second):
        assert len(asyncio.run(_collect(channel))) == 2
    assert len(asyncio.run(_collect(other))) == 1


def test_discard_closes_channel():
    hub = EventHub()
    channel = hub.open("alice")

    hub.discard(channel)

    assert len(hub) == 0
    assert channel.closed
    assert hub.publish("alice", "message", {}) == 0


def test_closed_hub_ends_new_channels_after_connected():
    hub = EventHub()
    hub.close()

    channel = hub.open("alice")

    assert hub.closed
    assert len(hub) == 0
    assert len(asyncio.run(_collect(channel))) == 1
