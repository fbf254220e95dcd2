"""Server-Sent Events channel for out-of-band messages to MCP clients."""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Set

logger = logging.getLogger(__name__)

KEEPALIVE_FRAME = ": keepalive\n\n"
_CLOSE = object()


def format_sse(event: str, data: Any) -> str:
    """Frame one server-sent event"""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


class EventChannel:
    """One client's event stream.

    The first frame is always the `connected` event. Frames published
    before `close()` are delivered in order; nothing follows the close.
    """

    def __init__(self, subject: str, keepalive_interval: float = 30.0):
        self.subject = subject
        self.keepalive_interval = keepalive_interval
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: str, data: Any) -> bool:
        """Queue an event. Returns False if the channel is already closed."""
        if self._closed:
            return False
        self._queue.put_nowait(format_sse(event, data))
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSE)

    async def stream(self) -> AsyncIterator[str]:
        yield format_sse("connected", {"status": "connected"})

        while True:
            try:
                frame = await asyncio.wait_for(self._queue.get(), timeout=self.keepalive_interval)
            except asyncio.TimeoutError:
                yield KEEPALIVE_FRAME
                continue
            if frame is _CLOSE:
                break
            yield frame


class EventHub:
    """Tracks open event channels so they can be reached and shut down."""

    def __init__(self, keepalive_interval: float = 30.0):
        self.keepalive_interval = keepalive_interval
        self._channels: Set[EventChannel] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self, subject: str) -> EventChannel:
        """Open a channel for an authenticated subject.

        After the hub is closed, new channels end right after the
        connected event.
        """
        channel = EventChannel(subject, keepalive_interval=self.keepalive_interval)
        if self._closed:
            channel.close()
        else:
            self._channels.add(channel)
            logger.info("Opened event channel for %s (%d open)", subject, len(self._channels))
        return channel

    def discard(self, channel: EventChannel) -> None:
        channel.close()
        self._channels.discard(channel)

    def publish(self, subject: str, event: str, data: Any) -> int:
        """Send an event to every open channel of subject.

        Returns:
            Number of channels the event was queued on
        """
        return sum(
            1 for channel in list(self._channels)
            if channel.subject == subject and channel.publish(event, data)
        )

    def close(self) -> None:
        self._closed = True
        for channel in list(self._channels):
            channel.close()
        self._channels.clear()

    def __len__(self) -> int:
        return len(self._channels)
