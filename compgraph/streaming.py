"""Single-reader event channel connecting a session to its consumer."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, AsyncIterator, List, Optional, Protocol

from .errors import StreamClosedError
from .events import SessionEvent

if TYPE_CHECKING:  # pragma: no cover
    from .session import AnalysisSession

DEFAULT_BUFFER_SIZE = 16


class EventSink(Protocol):
    async def send(self, event: SessionEvent) -> None:
        """Deliver one event, raising StreamClosedError once the reader is gone."""


class EventChannel:
    """Bounded FIFO between one producing session and one reader.

    ``send`` preserves emission order. After ``close`` every further ``send``
    raises ``StreamClosedError`` and iteration stops once buffered events
    are drained.
    """

    def __init__(self, maxsize: int = DEFAULT_BUFFER_SIZE) -> None:
        self._queue: asyncio.Queue[Optional[SessionEvent]] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, event: SessionEvent) -> None:
        if self._closed:
            raise StreamClosedError("Event stream consumer has disconnected")
        await self._queue.put(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            # The reader is gone or will drain first; iteration also stops on `closed`.
            pass

    def __aiter__(self) -> AsyncIterator[SessionEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[SessionEvent]:
        while True:
            if self._closed and self._queue.empty():
                return
            event = await self._queue.get()
            if event is None:
                return
            yield event


class CollectingSink:
    """Sink that keeps every event in memory; used by the CLI and tests."""

    def __init__(self) -> None:
        self.events: List[SessionEvent] = []

    async def send(self, event: SessionEvent) -> None:
        self.events.append(event)


async def stream_session(
    session: "AnalysisSession", *, maxsize: int = DEFAULT_BUFFER_SIZE
) -> AsyncIterator[SessionEvent]:
    """Run ``session`` in the background and yield its events in emission order.

    Closing the generator early closes the channel and cancels the producer,
    so the session stops without analysing the remaining files.
    """
    channel = EventChannel(maxsize=maxsize)

    async def _produce() -> None:
        try:
            await session.run(channel)
        finally:
            channel.close()

    task = asyncio.create_task(_produce())
    try:
        async for event in channel:
            yield event
        await task
    finally:
        channel.close()
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                session.logger.debug("Session task cancelled after consumer disconnect")


__all__ = [
    "CollectingSink",
    "DEFAULT_BUFFER_SIZE",
    "EventChannel",
    "EventSink",
    "stream_session",
]
