"""Output sinks used to relay function output back to HTTP clients."""
import asyncio
from typing import AsyncIterator, Awaitable, Optional

_EOF = None


class QueueSink:
    """Async sink whose writes are consumed by iterating over it.

    Both stdout and stderr of a run may share one QueueSink; chunks are
    delivered in the order they were written.
    """

    def __init__(self) -> None:
        self._queue: "asyncio.Queue[Optional[bytes]]" = asyncio.Queue()

    async def write(self, data: bytes) -> None:
        if data:
            await self._queue.put(data)

    async def close(self) -> None:
        await self._queue.put(_EOF)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self._queue.get()
            if chunk is _EOF:
                return
            yield chunk


class BufferSink:
    def __init__(self) -> None:
        self.buffer = bytearray()

    async def write(self, data: bytes) -> None:
        self.buffer.extend(data)

    def getvalue(self) -> bytes:
        return bytes(self.buffer)


async def relay(sink: QueueSink, producer: Awaitable[None]) -> AsyncIterator[bytes]:
    """Run `producer` in the background and yield what it writes to `sink`.

    The producer must close the sink when it finishes. If the consumer goes
    away early the producer is cancelled.
    """
    task = asyncio.ensure_future(producer)
    try:
        async for chunk in sink:
            yield chunk
        await task
    finally:
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
