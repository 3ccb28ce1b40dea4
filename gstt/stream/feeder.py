import asyncio
import logging
from typing import AsyncIterable, AsyncIterator, Optional
from ..errors import ConduitClosed, GSTTError, SourceReadError

logger = logging.getLogger(__name__)

_EOF = object()


class UploadFeeder:
    """
    Bounded conduit between an audio producer and the upstream request body.

    The producer calls `write()` / `close()`, the HTTP layer iterates the feeder
    with `async for`. At most `max_buffered_chunks` chunks of `chunk_size` bytes
    are held at once: a full buffer suspends the producer, an empty one suspends
    the consumer until more data arrives or input is closed.
    """

    def __init__(self, chunk_size: int = 1024, max_buffered_chunks: int = 16):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive: {chunk_size}")
        if max_buffered_chunks <= 0:
            raise ValueError(f"max_buffered_chunks must be positive: {max_buffered_chunks}")
        self.chunk_size = chunk_size
        self.max_buffered_chunks = max_buffered_chunks
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_buffered_chunks)
        self._error: Optional[Exception] = None
        self._input_closed = False
        self._aborted = False
        self._abort_event = asyncio.Event()
        self.bytes_written = 0
        self.bytes_read = 0

    @property
    def closed(self) -> bool:
        return self._input_closed or self._aborted

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def buffered_chunks(self) -> int:
        return self._queue.qsize()

    async def write(self, data: bytes):
        if self.closed:
            raise ConduitClosed(cause=self._error)

        for offset in range(0, len(data), self.chunk_size):
            chunk = bytes(data[offset:offset + self.chunk_size])
            await self._queue.put(chunk)
            # Woken up by abort(): the consumer is gone
            if self._aborted:
                raise ConduitClosed(cause=self._error)
            self.bytes_written += len(chunk)

    async def close(self, error: Exception = None):
        if self.closed:
            return
        self._input_closed = True
        self._error = error
        await self._queue.put(_EOF)
        logger.debug(f"Upload input closed: bytes_written={self.bytes_written}, error={error}")

    def abort(self, error: Exception = None):
        if self._aborted:
            return
        self._aborted = True
        if error is not None and self._error is None:
            self._error = error
        # Release a consumer waiting on an empty queue
        self._abort_event.set()
        # Release a producer blocked on a full queue
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
        logger.debug(f"Upload conduit aborted: bytes_written={self.bytes_written}, bytes_read={self.bytes_read}")

    async def _next_chunk(self):
        if not self._queue.empty():
            return self._queue.get_nowait()

        getter = asyncio.ensure_future(self._queue.get())
        aborted = asyncio.ensure_future(self._abort_event.wait())
        try:
            await asyncio.wait({getter, aborted}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            getter.cancel()
            aborted.cancel()

        if getter.done() and not getter.cancelled():
            return getter.result()
        return _EOF

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while True:
            if self._aborted:
                raise ConduitClosed(cause=self._error)
            chunk = await self._next_chunk()
            if self._aborted:
                raise ConduitClosed(cause=self._error)
            if chunk is _EOF:
                if self._error is not None:
                    raise self._error
                return
            self.bytes_read += len(chunk)
            yield chunk

    async def pump(self, source: AsyncIterable[bytes]):
        try:
            async for data in source:
                if data:
                    await self.write(data)

        except ConduitClosed:
            raise

        except GSTTError as gerr:
            await self.close(gerr)
            raise

        except Exception as ex:
            error = SourceReadError(f"Failed to read audio source: {ex}", cause=ex)
            await self.close(error)
            raise error from ex

        await self.close()
