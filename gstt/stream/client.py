import asyncio
from dataclasses import dataclass, field
from enum import Enum
import logging
import time
from typing import AsyncGenerator, AsyncIterable, Awaitable, Callable, List, Optional, Set, Union
import httpx
from ..decoder import ResponseDecoder, create_decoder
from ..errors import ConduitClosed, GSTTError, SourceReadError, TransportError
from ..events import PartialEvent, FinalEvent, EndOfStreamEvent, ErrorEvent, RecognitionEvent
from ..options import Options, UP_URL, DOWN_URL
from .encoder import FrameEncoder, CONTENT_TYPE_FLAC
from .feeder import UploadFeeder


AudioInput = Union[bytes, bytearray, memoryview, AsyncIterable[bytes]]


class StreamState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    DRAINING = "draining"
    CLOSED = "closed"


TRANSITIONS = {
    StreamState.IDLE: {StreamState.CONNECTING, StreamState.CLOSED},
    StreamState.CONNECTING: {StreamState.STREAMING, StreamState.CLOSED},
    StreamState.STREAMING: {StreamState.DRAINING, StreamState.CLOSED},
    StreamState.DRAINING: {StreamState.CLOSED},
    StreamState.CLOSED: set(),
}


class ConnectionSession:
    def __init__(self, encoder: FrameEncoder, feeder: UploadFeeder, decoder: ResponseDecoder, max_pending_events: int = 256):
        self.id = encoder.pair
        self.encoder = encoder
        self.feeder = feeder
        self.decoder = decoder
        self.state = StreamState.IDLE
        self.writable = False
        self.readable = False
        # Decoded events and failures of the background tasks, in arrival order.
        # A full queue suspends the download until the caller catches up.
        self.events: asyncio.Queue = asyncio.Queue(maxsize=max_pending_events)
        self.stop_requested = False
        self.producer_task: Optional[asyncio.Task] = None
        self.upload_task: Optional[asyncio.Task] = None
        self.download_task: Optional[asyncio.Task] = None
        self.partial_count = 0
        self.final_count = 0
        self.error: Optional[ErrorEvent] = None
        self.started_at = time.time()

    @property
    def tasks(self) -> List[asyncio.Task]:
        return [t for t in (self.producer_task, self.upload_task, self.download_task) if t is not None]


@dataclass
class StreamResult:
    finals: List[FinalEvent] = field(default_factory=list)
    partial_count: int = 0
    error: Optional[ErrorEvent] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def transcript(self) -> str:
        return " ".join(f.transcript for f in self.finals if f.transcript)


async def iterate_bytes(data: bytes, chunk_size: int) -> AsyncGenerator[bytes, None]:
    for offset in range(0, len(data), chunk_size):
        yield bytes(data[offset:offset + chunk_size])


class SpeechStreamClient:
    """
    Streaming client for the full-duplex speech recognition endpoint.

    Each call to `stream()` opens a fresh session: the audio is uploaded through
    a bounded `UploadFeeder` while the downstream response is decoded
    concurrently, so results arrive before the upload finishes.
    """

    def __init__(
        self,
        *,
        chunk_size: int = 1024,
        max_buffered_chunks: int = 16,
        max_pending_events: int = 256,
        up_url: str = UP_URL,
        down_url: str = DOWN_URL,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
        timeout: float = 10.0,
        read_timeout: Optional[float] = None,
        transport: httpx.AsyncBaseTransport = None,
        logger: logging.Logger = None,
        debug: bool = False
    ):
        self.chunk_size = chunk_size
        self.max_buffered_chunks = max_buffered_chunks
        self.max_pending_events = max_pending_events
        self.up_url = up_url
        self.down_url = down_url
        self.http_client = httpx.AsyncClient(
            follow_redirects=False,
            timeout=httpx.Timeout(timeout, read=read_timeout),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_keepalive_connections
            ),
            transport=transport
        )
        self.logger = logger or logging.getLogger(__name__)
        self.debug = debug
        self.sessions: Set[ConnectionSession] = set()

        self._on_partial: Optional[Callable[[PartialEvent], Awaitable[None]]] = None
        self._on_final: Optional[Callable[[FinalEvent], Awaitable[None]]] = None
        self._on_error: Optional[Callable[[ErrorEvent], Awaitable[None]]] = None

    def on_partial(self, func: Callable[[PartialEvent], Awaitable[None]]):
        self._on_partial = func
        return func

    def on_final(self, func: Callable[[FinalEvent], Awaitable[None]]):
        self._on_final = func
        return func

    def on_error(self, func: Callable[[ErrorEvent], Awaitable[None]]):
        self._on_error = func
        return func

    async def _call_hook(self, hook, event: RecognitionEvent):
        if not hook:
            return
        try:
            await hook(event)
        except Exception as ex:
            self.logger.error(f"Error in {event.type} hook: {ex}", exc_info=True)

    def _transition(self, session: ConnectionSession, state: StreamState):
        if state not in TRANSITIONS[session.state]:
            return
        self.logger.debug(f"Session {session.id}: {session.state.value} -> {state.value}")
        session.state = state

    def create_session(self, options: Options, content_type: str) -> ConnectionSession:
        return ConnectionSession(
            encoder=FrameEncoder(options, content_type, up_url=self.up_url, down_url=self.down_url),
            feeder=UploadFeeder(chunk_size=self.chunk_size, max_buffered_chunks=self.max_buffered_chunks),
            decoder=create_decoder(options.output),
            max_pending_events=self.max_pending_events
        )

    async def _produce(self, session: ConnectionSession, audio: AsyncIterable[bytes]):
        try:
            await session.feeder.pump(audio)
            self.logger.info(f"Audio input completed: {session.feeder.bytes_written} bytes")
            self._transition(session, StreamState.DRAINING)

        except ConduitClosed:
            self.logger.debug(f"Audio input stopped: session {session.id} is closed")

        except SourceReadError as srerr:
            self.logger.error(f"Failed in reading audio source: {srerr}")
            await session.events.put(ErrorEvent.from_exception(srerr))

    async def _upload(self, session: ConnectionSession):
        up = session.encoder.upstream(session.feeder)
        session.writable = True
        try:
            resp = await self.http_client.request(
                method=up.method,
                url=up.url,
                params=up.params,
                headers=up.headers,
                content=up.content
            )
            resp.raise_for_status()
            self.logger.debug(f"Upstream completed: status={resp.status_code}, bytes={session.feeder.bytes_read}")

        except httpx.HTTPStatusError as hserr:
            status_code = hserr.response.status_code
            self.logger.error(f"Upstream rejected: HTTP {status_code}")
            await session.events.put(ErrorEvent.from_exception(
                TransportError(f"Upstream request failed: HTTP {status_code}", cause=hserr, status_code=status_code)
            ))

        except httpx.HTTPError as herr:
            self.logger.error(f"Upstream connection failed: {herr!r}")
            await session.events.put(ErrorEvent.from_exception(
                TransportError(f"Upstream connection failed: {herr!r}", cause=herr)
            ))

        except ConduitClosed:
            self.logger.debug(f"Upstream body closed: session {session.id}")

        except GSTTError as gerr:
            await session.events.put(ErrorEvent.from_exception(gerr))

        finally:
            session.writable = False

    async def _download(self, session: ConnectionSession):
        down = session.encoder.downstream()
        try:
            async with self.http_client.stream(
                method=down.method,
                url=down.url,
                params=down.params,
                headers=down.headers
            ) as resp:
                resp.raise_for_status()
                session.readable = True
                self._transition(session, StreamState.STREAMING)
                if session.feeder.closed:
                    self._transition(session, StreamState.DRAINING)

                async for data in resp.aiter_bytes():
                    for event in session.decoder.feed(data):
                        await session.events.put(event)
                        if isinstance(event, ErrorEvent):
                            return

                for event in session.decoder.finish():
                    await session.events.put(event)

        except httpx.HTTPStatusError as hserr:
            status_code = hserr.response.status_code
            self.logger.error(f"Downstream rejected: HTTP {status_code}")
            await session.events.put(ErrorEvent.from_exception(
                TransportError(f"Downstream request failed: HTTP {status_code}", cause=hserr, status_code=status_code)
            ))

        except httpx.HTTPError as herr:
            self.logger.error(f"Downstream connection failed: {herr!r}")
            await session.events.put(ErrorEvent.from_exception(
                TransportError(f"Downstream connection failed: {herr!r}", cause=herr)
            ))

        finally:
            session.readable = False

    async def _teardown(self, session: ConnectionSession):
        session.feeder.abort(ConduitClosed(f"Session {session.id} is closed"))
        pending = [t for t in session.tasks if not t.done()]
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._transition(session, StreamState.CLOSED)
        self.sessions.discard(session)
        self.logger.info(
            f"Session {session.id} closed: finals={session.final_count}, partials={session.partial_count}, "
            f"uploaded={session.feeder.bytes_read} bytes, duration={time.time() - session.started_at:.2f}s"
        )

    async def stream(
        self,
        audio: AudioInput,
        sample_rate: int = None,
        options: Options = None,
        *,
        content_type: str = None
    ) -> AsyncGenerator[RecognitionEvent, None]:
        options = options or Options()
        # Raises InvalidOption before any network activity
        if sample_rate is None:
            sample_rate = getattr(audio, "sample_rate", None) or options.sample_rate
        options = options.with_sample_rate(sample_rate)
        content_type = content_type or getattr(audio, "content_type", None) or CONTENT_TYPE_FLAC
        if isinstance(audio, (bytes, bytearray, memoryview)):
            audio = iterate_bytes(bytes(audio), self.chunk_size)

        session = self.create_session(options, content_type)
        self.sessions.add(session)
        self.logger.info(f"Start streaming: session={session.id}, {content_type}; rate={options.sample_rate}")
        if self.debug:
            self.logger.info(f"Upstream query: {session.encoder.query_string()}")

        try:
            self._transition(session, StreamState.CONNECTING)
            session.producer_task = asyncio.create_task(self._produce(session, audio))
            session.upload_task = asyncio.create_task(self._upload(session))
            session.download_task = asyncio.create_task(self._download(session))

            while True:
                if session.stop_requested and session.events.empty():
                    event = EndOfStreamEvent()
                else:
                    event = await session.events.get()
                if self.debug:
                    self.logger.info(f"Event: {event}")

                if isinstance(event, ErrorEvent):
                    session.error = event
                    self._transition(session, StreamState.CLOSED)
                    await self._call_hook(self._on_error, event)
                    yield event
                    yield EndOfStreamEvent()
                    return

                elif isinstance(event, EndOfStreamEvent):
                    self._transition(session, StreamState.CLOSED)
                    yield event
                    return

                elif isinstance(event, PartialEvent):
                    if not options.interim or not event.alternatives:
                        continue
                    session.partial_count += 1
                    await self._call_hook(self._on_partial, event)
                    yield event

                elif isinstance(event, FinalEvent):
                    session.final_count += 1
                    await self._call_hook(self._on_final, event)
                    yield event
                    if not options.continuous:
                        # Single utterance mode ends at the first final
                        self._transition(session, StreamState.CLOSED)
                        yield EndOfStreamEvent()
                        return

        finally:
            await self._teardown(session)

    async def transcribe(
        self,
        audio: AudioInput,
        sample_rate: int = None,
        options: Options = None,
        *,
        content_type: str = None
    ) -> StreamResult:
        result = StreamResult()
        async for event in self.stream(audio, sample_rate, options, content_type=content_type):
            if isinstance(event, FinalEvent):
                result.finals.append(event)
            elif isinstance(event, PartialEvent):
                result.partial_count += 1
            elif isinstance(event, ErrorEvent):
                result.error = event
        return result

    def stop(self):
        for session in list(self.sessions):
            if session.state == StreamState.CLOSED:
                continue
            self.logger.info(f"Stop requested: session={session.id}")
            session.stop_requested = True
            session.feeder.abort(ConduitClosed(f"Session {session.id} is stopped"))
            for t in session.tasks:
                t.cancel()
            # Wakes a caller waiting for events. A full queue ends once drained.
            if not session.events.full():
                session.events.put_nowait(EndOfStreamEvent())

    async def close(self):
        self.stop()
        await self.http_client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
