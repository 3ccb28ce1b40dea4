from abc import ABC, abstractmethod
import asyncio
import logging
from pathlib import Path
from typing import AsyncIterator, Union
import aiofiles
import numpy as np
import soundfile
from ..errors import SourceReadError
from ..options import DEFAULT_SAMPLE_RATE
from ..stream.encoder import CONTENT_TYPE_FLAC, CONTENT_TYPE_L16

logger = logging.getLogger(__name__)


class AudioSource(ABC):
    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE, content_type: str = CONTENT_TYPE_FLAC, chunk_size: int = 1024):
        self.sample_rate = sample_rate
        self.content_type = content_type
        self.chunk_size = chunk_size

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[bytes]:
        pass


class BytesSource(AudioSource):
    def __init__(self, data: bytes, sample_rate: int = DEFAULT_SAMPLE_RATE, content_type: str = CONTENT_TYPE_FLAC, chunk_size: int = 1024):
        super().__init__(sample_rate=sample_rate, content_type=content_type, chunk_size=chunk_size)
        self.data = bytes(data)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for offset in range(0, len(self.data), self.chunk_size):
            yield self.data[offset:offset + self.chunk_size]


class FileSource(AudioSource):
    """
    Audio file read in chunks.

    FLAC files are uploaded as they are. Any other format libsndfile can read
    (WAV, OGG, AIFF...) is decoded to 16-bit little-endian mono PCM and uploaded
    as `audio/l16`.
    """

    def __init__(self, path: Union[str, Path], chunk_size: int = 1024):
        self.path = str(path)
        try:
            info = soundfile.info(self.path)
        except Exception as ex:
            raise SourceReadError(f"Cannot parse audio file {self.path}: {ex}", cause=ex)

        self.format = info.format
        self.channels = info.channels
        self.duration = info.duration
        super().__init__(
            sample_rate=info.samplerate,
            content_type=CONTENT_TYPE_FLAC if self.is_flac else CONTENT_TYPE_L16,
            chunk_size=chunk_size
        )
        logger.info(f"Done parsing file: {self.path} format={self.format} sample_rate={self.sample_rate} duration={self.duration:.2f}s")

    @property
    def is_flac(self) -> bool:
        return self.format == "FLAC"

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self.is_flac:
            async with aiofiles.open(self.path, "rb") as f:
                while True:
                    chunk = await f.read(self.chunk_size)
                    if not chunk:
                        break
                    yield chunk

        else:
            # 2 bytes per mono 16-bit frame
            blocksize = max(1, self.chunk_size // 2)
            with soundfile.SoundFile(self.path) as f:
                while True:
                    # Decoding is blocking, keep it off the event loop
                    block = await asyncio.to_thread(f.read, blocksize, dtype="int16", always_2d=True)
                    if len(block) == 0:
                        break
                    if block.shape[1] > 1:
                        block = block.mean(axis=1)
                    else:
                        block = block[:, 0]
                    yield np.asarray(block).astype("<i2").tobytes()


class StdinSource(AudioSource):
    """Reads audio piped to stdin, e.g. `rec -t flac - | gstt`."""

    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE, content_type: str = CONTENT_TYPE_FLAC, chunk_size: int = 1024, stream=None):
        super().__init__(sample_rate=sample_rate, content_type=content_type, chunk_size=chunk_size)
        self.stream = stream or aiofiles.stdin_bytes

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.stream.read(self.chunk_size)
            if not chunk:
                logger.info("Done reading from stdin")
                break
            logger.debug(f"Read from stdin: {len(chunk)} bytes")
            yield chunk
