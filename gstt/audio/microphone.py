import asyncio
import logging
from typing import AsyncIterator
import pyaudio
from ..options import DEFAULT_SAMPLE_RATE
from ..stream.encoder import CONTENT_TYPE_L16
from .source import AudioSource

logger = logging.getLogger(__name__)


class MicrophoneSource(AudioSource):
    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE, device_index: int = -1, channels: int = 1, chunk_size: int = 512):
        super().__init__(sample_rate=sample_rate, content_type=CONTENT_TYPE_L16, chunk_size=chunk_size)
        self.device_index = device_index
        self.channels = channels
        self.is_listening = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        p = pyaudio.PyAudio()
        pyaudio_stream = p.open(
            rate=self.sample_rate,
            channels=self.channels,
            format=pyaudio.paInt16,
            input=True,
            frames_per_buffer=self.chunk_size,
            input_device_index=self.device_index if self.device_index >= 0 else None
        )
        self.is_listening = True
        logger.info(f"Microphone opened: device={self.device_index}, rate={self.sample_rate}")

        try:
            while self.is_listening:
                # Blocking read in a worker thread to keep the upload and download moving
                yield await asyncio.to_thread(pyaudio_stream.read, self.chunk_size, exception_on_overflow=False)
        finally:
            pyaudio_stream.stop_stream()
            pyaudio_stream.close()
            p.terminate()
            logger.info("PyAudio stream closed.")

    def stop(self):
        self.is_listening = False
