import logging
from .source import AudioSource, BytesSource, FileSource, StdinSource

logger = logging.getLogger(__name__)


try:
    from .microphone import MicrophoneSource
except ModuleNotFoundError as mnferr:
    if "pyaudio" in mnferr.msg:
        logger.debug("PyAudio is not found in this environment. Install PortAudio and `pip install gstt[mic]` to use the microphone.")
    else:
        raise
