import logging
import struct
from typing import Optional
from google.protobuf.message import DecodeError as ProtobufDecodeError, Message
from ..errors import DecodeError, RemoteError
from ..events import ErrorEvent, RecognitionEvent
from .base import ResponseDecoder
from .models import RecognitionAlternative, RecognitionResult
from .proto import SpeechRecognitionEvent, STATUS_SUCCESS, STATUS_NAMES

logger = logging.getLogger(__name__)

LENGTH_PREFIX = struct.Struct(">I")
MAX_UNIT_SIZE = 1024 * 1024


def frame(message: Message) -> bytes:
    payload = message.SerializeToString()
    return LENGTH_PREFIX.pack(len(payload)) + payload


class BinaryResponseDecoder(ResponseDecoder):
    def __init__(self, max_unit_size: int = MAX_UNIT_SIZE):
        super().__init__()
        self.max_unit_size = max_unit_size

    def next_unit(self) -> Optional[bytes]:
        if len(self.buffer) < LENGTH_PREFIX.size:
            return None

        length, = LENGTH_PREFIX.unpack_from(self.buffer)
        if length > self.max_unit_size:
            raise DecodeError(f"Unit length {length} exceeds limit {self.max_unit_size}")

        end = LENGTH_PREFIX.size + length
        if len(self.buffer) < end:
            return None

        unit = bytes(self.buffer[LENGTH_PREFIX.size:end])
        del self.buffer[:end]
        return unit

    def decode_unit(self, unit: bytes) -> RecognitionEvent:
        message = SpeechRecognitionEvent()
        try:
            message.ParseFromString(unit)
        except ProtobufDecodeError as pberr:
            raise DecodeError(f"Malformed protobuf unit #{self.unit_count + 1}: {pberr}", cause=pberr)

        if message.status != STATUS_SUCCESS:
            status_name = STATUS_NAMES.get(message.status, str(message.status))
            logger.warning(f"Recognition service reported {status_name}")
            return ErrorEvent.from_exception(
                RemoteError(f"Recognition service reported {status_name}", status=message.status)
            )

        results = [
            RecognitionResult(
                alternative=[
                    RecognitionAlternative(
                        transcript=a.transcript,
                        confidence=a.confidence if a.HasField("confidence") else None
                    ) for a in r.alternative
                ],
                final=r.final,
                stability=r.stability if r.HasField("stability") else None
            ) for r in message.result
        ]
        return self.to_event(results)
