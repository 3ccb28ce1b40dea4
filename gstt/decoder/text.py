from typing import Optional
from pydantic import ValidationError
from ..errors import DecodeError
from ..events import RecognitionEvent
from .base import ResponseDecoder
from .models import RecognitionResponse


class TextResponseDecoder(ResponseDecoder):
    """Decodes newline-delimited JSON units (`output=json`)."""

    def next_unit(self) -> Optional[bytes]:
        while True:
            idx = self.buffer.find(b"\n")
            if idx < 0:
                return None
            line = bytes(self.buffer[:idx]).strip()
            del self.buffer[:idx + 1]
            if line:
                return line

    def remaining_unit(self) -> Optional[bytes]:
        # The last unit may come without a trailing newline
        line = bytes(self.buffer).strip()
        self.buffer.clear()
        return line or None

    def decode_unit(self, unit: bytes) -> RecognitionEvent:
        try:
            response = RecognitionResponse.model_validate_json(unit)
        except ValidationError as verr:
            raise DecodeError(f"Malformed JSON unit #{self.unit_count + 1}: {unit[:100]!r}", cause=verr)
        return self.to_event(response.result)
