from abc import ABC, abstractmethod
import logging
from typing import List, Optional
from ..errors import DecodeError
from ..events import Alternative, PartialEvent, FinalEvent, EndOfStreamEvent, ErrorEvent, RecognitionEvent
from .models import RecognitionResult

logger = logging.getLogger(__name__)


class ResponseDecoder(ABC):
    """
    Incremental decoder for the downstream response body.

    `feed()` accepts arbitrary slices of the body and returns the events of every
    unit completed so far; bytes of an unfinished unit stay buffered. The first
    malformed unit yields an `ErrorEvent` and leaves the decoder failed.
    """

    def __init__(self):
        self.buffer = bytearray()
        self.failed = False
        self.unit_count = 0

    @abstractmethod
    def next_unit(self) -> Optional[bytes]:
        """Remove and return the next complete unit from the buffer, or None."""
        pass

    @abstractmethod
    def decode_unit(self, unit: bytes) -> RecognitionEvent:
        pass

    def remaining_unit(self) -> Optional[bytes]:
        return None

    def feed(self, data: bytes) -> List[RecognitionEvent]:
        if self.failed:
            raise DecodeError("Decoder already failed and does not resynchronize")

        self.buffer.extend(data)
        events = []
        while True:
            try:
                unit = self.next_unit()
                if unit is None:
                    break
                events.append(self.decode_unit(unit))
                self.unit_count += 1
            except Exception as ex:
                events.append(self._fail(ex))
                break

        return events

    def finish(self) -> List[RecognitionEvent]:
        if self.failed:
            return []

        events = []
        try:
            unit = self.remaining_unit()
            if unit is not None:
                events.append(self.decode_unit(unit))
                self.unit_count += 1
        except Exception as ex:
            events.append(self._fail(ex))
            return events

        if self.buffer:
            events.append(self._fail(DecodeError(f"Response ended in the middle of a unit: {len(self.buffer)} bytes pending")))
            return events

        events.append(EndOfStreamEvent())
        return events

    def _fail(self, ex: Exception) -> ErrorEvent:
        self.failed = True
        if not isinstance(ex, DecodeError):
            ex = DecodeError(f"Malformed response unit #{self.unit_count + 1}: {ex}", cause=ex)
        logger.error(f"Failed in decoding response: {ex}")
        return ErrorEvent.from_exception(ex)

    def to_event(self, results: List[RecognitionResult]) -> RecognitionEvent:
        for result in results:
            if result.final:
                return FinalEvent(
                    alternatives=tuple(Alternative(a.transcript, a.confidence) for a in result.alternative)
                )

        if not results:
            return PartialEvent()

        if len(results) == 1:
            return PartialEvent(
                alternatives=tuple(Alternative(a.transcript, a.confidence) for a in results[0].alternative),
                stability=results[0].stability
            )

        # Several interim results are consecutive pieces of one hypothesis
        pieces = [r.alternative[0].transcript.strip() for r in results if r.alternative]
        transcript = " ".join(p for p in pieces if p)
        return PartialEvent(
            alternatives=(Alternative(transcript),) if transcript else (),
            stability=results[0].stability
        )
