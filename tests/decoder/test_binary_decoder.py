import struct
import pytest

from gstt.decoder import BinaryResponseDecoder, TextResponseDecoder, create_decoder, frame
from gstt.decoder.proto import (
    SpeechRecognitionEvent,
    SpeechRecognitionResult,
    SpeechRecognitionAlternative,
)
from gstt.errors import DecodeError, ErrorKind
from gstt.events import PartialEvent, FinalEvent, EndOfStreamEvent, ErrorEvent
from gstt.options import OutputEncoding


def final_unit(*transcripts, confidence=0.9) -> bytes:
    return frame(SpeechRecognitionEvent(result=[
        SpeechRecognitionResult(
            alternative=[SpeechRecognitionAlternative(transcript=t, confidence=confidence) for t in transcripts],
            final=True
        )
    ]))


def partial_unit(transcript: str, stability: float = 0.01) -> bytes:
    return frame(SpeechRecognitionEvent(result=[
        SpeechRecognitionResult(
            alternative=[SpeechRecognitionAlternative(transcript=transcript)],
            stability=stability
        )
    ]))


def test_decode_final():
    decoder = BinaryResponseDecoder()
    events = decoder.feed(final_unit("hello world", "hello word"))

    assert len(events) == 1
    event = events[0]
    assert isinstance(event, FinalEvent)
    assert [a.transcript for a in event.alternatives] == ["hello world", "hello word"]
    assert event.confidence == pytest.approx(0.9)
    assert decoder.unit_count == 1


def test_decode_partial_without_confidence():
    events = BinaryResponseDecoder().feed(partial_unit("hel", stability=0.5))

    assert isinstance(events[0], PartialEvent)
    assert events[0].transcript == "hel"
    assert events[0].alternatives[0].confidence is None
    assert events[0].stability == pytest.approx(0.5)


def test_units_split_across_reads():
    data = partial_unit("hello") + final_unit("hello there")
    decoder = BinaryResponseDecoder()

    events = []
    for i in range(len(data)):
        events.extend(decoder.feed(data[i:i + 1]))
        if i < len(partial_unit("hello")) - 1:
            # Nothing is emitted before the first unit is complete
            assert events == []

    assert [type(e) for e in events] == [PartialEvent, FinalEvent]
    assert decoder.finish() == [EndOfStreamEvent()]


def test_several_units_in_one_read():
    data = frame(SpeechRecognitionEvent()) + partial_unit("a") + final_unit("a b")
    events = BinaryResponseDecoder().feed(data)

    assert events[0] == PartialEvent()
    assert isinstance(events[1], PartialEvent)
    assert isinstance(events[2], FinalEvent)


def test_interim_results_are_joined():
    data = frame(SpeechRecognitionEvent(result=[
        SpeechRecognitionResult(alternative=[SpeechRecognitionAlternative(transcript="how are")], stability=0.9),
        SpeechRecognitionResult(alternative=[SpeechRecognitionAlternative(transcript=" you")], stability=0.01),
    ]))
    event = BinaryResponseDecoder().feed(data)[0]

    assert isinstance(event, PartialEvent)
    assert event.transcript == "how are you"
    assert event.stability == pytest.approx(0.9)


def test_non_success_status_is_remote_error():
    data = frame(SpeechRecognitionEvent(status=1))
    decoder = BinaryResponseDecoder()
    event = decoder.feed(data)[0]

    assert isinstance(event, ErrorEvent)
    assert event.kind == ErrorKind.REMOTE
    assert "STATUS_NO_SPEECH" in event.message
    assert decoder.failed is False


def test_malformed_unit_is_terminal():
    malformed = struct.pack(">I", 4) + b"\x12\x05ab"
    decoder = BinaryResponseDecoder()
    events = decoder.feed(partial_unit("ok") + malformed + final_unit("never"))

    assert isinstance(events[0], PartialEvent)
    assert isinstance(events[1], ErrorEvent)
    assert events[1].kind == ErrorKind.DECODE
    assert len(events) == 2
    assert decoder.failed is True

    with pytest.raises(DecodeError):
        decoder.feed(final_unit("again"))
    assert decoder.finish() == []


def test_oversized_unit_is_rejected():
    decoder = BinaryResponseDecoder(max_unit_size=16)
    events = decoder.feed(struct.pack(">I", 17) + b"x" * 17)

    assert events[0].kind == ErrorKind.DECODE
    assert decoder.failed is True


def test_finish_with_pending_bytes():
    decoder = BinaryResponseDecoder()
    assert decoder.feed(final_unit("cut")[:-2]) == []

    events = decoder.finish()
    assert len(events) == 1
    assert events[0].kind == ErrorKind.DECODE


def test_finish_on_empty_body():
    assert BinaryResponseDecoder().finish() == [EndOfStreamEvent()]


def test_create_decoder():
    assert isinstance(create_decoder(OutputEncoding.BINARY), BinaryResponseDecoder)
    assert isinstance(create_decoder(OutputEncoding.TEXT), TextResponseDecoder)
    assert isinstance(create_decoder("json"), TextResponseDecoder)
