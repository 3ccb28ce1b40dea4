import json
import pytest

from gstt.decoder import TextResponseDecoder
from gstt.errors import DecodeError, ErrorKind
from gstt.events import PartialEvent, FinalEvent, EndOfStreamEvent, ErrorEvent


def line(payload: dict) -> bytes:
    return json.dumps(payload).encode("utf-8") + b"\n"


EMPTY = line({"result": []})
PARTIAL = line({"result": [{"alternative": [{"transcript": "good"}], "stability": 0.01}], "result_index": 0})
FINAL = line({
    "result": [{
        "alternative": [
            {"transcript": "good morning", "confidence": 0.95},
            {"transcript": "good mourning"}
        ],
        "final": True
    }],
    "result_index": 0
})


def test_decode_lines():
    decoder = TextResponseDecoder()
    events = decoder.feed(EMPTY + PARTIAL + FINAL)

    assert events[0] == PartialEvent()
    assert isinstance(events[1], PartialEvent)
    assert events[1].transcript == "good"
    assert events[1].stability == pytest.approx(0.01)

    final = events[2]
    assert isinstance(final, FinalEvent)
    assert final.transcript == "good morning"
    assert final.confidence == pytest.approx(0.95)
    assert final.alternatives[1].confidence is None


def test_partial_lines_are_buffered():
    decoder = TextResponseDecoder()
    assert decoder.feed(FINAL[:10]) == []
    assert decoder.feed(FINAL[10:-1]) == []

    events = decoder.feed(FINAL[-1:])
    assert len(events) == 1
    assert isinstance(events[0], FinalEvent)


def test_blank_lines_are_skipped():
    events = TextResponseDecoder().feed(b"\n\r\n" + FINAL + b"  \n")
    assert len(events) == 1


def test_last_line_without_newline():
    decoder = TextResponseDecoder()
    assert decoder.feed(FINAL.rstrip(b"\n")) == []

    events = decoder.finish()
    assert isinstance(events[0], FinalEvent)
    assert events[1] == EndOfStreamEvent()


def test_unknown_fields_are_ignored():
    events = TextResponseDecoder().feed(line({"result": [], "foo": "bar"}))
    assert events == [PartialEvent()]


@pytest.mark.parametrize("bad", [b"not json\n", b"[1, 2]\n", b'{"result": "nope"}\n'])
def test_malformed_line_is_terminal(bad):
    decoder = TextResponseDecoder()
    events = decoder.feed(PARTIAL + bad + FINAL)

    assert isinstance(events[0], PartialEvent)
    assert isinstance(events[1], ErrorEvent)
    assert events[1].kind == ErrorKind.DECODE
    assert len(events) == 2
    assert isinstance(events[1].to_exception(), DecodeError)

    with pytest.raises(DecodeError):
        decoder.feed(FINAL)
