import asyncio
import importlib
import json
import logging
import sys
from pathlib import Path
import httpx
import numpy as np
import pytest
import soundfile

from gstt.cli import build_parser, options_from_args, format_event, run, main, EXIT_CODES
from gstt.errors import ErrorKind
from gstt.events import Alternative, PartialEvent, FinalEvent, EndOfStreamEvent
from gstt.options import OutputEncoding, ProfanityFilter, DEFAULT_USER_AGENT
from gstt.stream import SpeechStreamClient


class ScriptedServer(httpx.AsyncBaseTransport):
    def __init__(self, down_body: bytes, down_status: int = 200):
        self.down_body = down_body
        self.down_status = down_status
        self.uploaded = b""
        self.up_headers = None
        self.upload_done = asyncio.Event()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/up"):
            self.up_headers = request.headers
            async for chunk in request.stream:
                self.uploaded += chunk
            self.upload_done.set()
            return httpx.Response(200)
        return httpx.Response(self.down_status, content=self.body())

    async def body(self):
        await self.upload_done.wait()
        yield self.down_body


@pytest.fixture
def flac_path(tmp_path: Path) -> Path:
    path = tmp_path / "speech.flac"
    soundfile.write(str(path), np.zeros(8000, dtype=np.int16), 16000, format="FLAC", subtype="PCM_16")
    return path


def test_options_from_args():
    args = build_parser().parse_args([
        "--key", "k",
        "--output", "json",
        "--language", "en-US",
        "--continuous",
        "--interim",
        "--max-alts", "3",
        "--pfilter", "1",
    ])
    options = options_from_args(args)

    assert options.api_key == "k"
    assert options.output == OutputEncoding.TEXT
    assert options.language == "en-US"
    assert options.continuous is True
    assert options.interim is True
    assert options.max_alternatives == 3
    assert options.profanity_filter == ProfanityFilter.MEDIUM
    assert options.user_agent == DEFAULT_USER_AGENT


def test_flag_defaults(monkeypatch):
    monkeypatch.setenv("GSTT_API_KEY", "from-env")
    options = options_from_args(build_parser().parse_args([]))

    assert options.api_key == "from-env"
    assert options.output == OutputEncoding.BINARY
    assert options.language == "null"
    assert options.max_alternatives == 1
    assert options.profanity_filter == ProfanityFilter.STRICT


@pytest.mark.parametrize("argv", [["--max-alts", "many"], ["--pfilter", "x"], ["--rate", "0"]])
def test_invalid_option_exit_code(argv):
    assert main(argv) == EXIT_CODES[ErrorKind.INVALID_OPTION]


def test_format_event():
    assert format_event(PartialEvent((Alternative("hel"),))) == "[partial] hel"
    assert format_event(FinalEvent((Alternative("hello", 0.912), Alternative("yellow")))) == "hello (0.91)\nyellow"
    assert format_event(EndOfStreamEvent()) is None


@pytest.mark.asyncio
async def test_run_transcribes_file(flac_path, capsys):
    body = json.dumps({"result": [{"alternative": [{"transcript": "hello", "confidence": 0.5}], "final": True}]}).encode() + b"\n"
    server = ScriptedServer(body)
    args = build_parser().parse_args(["--file", str(flac_path), "--output", "json", "--key", "k"])

    code = await run(args, options_from_args(args), client=SpeechStreamClient(transport=server))

    assert code == 0
    assert capsys.readouterr().out == "hello (0.50)\n"
    assert server.up_headers["Content-Type"] == "audio/x-flac; rate=16000"
    assert server.uploaded == flac_path.read_bytes()


@pytest.mark.asyncio
async def test_run_returns_transport_exit_code(flac_path):
    server = ScriptedServer(b"", down_status=502)
    args = build_parser().parse_args(["--file", str(flac_path), "--key", "k"])

    code = await run(args, options_from_args(args), client=SpeechStreamClient(transport=server))

    assert code == EXIT_CODES[ErrorKind.TRANSPORT]


def test_missing_file_exit_code(tmp_path: Path):
    code = main(["--file", str(tmp_path / "nothing.flac"), "--key", "k"])
    assert code == EXIT_CODES[ErrorKind.SOURCE_READ]


@pytest.fixture
def without_pyaudio(monkeypatch):
    monkeypatch.setitem(sys.modules, "pyaudio", None)
    monkeypatch.delitem(sys.modules, "gstt.audio.microphone", raising=False)


def test_mic_without_pyaudio_exit_code(without_pyaudio, caplog):
    code = main(["--mic", "--key", "k"])

    assert code == EXIT_CODES[ErrorKind.SOURCE_READ]
    assert "gstt[mic]" in caplog.text


def test_missing_pyaudio_is_quiet_for_file_input(without_pyaudio, monkeypatch, caplog):
    monkeypatch.delitem(sys.modules, "gstt.audio")
    with caplog.at_level(logging.DEBUG, logger="gstt.audio"):
        audio = importlib.import_module("gstt.audio")

    assert not hasattr(audio, "MicrophoneSource")
    assert [r for r in caplog.records if r.levelno >= logging.WARNING] == []
    assert "PyAudio is not found" in caplog.text
