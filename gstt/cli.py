import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional
from .errors import ErrorKind, GSTTError, InvalidOption, SourceReadError
from .events import PartialEvent, FinalEvent, ErrorEvent, RecognitionEvent
from .options import Options, OptionsBuilder, DEFAULT_USER_AGENT, DEFAULT_SAMPLE_RATE
from .stream import SpeechStreamClient

logger = logging.getLogger(__name__)

API_KEY_ENV = "GSTT_API_KEY"

EXIT_CODES = {
    ErrorKind.INVALID_OPTION: 2,
    ErrorKind.SOURCE_READ: 3,
    ErrorKind.TRANSPORT: 4,
    ErrorKind.DECODE: 5,
    ErrorKind.REMOTE: 6,
    ErrorKind.CONDUIT_CLOSED: 4,
}
EXIT_INTERRUPTED = 130

USAGE = """
    gstt [OPTION]... --key $KEY --output [pb|json]
    gstt [OPTION]... --key $KEY --interim --continuous --output [pb|json]
"""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gstt", usage=USAGE, description="Stream audio to Google's full-duplex speech recognition endpoint.")
    p.add_argument("--verbose", action="store_true", help="verbose logging")
    p.add_argument("--file", default="", help="path of audio file to transcribe (stdin is used if omitted)")
    p.add_argument("--mic", action="store_true", help="capture from the default microphone with PyAudio")
    p.add_argument("--rate", default=str(DEFAULT_SAMPLE_RATE), help="sample rate of stdin or microphone input")
    p.add_argument("--key", default=os.getenv(API_KEY_ENV, ""), help=f"API key built into Chromium (default: ${API_KEY_ENV})")
    p.add_argument("--output", default="", help="transcriptions output format ('pb' for binary or 'json' for text)")
    p.add_argument("--language", default="null", help="language of the recording, as an IETF language tag, e.g. 'en-US' or 'ru'")
    p.add_argument("--continuous", action="store_true", help="keep the stream open and transcribing as long as there is no silence")
    p.add_argument("--interim", action="store_true", help="send back results before they are finished")
    p.add_argument("--max-alts", default="1", help="how many possible transcriptions to return")
    p.add_argument("--pfilter", default="2", help="profanity filter ('0'=off, '1'=medium, '2'=strict)")
    p.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="user-agent for spoofing")
    return p


def options_from_args(args: argparse.Namespace) -> Options:
    builder = OptionsBuilder()
    if args.key:
        builder.api_key(args.key)
    if args.output:
        builder.output(args.output)
    if args.language:
        builder.language(args.language)
    if args.continuous:
        builder.continuous(True)
    if args.interim:
        builder.interim(True)
    if args.max_alts != "":
        builder.max_alternatives(args.max_alts)
    if args.pfilter != "":
        builder.profanity_filter(args.pfilter)
    builder.sample_rate(args.rate)
    builder.user_agent(args.user_agent)
    return builder.build()


def configure_logging(verbose: bool):
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    log_format = logging.Formatter("[%(levelname)s] %(asctime)s : %(message)s")
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(log_format)
    root.addHandler(stream_handler)


def format_event(event: RecognitionEvent) -> Optional[str]:
    if isinstance(event, PartialEvent):
        return f"[partial] {event.transcript}"
    elif isinstance(event, FinalEvent):
        lines = []
        for alt in event.alternatives:
            if alt.confidence is not None:
                lines.append(f"{alt.transcript} ({alt.confidence:.2f})")
            else:
                lines.append(alt.transcript)
        return "\n".join(lines)
    return None


def create_source(args: argparse.Namespace, options: Options):
    from .audio import FileSource, StdinSource

    if args.file:
        return FileSource(args.file)
    if args.mic:
        try:
            from .audio.microphone import MicrophoneSource
        except ModuleNotFoundError as mnferr:
            if "pyaudio" not in str(mnferr):
                raise
            raise SourceReadError("PyAudio is required for --mic. Install PortAudio and `pip install gstt[mic]`", cause=mnferr)
        return MicrophoneSource(sample_rate=options.sample_rate)
    return StdinSource(sample_rate=options.sample_rate)


async def run(args: argparse.Namespace, options: Options, client: SpeechStreamClient = None) -> int:
    source = create_source(args, options)
    error: Optional[ErrorEvent] = None

    async with (client or SpeechStreamClient(debug=args.verbose)) as stt:
        async for event in stt.stream(source, source.sample_rate, options):
            if isinstance(event, ErrorEvent):
                error = event
                logger.error(f"Recognition failed ({event.kind.value}): {event.message}")
                continue
            text = format_event(event)
            if text is not None:
                print(text, flush=True)

    if error:
        return EXIT_CODES.get(error.kind, 1)
    return 0


def main(argv: List[str] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        options = options_from_args(args)
    except InvalidOption as ioex:
        logger.error(str(ioex))
        return EXIT_CODES[ErrorKind.INVALID_OPTION]

    try:
        return asyncio.run(run(args, options))
    except GSTTError as gerr:
        logger.error(str(gerr))
        return EXIT_CODES.get(gerr.kind, 1)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_INTERRUPTED
