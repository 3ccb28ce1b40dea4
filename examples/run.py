import asyncio
import logging
import sys
from gstt import SpeechStreamClient, OptionsBuilder, PartialEvent, FinalEvent, ErrorEvent
from gstt.audio import FileSource

GOOGLE_API_KEY = "YOUR API KEY"

# Configure root logger
logger = logging.getLogger()
logger.setLevel(logging.INFO)
log_format = logging.Formatter("[%(levelname)s] %(asctime)s : %(message)s")
streamHandler = logging.StreamHandler()
streamHandler.setFormatter(log_format)
logger.addHandler(streamHandler)

options = OptionsBuilder() \
    .api_key(GOOGLE_API_KEY) \
    .language("en-US") \
    .interim() \
    .max_alternatives(3) \
    .output("json") \
    .build()


async def main(path: str):
    source = FileSource(path)

    async with SpeechStreamClient(debug=True) as client:
        async for event in client.stream(source, source.sample_rate, options):
            if isinstance(event, PartialEvent):
                print(f"... {event.transcript}")
            elif isinstance(event, FinalEvent):
                for alt in event.alternatives:
                    print(f"{alt.transcript} ({alt.confidence})")
            elif isinstance(event, ErrorEvent):
                raise event.to_exception()


asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "hello.flac"))
