import asyncio
import logging
from gstt import SpeechStreamClient, OptionsBuilder, PartialEvent, FinalEvent
from gstt.audio.microphone import MicrophoneSource

GOOGLE_API_KEY = "YOUR API KEY"

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s : %(message)s")

options = OptionsBuilder() \
    .api_key(GOOGLE_API_KEY) \
    .language("ja-JP") \
    .continuous() \
    .interim() \
    .build()

client = SpeechStreamClient()
mic = MicrophoneSource(sample_rate=16000)


@client.on_partial
async def on_partial(event: PartialEvent):
    print(f"\r{event.transcript}", end="", flush=True)


@client.on_final
async def on_final(event: FinalEvent):
    print(f"\r{event.transcript}")
    # Say "stop" to finish
    if "stop" in event.transcript.lower():
        mic.stop()


async def main():
    try:
        result = await client.transcribe(mic, mic.sample_rate, options)
        print(f"Transcript: {result.transcript}")
    finally:
        await client.close()


asyncio.run(main())
