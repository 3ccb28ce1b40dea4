from .errors import ErrorKind, GSTTError, InvalidOption, SourceReadError, TransportError, DecodeError, ConduitClosed, RemoteError
from .events import Alternative, PartialEvent, FinalEvent, EndOfStreamEvent, ErrorEvent, RecognitionEvent
from .options import Options, OptionsBuilder, OutputEncoding, ProfanityFilter, DEFAULT_USER_AGENT, DEFAULT_SAMPLE_RATE
from .stream import SpeechStreamClient, StreamResult, StreamState, UploadFeeder, FrameEncoder
