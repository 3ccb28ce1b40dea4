from .encoder import FrameEncoder, UpstreamRequest, DownstreamRequest, CONTENT_TYPE_FLAC, CONTENT_TYPE_L16
from .feeder import UploadFeeder
from .client import SpeechStreamClient, ConnectionSession, StreamState, StreamResult
