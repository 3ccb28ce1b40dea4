"""
Message classes for the binary (`output=pb`) response stream.

The schema follows Chromium's `google_streaming_api.proto`. It is registered in
a private descriptor pool at import time, so no generated `_pb2` module is needed.
"""

from google.protobuf import descriptor_pb2, descriptor_pool
from google.protobuf.message_factory import GetMessageClass

PACKAGE = "gstt.speech"

_F = descriptor_pb2.FieldDescriptorProto

STATUS_CODES = [
    ("STATUS_SUCCESS", 0),
    ("STATUS_NO_SPEECH", 1),
    ("STATUS_ABORTED", 2),
    ("STATUS_AUDIO_CAPTURE", 3),
    ("STATUS_NETWORK", 4),
    ("STATUS_NOT_ALLOWED", 5),
    ("STATUS_SERVICE_NOT_ALLOWED", 6),
    ("STATUS_BAD_GRAMMAR", 7),
    ("STATUS_LANGUAGE_NOT_SUPPORTED", 8),
]

ENDPOINTER_EVENTS = [
    ("START_OF_SPEECH", 0),
    ("END_OF_SPEECH", 1),
    ("END_OF_AUDIO", 2),
    ("END_OF_UTTERANCE", 3),
]


def _add_field(message, name: str, number: int, type_: int, label: int = _F.LABEL_OPTIONAL, type_name: str = None):
    f = message.field.add()
    f.name = name
    f.number = number
    f.type = type_
    f.label = label
    if type_name:
        f.type_name = type_name


def _add_enum(message, name: str, values):
    enum = message.enum_type.add()
    enum.name = name
    for value_name, number in values:
        v = enum.value.add()
        v.name = value_name
        v.number = number


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = "gstt/google_streaming_api.proto"
    file_proto.package = PACKAGE
    file_proto.syntax = "proto2"

    alternative = file_proto.message_type.add()
    alternative.name = "SpeechRecognitionAlternative"
    _add_field(alternative, "transcript", 1, _F.TYPE_STRING)
    _add_field(alternative, "confidence", 2, _F.TYPE_FLOAT)

    result = file_proto.message_type.add()
    result.name = "SpeechRecognitionResult"
    _add_field(result, "alternative", 1, _F.TYPE_MESSAGE, _F.LABEL_REPEATED, f".{PACKAGE}.SpeechRecognitionAlternative")
    _add_field(result, "final", 2, _F.TYPE_BOOL)
    _add_field(result, "stability", 3, _F.TYPE_FLOAT)

    event = file_proto.message_type.add()
    event.name = "SpeechRecognitionEvent"
    _add_enum(event, "StatusCode", STATUS_CODES)
    _add_enum(event, "EndpointerEventType", ENDPOINTER_EVENTS)
    _add_field(event, "status", 1, _F.TYPE_ENUM, type_name=f".{PACKAGE}.SpeechRecognitionEvent.StatusCode")
    _add_field(event, "result", 2, _F.TYPE_MESSAGE, _F.LABEL_REPEATED, f".{PACKAGE}.SpeechRecognitionResult")
    _add_field(event, "endpoint", 4, _F.TYPE_ENUM, type_name=f".{PACKAGE}.SpeechRecognitionEvent.EndpointerEventType")

    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())

SpeechRecognitionAlternative = GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.SpeechRecognitionAlternative"))
SpeechRecognitionResult = GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.SpeechRecognitionResult"))
SpeechRecognitionEvent = GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.SpeechRecognitionEvent"))

STATUS_SUCCESS = 0
STATUS_NAMES = {number: name for name, number in STATUS_CODES}
