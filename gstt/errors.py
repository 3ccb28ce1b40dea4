from enum import Enum


class ErrorKind(str, Enum):
    INVALID_OPTION = "invalid_option"
    SOURCE_READ = "source_read"
    TRANSPORT = "transport"
    DECODE = "decode"
    CONDUIT_CLOSED = "conduit_closed"
    REMOTE = "remote"


class GSTTError(Exception):
    kind: ErrorKind = None

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class InvalidOption(GSTTError):
    kind = ErrorKind.INVALID_OPTION

    def __init__(self, name: str, value, message: str = None):
        super().__init__(message or f"Invalid value for option '{name}': {value!r}")
        self.name = name
        self.value = value


class SourceReadError(GSTTError):
    kind = ErrorKind.SOURCE_READ


class TransportError(GSTTError):
    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, cause: Exception = None, status_code: int = None):
        super().__init__(message, cause)
        self.status_code = status_code


class DecodeError(GSTTError):
    kind = ErrorKind.DECODE


class ConduitClosed(GSTTError):
    kind = ErrorKind.CONDUIT_CLOSED

    def __init__(self, message: str = "Upload conduit is closed", cause: Exception = None):
        super().__init__(message, cause)


class RemoteError(GSTTError):
    kind = ErrorKind.REMOTE

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status


ERROR_CLASSES = {
    ErrorKind.SOURCE_READ: SourceReadError,
    ErrorKind.TRANSPORT: TransportError,
    ErrorKind.DECODE: DecodeError,
    ErrorKind.CONDUIT_CLOSED: ConduitClosed,
}
