from dataclasses import dataclass, field
from typing import Optional, Tuple, Union
from .errors import ErrorKind, GSTTError, RemoteError, ERROR_CLASSES


@dataclass(frozen=True)
class Alternative:
    transcript: str
    confidence: Optional[float] = None


@dataclass(frozen=True)
class PartialEvent:
    alternatives: Tuple[Alternative, ...] = ()
    stability: Optional[float] = None
    type: str = field(default="partial", init=False)

    @property
    def transcript(self) -> str:
        return self.alternatives[0].transcript if self.alternatives else ""


@dataclass(frozen=True)
class FinalEvent:
    alternatives: Tuple[Alternative, ...] = ()
    type: str = field(default="final", init=False)

    @property
    def transcript(self) -> str:
        return self.alternatives[0].transcript if self.alternatives else ""

    @property
    def confidence(self) -> Optional[float]:
        return self.alternatives[0].confidence if self.alternatives else None


@dataclass(frozen=True)
class EndOfStreamEvent:
    type: str = field(default="end", init=False)


@dataclass(frozen=True)
class ErrorEvent:
    kind: ErrorKind
    message: str
    cause: Optional[BaseException] = field(default=None, compare=False)
    type: str = field(default="error", init=False)

    @classmethod
    def from_exception(cls, ex: GSTTError) -> "ErrorEvent":
        return cls(kind=ex.kind, message=ex.message, cause=ex)

    def to_exception(self) -> GSTTError:
        if isinstance(self.cause, GSTTError):
            return self.cause
        if self.kind == ErrorKind.REMOTE:
            return RemoteError(self.message)
        error_class = ERROR_CLASSES.get(self.kind, GSTTError)
        return error_class(self.message, cause=self.cause)


RecognitionEvent = Union[PartialEvent, FinalEvent, EndOfStreamEvent, ErrorEvent]
