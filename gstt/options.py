from dataclasses import dataclass, asdict, replace
from enum import Enum, IntEnum
import logging
from typing import Any, Dict, Union
from .errors import InvalidOption

logger = logging.getLogger(__name__)

UP_URL = "https://www.google.com/speech-api/full-duplex/v1/up"
DOWN_URL = "https://www.google.com/speech-api/full-duplex/v1/down"
DEFAULT_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
DEFAULT_SAMPLE_RATE = 16000
DEFAULT_LANGUAGE = "null"
# Both leave language detection to the server, which only understands "null"
AUTO_LANGUAGES = ("null", "auto")


class OutputEncoding(str, Enum):
    BINARY = "pb"
    TEXT = "json"

    @classmethod
    def parse(cls, value: Union[str, "OutputEncoding", None]) -> "OutputEncoding":
        if isinstance(value, OutputEncoding):
            return value
        if value and value.strip().lower() in ("json", "text"):
            return cls.TEXT
        return cls.BINARY


class ProfanityFilter(IntEnum):
    OFF = 0
    MEDIUM = 1
    STRICT = 2


@dataclass(frozen=True)
class Options:
    language: str = DEFAULT_LANGUAGE
    continuous: bool = False
    interim: bool = False
    max_alternatives: int = 1
    profanity_filter: ProfanityFilter = ProfanityFilter.STRICT
    output: OutputEncoding = OutputEncoding.BINARY
    api_key: str = ""
    user_agent: str = DEFAULT_USER_AGENT
    sample_rate: int = DEFAULT_SAMPLE_RATE

    def with_sample_rate(self, sample_rate: int) -> "Options":
        sample_rate = _parse_positive_int("sample_rate", sample_rate)
        if sample_rate == self.sample_rate:
            return self
        return replace(self, sample_rate=sample_rate)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["profanity_filter"] = int(self.profanity_filter)
        d["output"] = self.output.value
        return d

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "Options":
        return OptionsBuilder().apply(**values).build()


def _parse_non_negative_int(name: str, value: Union[int, str]) -> int:
    if isinstance(value, bool):
        raise InvalidOption(name, value)
    if isinstance(value, int):
        num = value
    else:
        try:
            num = int(str(value).strip())
        except (TypeError, ValueError) as ex:
            raise InvalidOption(name, value) from ex
    if num < 0:
        raise InvalidOption(name, value, f"Option '{name}' must be a non-negative integer: {value!r}")
    return num


def _parse_positive_int(name: str, value: Union[int, str]) -> int:
    num = _parse_non_negative_int(name, value)
    if num == 0:
        raise InvalidOption(name, value, f"Option '{name}' must be a positive integer: {value!r}")
    return num


class OptionsBuilder:
    """
    Accumulates recognition options one setter at a time.

    Each setter validates its own value and raises `InvalidOption` right away,
    so a bad value never reaches the network. `build()` returns an immutable
    `Options` and can be called any number of times.
    """

    def __init__(self):
        self._values: Dict[str, Any] = {}

    def language(self, value: str) -> "OptionsBuilder":
        if not value or value.strip().lower() in AUTO_LANGUAGES:
            value = DEFAULT_LANGUAGE
        self._values["language"] = value
        return self

    def continuous(self, value: bool = True) -> "OptionsBuilder":
        self._values["continuous"] = bool(value)
        return self

    def interim(self, value: bool = True) -> "OptionsBuilder":
        self._values["interim"] = bool(value)
        return self

    def max_alternatives(self, value: Union[int, str]) -> "OptionsBuilder":
        self._values["max_alternatives"] = _parse_non_negative_int("max_alternatives", value)
        return self

    def profanity_filter(self, value: Union[int, str, ProfanityFilter]) -> "OptionsBuilder":
        num = _parse_non_negative_int("profanity_filter", value)
        try:
            self._values["profanity_filter"] = ProfanityFilter(num)
        except ValueError as ex:
            raise InvalidOption("profanity_filter", value, f"Option 'profanity_filter' must be 0, 1 or 2: {value!r}") from ex
        return self

    def output(self, value: Union[str, OutputEncoding]) -> "OptionsBuilder":
        self._values["output"] = OutputEncoding.parse(value)
        return self

    def api_key(self, value: str) -> "OptionsBuilder":
        self._values["api_key"] = value or ""
        return self

    def user_agent(self, value: str) -> "OptionsBuilder":
        self._values["user_agent"] = value or DEFAULT_USER_AGENT
        return self

    def sample_rate(self, value: Union[int, str]) -> "OptionsBuilder":
        self._values["sample_rate"] = _parse_positive_int("sample_rate", value)
        return self

    def apply(self, **values) -> "OptionsBuilder":
        for name, value in values.items():
            if value is None:
                continue
            setter = getattr(self, name, None)
            if name.startswith("_") or name in ("apply", "build") or not callable(setter):
                raise InvalidOption(name, value, f"Unknown option: {name}")
            setter(value)
        return self

    def build(self) -> Options:
        options = Options(**self._values)
        logger.debug(f"Options built: language={options.language}, continuous={options.continuous}, interim={options.interim}, output={options.output.value}")
        return options
