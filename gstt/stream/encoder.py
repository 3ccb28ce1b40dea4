from dataclasses import dataclass, field
import logging
import secrets
from typing import AsyncIterable, Dict, List, Optional, Tuple
from urllib.parse import urlencode
from ..options import Options, UP_URL, DOWN_URL

logger = logging.getLogger(__name__)

CONTENT_TYPE_FLAC = "audio/x-flac"
CONTENT_TYPE_L16 = "audio/l16"


@dataclass
class UpstreamRequest:
    url: str
    params: List[Tuple[str, str]]
    headers: Dict[str, str]
    content: Optional[AsyncIterable[bytes]] = None
    method: str = "POST"


@dataclass
class DownstreamRequest:
    url: str
    params: List[Tuple[str, str]]
    headers: Dict[str, str] = field(default_factory=dict)
    method: str = "GET"


def generate_pair() -> str:
    return secrets.token_hex(8)


class FrameEncoder:
    def __init__(
        self,
        options: Options,
        content_type: str = CONTENT_TYPE_FLAC,
        *,
        pair: str = None,
        up_url: str = UP_URL,
        down_url: str = DOWN_URL
    ):
        self.options = options
        self.content_type = content_type
        self.pair = pair or generate_pair()
        self.up_url = up_url
        self.down_url = down_url

    def upstream_params(self) -> List[Tuple[str, str]]:
        o = self.options
        params = [
            ("key", o.api_key),
            ("pair", self.pair),
            ("output", o.output.value),
            ("lang", o.language),
            ("pFilter", str(int(o.profanity_filter))),
            ("maxAlternatives", str(o.max_alternatives)),
            ("app", "chromium"),
        ]
        # Value-less flags, present only when enabled
        if o.continuous:
            params.append(("continuous", ""))
        if o.interim:
            params.append(("interim", ""))
        params.append(("client", "chromium"))
        return params

    def downstream_params(self) -> List[Tuple[str, str]]:
        return [
            ("key", self.options.api_key),
            ("pair", self.pair),
            ("output", self.options.output.value),
        ]

    def upstream_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": f"{self.content_type}; rate={self.options.sample_rate}",
            "User-Agent": self.options.user_agent,
        }

    def upstream(self, body: AsyncIterable[bytes]) -> UpstreamRequest:
        return UpstreamRequest(
            url=self.up_url,
            params=self.upstream_params(),
            headers=self.upstream_headers(),
            content=body
        )

    def downstream(self) -> DownstreamRequest:
        return DownstreamRequest(
            url=self.down_url,
            params=self.downstream_params(),
            headers={"User-Agent": self.options.user_agent}
        )

    def query_string(self, redact_key: bool = True) -> str:
        params = self.upstream_params()
        if redact_key:
            params = [(k, "***" if k == "key" and v else v) for k, v in params]
        return urlencode(params)
