# spotify_bridge/services/results.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class BusinessErrorKind(str, Enum):
    NO_DEVICE = "NoDevice"
    NOT_FOUND = "NotFound"
    TRACK_NOT_FOUND = "TrackNotFound"
    PLAYLIST_NOT_FOUND = "PlaylistNotFound"
    MISSING_INPUT = "MissingInput"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    BusinessErrorKind.NO_DEVICE: 409,
    BusinessErrorKind.NOT_FOUND: 404,
    BusinessErrorKind.TRACK_NOT_FOUND: 404,
    BusinessErrorKind.PLAYLIST_NOT_FOUND: 404,
    BusinessErrorKind.MISSING_INPUT: 400,
}


@dataclass(frozen=True)
class UpstreamResponse:
    status_code: int
    body: Any                      # dict / list，或非 JSON 時的原始 bytes
    media_type: str = "application/json"

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json_dict(self) -> dict:
        return self.body if isinstance(self.body, dict) else {}


@dataclass(frozen=True)
class Ok:
    body: Any
    media_type: str = "application/json"


@dataclass(frozen=True)
class UpstreamError:
    """Spotify 回的 status / body，原封不動轉給呼叫端。"""

    status_code: int
    body: Any
    media_type: str = "application/json"

    @classmethod
    def from_response(cls, resp: UpstreamResponse) -> "UpstreamError":
        return cls(status_code=resp.status_code, body=resp.body, media_type=resp.media_type)


@dataclass(frozen=True)
class BusinessError:
    kind: BusinessErrorKind
    message: str


Result = Union[Ok, UpstreamError, BusinessError]
