from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# 欄位都設成 Optional，缺值時由 CommandDispatcher 回 400 MissingInput


class VolumeRequest(BaseModel):
    volume: Optional[float] = Field(None, description="0-100，超出範圍會被夾到邊界")


class TransferRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    device_id: Optional[str] = Field(None, alias="deviceId", description="Spotify device ID")
    play: bool = Field(False, description="Start playback on the new device")


class PlaylistCreateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    public: Optional[bool] = Field(None, description="預設 private")


class PlaylistAddRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    playlist_name: Optional[str] = Field(None, alias="playlistName")
    query: Optional[str] = Field(None, description="Free-text search, first match is added")
    uri: Optional[str] = Field(None, description="spotify:track:... URI")
    create_if_missing: Optional[bool] = Field(None, alias="createIfMissing", description="預設 true")


# 回傳給 GPT 的格式
class OkResponse(BaseModel):
    ok: bool = True


class TrackSummary(BaseModel):
    id: Optional[str] = None
    uri: Optional[str] = None
    name: Optional[str] = None
    artists: List[str] = []
    album: Optional[str] = None


class PlaylistCreateResponse(BaseModel):
    ok: bool = True
    playlistId: Optional[str] = None


class PlaylistAddResponse(BaseModel):
    ok: bool = True
    playlistId: Optional[str] = None
    added: str


class ErrorResponse(BaseModel):
    error: str
    message: str
