import logging
import math
from typing import Any, Dict, Optional, Tuple

from spotify_bridge.services.results import (
    BusinessError,
    BusinessErrorKind,
    Ok,
    Result,
    UpstreamError,
)
from spotify_bridge.services.spotify_client import SpotifyClient

logger = logging.getLogger(__name__)

PLAYLIST_PAGE_SIZE = 50
DEFAULT_PLAYLIST_DESCRIPTION = "Created by the GPT Spotify bridge"

OK = {"ok": True}


# --------- 小工具 ---------
def _summarize_track(track: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": track.get("id"),
        "uri": track.get("uri"),
        "name": track.get("name"),
        "artists": [a.get("name") for a in track.get("artists") or []],
        "album": (track.get("album") or {}).get("name"),
    }


def clamp_volume(volume: float) -> int:
    return int(round(max(0.0, min(100.0, volume))))


class CommandDispatcher:
    """
    把 GPT 送來的簡單指令（play / pause / search / playlist ...）
    轉成一個或幾個 Spotify Web API 呼叫，結果回傳成 Result：

    - Ok(body)：成功
    - UpstreamError(status, body)：Spotify 回的錯誤，原封不動轉出去
    - BusinessError(kind)：NoDevice / NotFound / MissingInput ...
    """

    def __init__(self, client: SpotifyClient):
        self.client = client

    def _control(self, method: str, path: str, params: Optional[Dict] = None, body: Optional[Any] = None) -> Result:
        resp = self.client.call(method, path, params=params, body=body)
        if not resp.ok:
            return UpstreamError.from_response(resp)
        return Ok(dict(OK))

    def _passthrough(self, method: str, path: str, params: Optional[Dict] = None) -> Result:
        resp = self.client.call(method, path, params=params)
        if not resp.ok:
            return UpstreamError.from_response(resp)
        return Ok(resp.body, media_type=resp.media_type)

    # --------------------------
    # 確保有可以播放的裝置
    # --------------------------
    def _resolve_active_device(self) -> Tuple[Optional[str], Optional[Result]]:
        """
        1. player state 已經有 device → 直接用
        2. 沒有 → 列出 devices，一個都沒有就 NoDevice
        3. 有 device 但不是 active → 先 transfer 過去（不自動播放）
        """
        state = self.client.call("GET", "me/player")
        if not state.ok:
            return None, UpstreamError.from_response(state)

        device = state.json_dict().get("device") or {}
        if device.get("id"):
            return device["id"], None

        listing = self.client.call("GET", "me/player/devices")
        if not listing.ok:
            return None, UpstreamError.from_response(listing)

        devices = [d for d in listing.json_dict().get("devices") or [] if d.get("id")]
        if not devices:
            return None, BusinessError(
                BusinessErrorKind.NO_DEVICE,
                "No Spotify device is available. Open Spotify on a phone, computer or speaker first.",
            )

        target = next((d for d in devices if d.get("is_active")), devices[0])
        if not target.get("is_active"):
            logger.info(f"Transferring playback to inactive device {target.get('name')!r} before control call")
            transfer = self.client.call("PUT", "me/player", body={"device_ids": [target["id"]], "play": False})
            if not transfer.ok:
                return None, UpstreamError.from_response(transfer)

        return target["id"], None

    # --------- Playback ---------
    def play(self) -> Result:
        device_id, error = self._resolve_active_device()
        if error:
            return error
        return self._control("PUT", "me/player/play", params={"device_id": device_id})

    def pause(self) -> Result:
        return self._control("PUT", "me/player/pause")

    def next_track(self) -> Result:
        return self._control("POST", "me/player/next")

    def previous_track(self) -> Result:
        return self._control("POST", "me/player/previous")

    def volume(self, volume: Optional[float]) -> Result:
        if volume is None:
            return BusinessError(BusinessErrorKind.MISSING_INPUT, "Field 'volume' (0-100) is required")
        if math.isnan(volume):
            return BusinessError(BusinessErrorKind.MISSING_INPUT, "Field 'volume' must be a number between 0 and 100")

        volume_percent = clamp_volume(volume)
        device_id, error = self._resolve_active_device()
        if error:
            return error
        return self._control(
            "PUT",
            "me/player/volume",
            params={"volume_percent": volume_percent, "device_id": device_id},
        )

    def status(self) -> Result:
        return self._passthrough("GET", "me/player")

    def devices(self) -> Result:
        return self._passthrough("GET", "me/player/devices")

    def transfer(self, device_id: Optional[str], play: bool = False) -> Result:
        if not device_id or not device_id.strip():
            return BusinessError(BusinessErrorKind.MISSING_INPUT, "Field 'deviceId' is required")
        return self._control("PUT", "me/player", body={"device_ids": [device_id.strip()], "play": play})

    # --------- Search ---------
    def _search_track(self, query: str) -> Tuple[Optional[Dict], Optional[Result]]:
        resp = self.client.call("GET", "search", params={"q": query, "type": "track", "limit": 1})
        if not resp.ok:
            return None, UpstreamError.from_response(resp)

        items = (resp.json_dict().get("tracks") or {}).get("items") or []
        if not items:
            return None, None
        return _summarize_track(items[0]), None

    def search(self, query: Optional[str]) -> Result:
        if not query or not query.strip():
            return BusinessError(BusinessErrorKind.MISSING_INPUT, "Query parameter 'q' is required")

        track, error = self._search_track(query.strip())
        if error:
            return error
        if not track:
            return BusinessError(BusinessErrorKind.NOT_FOUND, f"No track matches {query.strip()!r}")
        return Ok(track)

    # --------- Playlists ---------
    def _create_playlist(self, name: str, description: Optional[str], public: bool) -> Tuple[Optional[str], Optional[Result]]:
        me = self.client.call("GET", "me")
        if not me.ok:
            return None, UpstreamError.from_response(me)

        user_id = me.json_dict().get("id")
        if not user_id:
            return None, UpstreamError(
                status_code=502,
                body={"error": "UpstreamError", "message": "Spotify profile response did not include a user id"},
            )

        resp = self.client.call(
            "POST",
            f"users/{user_id}/playlists",
            body={
                "name": name,
                "description": description or DEFAULT_PLAYLIST_DESCRIPTION,
                "public": public,
            },
        )
        if not resp.ok:
            return None, UpstreamError.from_response(resp)

        playlist_id = resp.json_dict().get("id")
        logger.info(f"Created playlist {name!r} ({playlist_id})")
        return playlist_id, None

    def _find_playlist(self, name: str) -> Tuple[Optional[str], Optional[Result]]:
        wanted = name.lower()
        offset = 0

        while True:
            resp = self.client.call("GET", "me/playlists", params={"limit": PLAYLIST_PAGE_SIZE, "offset": offset})
            if not resp.ok:
                return None, UpstreamError.from_response(resp)

            page = resp.json_dict()
            items = page.get("items") or []
            for playlist in items:
                if playlist and (playlist.get("name") or "").lower() == wanted:
                    return playlist.get("id"), None

            if not items or not page.get("next"):
                return None, None

            offset += PLAYLIST_PAGE_SIZE

    def create_playlist(self, name: Optional[str], description: Optional[str] = None, public: Optional[bool] = None) -> Result:
        if not name or not name.strip():
            return BusinessError(BusinessErrorKind.MISSING_INPUT, "Field 'name' is required")

        playlist_id, error = self._create_playlist(name.strip(), description, bool(public))
        if error:
            return error
        return Ok({"ok": True, "playlistId": playlist_id})

    def add_to_playlist(
        self,
        playlist_name: Optional[str],
        query: Optional[str] = None,
        uri: Optional[str] = None,
        create_if_missing: Optional[bool] = None,
    ) -> Result:
        # 先檢查輸入，缺東西就不打 Spotify
        if not playlist_name or not playlist_name.strip():
            return BusinessError(BusinessErrorKind.MISSING_INPUT, "Field 'playlistName' is required")

        uri = (uri or "").strip()
        query = (query or "").strip()
        if not uri and not query:
            return BusinessError(BusinessErrorKind.MISSING_INPUT, "Provide either 'uri' or 'query'")

        if create_if_missing is None:
            create_if_missing = True
        playlist_name = playlist_name.strip()

        # 1. 找歌
        if not uri:
            track, error = self._search_track(query)
            if error:
                return error
            if not track or not track.get("uri"):
                return BusinessError(BusinessErrorKind.TRACK_NOT_FOUND, f"No track matches {query!r}")
            uri = track["uri"]

        # 2. 找 playlist（沒有就建立）
        playlist_id, error = self._find_playlist(playlist_name)
        if error:
            return error
        if not playlist_id:
            if not create_if_missing:
                return BusinessError(
                    BusinessErrorKind.PLAYLIST_NOT_FOUND,
                    f"No playlist named {playlist_name!r}",
                )
            playlist_id, error = self._create_playlist(playlist_name, None, False)
            if error:
                return error

        # 3. 加進 playlist
        resp = self.client.call("POST", f"playlists/{playlist_id}/tracks", body={"uris": [uri]})
        if not resp.ok:
            return UpstreamError.from_response(resp)

        return Ok({"ok": True, "playlistId": playlist_id, "added": uri})
