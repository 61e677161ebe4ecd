# spotify_bridge/services/spotify_client.py
import logging
from typing import Any, Dict, Optional

import requests

from spotify_bridge.services.errors import UpstreamTimeout, UpstreamUnavailable
from spotify_bridge.services.results import UpstreamResponse
from spotify_bridge.services.spotify_token_service import TokenRefresher

logger = logging.getLogger(__name__)

SPOTIFY_API_BASE = "https://api.spotify.com/v1"


class SpotifyClient:
    """
    Thin wrapper around the Spotify Web API.

    Every status code is returned as a normal UpstreamResponse; 4xx/5xx bodies
    such as "no active device" are relayed to the caller, not raised.
    """

    def __init__(self, refresher: TokenRefresher, session: requests.Session, timeout: float = 10.0,
                 base_url: str = SPOTIFY_API_BASE):
        self.refresher = refresher
        self.session = session
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")

    def call(self, method: str, path: str, params: Optional[Dict] = None, body: Optional[Any] = None) -> UpstreamResponse:
        access_token = self.refresher.ensure_access_token()

        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"Authorization": f"Bearer {access_token}"}
        kwargs = {}
        if body is not None:
            headers["Content-Type"] = "application/json"
            kwargs["json"] = body

        try:
            r = self.session.request(method, url, headers=headers, params=params, timeout=self.timeout, **kwargs)
        except requests.Timeout:
            logger.warning(f"Spotify {method} /{path.lstrip('/')} timed out after {self.timeout}s")
            raise UpstreamTimeout()
        except requests.RequestException as e:
            logger.error(f"Spotify {method} /{path.lstrip('/')} failed: {e}")
            raise UpstreamUnavailable()

        return _to_upstream_response(r)


def _to_upstream_response(r: requests.Response) -> UpstreamResponse:
    # 204 -> No Content，統一成空 dict
    if r.status_code == 204 or not r.content:
        return UpstreamResponse(status_code=r.status_code, body={})

    content_type = r.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return UpstreamResponse(status_code=r.status_code, body=r.json())
        except ValueError:
            pass

    # Spotify 可能回 HTML（proxy / rate limit），保留原始內容
    return UpstreamResponse(
        status_code=r.status_code,
        body=r.content,
        media_type=content_type.split(";")[0].strip() or "application/octet-stream",
    )
