import logging
import time
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode

import requests

from spotify_bridge.config.settings import Settings
from spotify_bridge.models.token_model import TokenState
from spotify_bridge.services.errors import (
    NotConnected,
    RefreshFailed,
    TokenExchangeFailed,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from spotify_bridge.services.token_store import TokenStore

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"
DEFAULT_EXPIRES_IN = 3600

# Command Dispatcher 用到的最小權限
SCOPES = (
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
    "playlist-read-private",
    "playlist-modify-public",
    "playlist-modify-private",
)


def build_authorize_url(settings: Settings) -> str:
    query = urlencode({
        "response_type": "code",
        "client_id": settings.client_id,
        "scope": " ".join(SCOPES),
        "redirect_uri": settings.redirect_uri,
    })
    return f"{AUTHORIZE_URL}?{query}"


def _response_body(r: requests.Response) -> Any:
    try:
        return r.json()
    except ValueError:
        return r.text


class TokenRefresher:
    """
    Hands out a valid access token, refreshing through Spotify's token
    endpoint when the cached one is within ``skew`` seconds of expiry.

    Refreshes are serialized on ``store.refresh_lock``: whoever gets the lock
    second re-checks the store and reuses the token the first caller fetched.
    """

    def __init__(
        self,
        store: TokenStore,
        settings: Settings,
        session: requests.Session,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.settings = settings
        self.session = session
        self.clock = clock
        self.skew = settings.token_refresh_skew

    def _is_fresh(self, state: TokenState) -> bool:
        return bool(state.access_token) and self.clock() < state.expires_at - self.skew

    def ensure_access_token(self) -> str:
        state = self.store.snapshot()

        # 不需要 refresh
        if self._is_fresh(state):
            return state.access_token

        with self.store.refresh_lock:
            state = self.store.snapshot()
            if self._is_fresh(state):
                return state.access_token

            if not state.refresh_token:
                raise NotConnected()

            return self._refresh(state)

    def _refresh(self, state: TokenState) -> str:
        r = self._post_token({
            "grant_type": "refresh_token",
            "refresh_token": state.refresh_token,
        })
        body = _response_body(r)

        if r.status_code >= 300 or not isinstance(body, dict) or "access_token" not in body:
            logger.error(f"Spotify token refresh failed with status {r.status_code}")
            raise RefreshFailed(r.status_code, body)

        new_state = self._state_from_token_response(body, previous_refresh_token=state.refresh_token)
        self.store.save(new_state)
        logger.info(f"Refreshed Spotify access token, valid until {new_state.expires_at:.0f}")
        return new_state.access_token

    def exchange_code(self, code: str) -> TokenState:
        """
        用 /callback 拿到的 authorization code 換 access_token + refresh_token，
        並寫進 TokenStore。
        """
        try:
            r = self._post_token({
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.settings.redirect_uri,
            })
        except (UpstreamTimeout, UpstreamUnavailable) as e:
            raise TokenExchangeFailed(None, None, message=e.message)

        body = _response_body(r)
        if r.status_code >= 300 or not isinstance(body, dict) or "access_token" not in body:
            logger.error(f"Spotify authorization code exchange failed with status {r.status_code}")
            raise TokenExchangeFailed(r.status_code, body)

        with self.store.refresh_lock:
            previous = self.store.snapshot().refresh_token
            new_state = self._state_from_token_response(body, previous_refresh_token=previous)
            self.store.save(new_state)

        logger.info("Spotify account connected")
        return new_state

    def _state_from_token_response(self, body: Dict, previous_refresh_token: Optional[str]) -> TokenState:
        expires_in = body.get("expires_in") or DEFAULT_EXPIRES_IN
        return TokenState(
            access_token=body["access_token"],
            # Spotify 有時不會回 refresh token，要沿用舊的
            refresh_token=body.get("refresh_token") or previous_refresh_token,
            expires_at=self.clock() + float(expires_in),
        )

    def _post_token(self, payload: Dict[str, str]) -> requests.Response:
        try:
            return self.session.post(
                TOKEN_URL,
                data=payload,
                auth=(self.settings.client_id, self.settings.client_secret.get_secret_value()),
                timeout=self.settings.upstream_timeout,
            )
        except requests.Timeout:
            logger.warning("Timed out waiting for Spotify token endpoint")
            raise UpstreamTimeout("Spotify token endpoint did not respond in time")
        except requests.RequestException as e:
            logger.error(f"Could not reach Spotify token endpoint: {e}")
            raise UpstreamUnavailable("Could not reach Spotify token endpoint")
