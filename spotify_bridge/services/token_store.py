import json
import logging
import threading
from typing import Optional

import redis
from pydantic import ValidationError

from spotify_bridge.config.settings import Settings
from spotify_bridge.models.token_model import TokenState

logger = logging.getLogger(__name__)


class TokenStore:
    """
    整個 process 只有一份 TokenState（一個 Spotify 帳號）。
    只有 TokenRefresher 和 OAuth callback 會寫入。
    """

    def __init__(self, initial: Optional[TokenState] = None):
        self._state = initial or TokenState()
        # refresh 時用，同一時間只允許一個 refresh 打到 Spotify
        self.refresh_lock = threading.Lock()

    def snapshot(self) -> TokenState:
        return self._state.model_copy()

    def save(self, state: TokenState) -> None:
        self._state = state.model_copy()

    def is_connected(self) -> bool:
        state = self._state
        return bool(state.refresh_token or state.access_token)


class RedisTokenStore(TokenStore):
    """Keeps the token state in redis so the refresh token survives restarts."""

    def __init__(self, client: redis.Redis, key: str):
        self.redis = client
        self.key = key
        super().__init__(self._load())

    # --------------------------
    # 從 Redis 讀回上次存的 token
    # --------------------------
    def _load(self) -> TokenState:
        raw = self.redis.get(self.key)
        if not raw:
            return TokenState()
        try:
            return TokenState.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.error(f"Ignoring unreadable token state in redis key {self.key}: {e}")
            return TokenState()

    # --------------------------
    # 寫回 Redis（失敗時記憶體內的 state 仍然有效）
    # --------------------------
    def save(self, state: TokenState) -> None:
        super().save(state)
        try:
            self.redis.set(self.key, json.dumps(state.model_dump()))
        except redis.RedisError as e:
            logger.error(f"Failed to persist token state to redis: {e}")


def get_redis_client(settings: Settings) -> redis.Redis:
    password = settings.redis_password.get_secret_value() if settings.redis_password else None
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=password,
        decode_responses=True
    )


def build_token_store(settings: Settings, redis_client: Optional[redis.Redis] = None) -> TokenStore:
    if settings.token_persistence == "redis":
        store = RedisTokenStore(redis_client or get_redis_client(settings), settings.redis_token_key)
    else:
        store = TokenStore()

    # 用環境變數給的 refresh token 開機，第一次呼叫時會自動 refresh
    state = store.snapshot()
    if settings.initial_refresh_token and not state.refresh_token:
        logger.info("Seeding token store with SPOTIFY_REFRESH_TOKEN from environment")
        state.refresh_token = settings.initial_refresh_token.get_secret_value()
        state.access_token = None
        state.expires_at = 0
        store.save(state)

    return store
