import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, SecretStr

from spotify_bridge.services.errors import ConfigError


def load_env():
    if os.getenv("ENVIRONMENT") == "production":
        return

    base_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    env_path = os.path.join(base_dir, ".env")

    if os.path.exists(env_path):
        load_dotenv(env_path)


# Load env now
load_env()

PERSISTENCE_MODES = ("memory", "redis")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Spotify
    client_id: str
    client_secret: SecretStr
    redirect_uri: str

    # GPT 端呼叫時要帶的 Bearer secret
    shared_secret: SecretStr

    port: int = 3000
    upstream_timeout: float = 10.0
    token_refresh_skew: float = 10.0

    # Token persistence
    token_persistence: str = "memory"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[SecretStr] = None
    redis_token_key: str = "spotify_bridge:token"
    initial_refresh_token: Optional[SecretStr] = None

    log_level: str = "INFO"


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    從環境變數組出 Settings。

    缺少必要設定、shared secret 為空、或 TOKEN_PERSISTENCE 不認得時，
    直接丟 ConfigError，讓 server 啟動失敗。
    """
    env = os.environ if env is None else env

    required = {
        "SPOTIFY_CLIENT_ID": env.get("SPOTIFY_CLIENT_ID"),
        "SPOTIFY_CLIENT_SECRET": env.get("SPOTIFY_CLIENT_SECRET"),
        "SPOTIFY_REDIRECT_URI": env.get("SPOTIFY_REDIRECT_URI"),
        "BRIDGE_SHARED_SECRET": env.get("BRIDGE_SHARED_SECRET"),
    }
    missing = [name for name, value in required.items() if not value or not value.strip()]
    if missing:
        raise ConfigError("Missing required configuration: " + ", ".join(missing))

    persistence = (env.get("TOKEN_PERSISTENCE") or "memory").strip().lower()
    if persistence not in PERSISTENCE_MODES:
        raise ConfigError(
            f"TOKEN_PERSISTENCE must be one of {', '.join(PERSISTENCE_MODES)}, got {persistence!r}"
        )

    log_level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    return Settings(
        client_id=required["SPOTIFY_CLIENT_ID"],
        client_secret=required["SPOTIFY_CLIENT_SECRET"],
        redirect_uri=required["SPOTIFY_REDIRECT_URI"],
        shared_secret=required["BRIDGE_SHARED_SECRET"],
        port=_number(env, "PORT", 3000, int),
        upstream_timeout=_number(env, "UPSTREAM_TIMEOUT_SECONDS", 10.0, float),
        token_refresh_skew=_number(env, "TOKEN_REFRESH_SKEW_SECONDS", 10.0, float),
        token_persistence=persistence,
        redis_host=env.get("REDIS_HOST") or "localhost",
        redis_port=_number(env, "REDIS_PORT", 6379, int),
        redis_password=env.get("REDIS_PASSWORD") or None,
        redis_token_key=env.get("REDIS_TOKEN_KEY") or "spotify_bridge:token",
        initial_refresh_token=env.get("SPOTIFY_REFRESH_TOKEN") or None,
        log_level=log_level,
    )
