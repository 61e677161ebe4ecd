# spotify_bridge/main.py
from typing import Optional

import requests
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from spotify_bridge.api.library_api import router as library_router
from spotify_bridge.api.player_api import router as player_router
from spotify_bridge.api.spotify_auth_api import router as spotify_auth_router
from spotify_bridge.config.settings import Settings, load_settings
from spotify_bridge.services.access_guard import require_shared_secret
from spotify_bridge.services.errors import BridgeError
from spotify_bridge.services.results import BusinessErrorKind
from spotify_bridge.services.spotify_client import SpotifyClient
from spotify_bridge.services.spotify_commands import CommandDispatcher
from spotify_bridge.services.spotify_token_service import TokenRefresher
from spotify_bridge.services.token_store import TokenStore, build_token_store


def _bridge_error_handler(request: Request, exc: BridgeError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


def _validation_error_handler(request: Request, exc: RequestValidationError):
    # 格式錯誤一律回 400，跟缺欄位一樣處理
    return JSONResponse(
        {
            "error": BusinessErrorKind.MISSING_INPUT.value,
            "message": "Invalid request",
            "details": jsonable_errors(exc),
        },
        status_code=BusinessErrorKind.MISSING_INPUT.status_code,
    )


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
        for err in exc.errors()
    ]


def create_app(
    settings: Optional[Settings] = None,
    token_store: Optional[TokenStore] = None,
    http_session: Optional[requests.Session] = None,
) -> FastAPI:
    settings = settings or load_settings()
    session = http_session or requests.Session()
    store = token_store or build_token_store(settings)

    refresher = TokenRefresher(store, settings, session)
    client = SpotifyClient(refresher, session, timeout=settings.upstream_timeout)

    app = FastAPI(
        title="Spotify GPT Bridge",
        description=(
            "讓 GPT 透過固定的 shared secret 控制 Spotify："
            "• Spotify OAuth (authorization code) "
            "• Playback control "
            "• Search / Playlist"
        ),
        version="1.0.0"
    )

    app.state.settings = settings
    app.state.token_store = store
    app.state.refresher = refresher
    app.state.dispatcher = CommandDispatcher(client)

    app.add_exception_handler(BridgeError, _bridge_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    guarded = [Depends(require_shared_secret)]

    # === Spotify OAuth（一次性授權，不需要 shared secret） ===
    app.include_router(spotify_auth_router, tags=["Spotify OAuth"])

    # === Playback ===
    app.include_router(player_router, tags=["Playback"], dependencies=guarded)

    # === Search / Playlist ===
    app.include_router(library_router, tags=["Library"], dependencies=guarded)

    @app.get("/")
    def root():
        return {
            "status": "ok",
            "connected": store.is_connected()
        }

    return app
