# spotify_bridge/api/spotify_auth_api.py
import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse, RedirectResponse

from spotify_bridge.services.errors import TokenExchangeFailed
from spotify_bridge.services.spotify_token_service import build_authorize_url

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get(
    "/login",
    summary="Spotify Login — redirect 到 Spotify 授權頁",
    description=(
        "一次性的授權流程：operator 用瀏覽器打開這個網址，"
        "授權後 Spotify 會 redirect 回 /callback。"
    ),
    response_class=RedirectResponse,
    status_code=302,
)
def login(request: Request):
    url = build_authorize_url(request.app.state.settings)
    return RedirectResponse(url=url, status_code=302)


@router.get(
    "/callback",
    summary="Spotify OAuth Callback",
    description="用 Spotify 回傳的 code 交換 access_token / refresh_token，存進記憶體裡的 TokenStore。",
    response_class=PlainTextResponse,
)
def callback(
    request: Request,
    code: Optional[str] = Query(None, description="Spotify 回傳的授權 code"),
    error: Optional[str] = Query(None, description="使用者拒絕授權時 Spotify 會帶 error"),
):
    if error:
        return PlainTextResponse(f"Spotify authorization was not granted: {error}", status_code=400)

    if not code:
        return PlainTextResponse("Missing authorization code", status_code=400)

    try:
        request.app.state.refresher.exchange_code(code)
    except TokenExchangeFailed as e:
        logger.error(f"Callback token exchange failed: status={e.upstream_status} body={e.upstream_body}")
        return PlainTextResponse("Error authenticating with Spotify", status_code=500)

    return PlainTextResponse("Login successful! You can now use the GPT bridge.")
