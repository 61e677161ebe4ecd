# spotify_bridge/services/access_guard.py
import hmac
from typing import Optional

from fastapi import Header, Request

from spotify_bridge.services.errors import Unauthorized


def require_shared_secret(request: Request, authorization: Optional[str] = Header(None)) -> None:
    """
    從 Authorization: Bearer <shared secret> 比對設定的 secret。
    不符合就直接 401，後面的 token refresh / Spotify 呼叫都不會發生。
    """
    expected = request.app.state.settings.shared_secret.get_secret_value()

    if not expected:
        raise Unauthorized()

    if not authorization:
        raise Unauthorized("Missing Authorization header")

    if not authorization.startswith("Bearer "):
        raise Unauthorized("Invalid token format")

    presented = authorization[len("Bearer "):]

    if not hmac.compare_digest(presented.encode(), expected.encode()):
        raise Unauthorized("Invalid shared secret")
