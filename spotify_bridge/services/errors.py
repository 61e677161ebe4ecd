# spotify_bridge/services/errors.py
from typing import Any, Dict, Optional


class ConfigError(RuntimeError):
    """Startup misconfiguration. The server refuses to start."""


class BridgeError(Exception):
    """
    所有對外會變成 HTTP error 的例外都繼承這個。
    status_code / code 由 main.py 的 exception handler 轉成 JSON。
    """

    status_code = 500
    code = "BridgeError"
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class Unauthorized(BridgeError):
    status_code = 401
    code = "Unauthorized"
    default_message = "Missing or invalid shared secret"


class NotConnected(BridgeError):
    status_code = 409
    code = "NotConnected"
    default_message = "Spotify is not connected yet. Open /login to authorize the bridge."


class UpstreamTimeout(BridgeError):
    status_code = 504
    code = "UpstreamTimeout"
    default_message = "Spotify did not respond in time"


class UpstreamUnavailable(BridgeError):
    status_code = 502
    code = "UpstreamUnavailable"
    default_message = "Could not reach Spotify"


class RefreshFailed(BridgeError):
    status_code = 502
    code = "RefreshFailed"
    default_message = "Spotify rejected the token refresh"

    def __init__(self, upstream_status: int, upstream_body: Any, message: Optional[str] = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["upstreamStatus"] = self.upstream_status
        data["upstreamBody"] = self.upstream_body
        return data


class TokenExchangeFailed(BridgeError):
    code = "TokenExchangeFailed"
    default_message = "Error authenticating with Spotify"

    def __init__(self, upstream_status: Optional[int], upstream_body: Any, message: Optional[str] = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
