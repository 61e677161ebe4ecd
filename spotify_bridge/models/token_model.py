# spotify_bridge/models/token_model.py
from typing import Optional

from pydantic import BaseModel


class TokenState(BaseModel):
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: float = 0   # Unix timestamp，過去的時間代表 access_token 已過期

    def __repr__(self) -> str:
        # token 本身不能出現在 log 裡
        return (
            f"TokenState(access_token={'set' if self.access_token else None}, "
            f"refresh_token={'set' if self.refresh_token else None}, "
            f"expires_at={self.expires_at})"
        )

    __str__ = __repr__
