"""管理パネルの認可判定"""

from typing import Optional

from cryptography.hazmat.primitives import constant_time
from starlette.requests import HTTPConnection

ADMIN_TOKEN_HEADER = "x-admin-token"


class AdminAuthorizer:
    """
    管理者トークンによる認可

    トークンは X-Admin-Token ヘッダーまたは管理者Cookieで受け付ける。
    """

    def __init__(self, admin_token: str, cookie_name: str) -> None:
        self._token = (admin_token or "").strip()
        self.cookie_name = cookie_name

    def is_configured(self) -> bool:
        """管理者トークンが設定されているか"""
        return bool(self._token)

    def validate(self, candidate: Optional[str]) -> bool:
        """与えられたトークンが管理者トークンと一致するか（定数時間比較）"""
        if not self._token or not candidate:
            return False
        return constant_time.bytes_eq(
            candidate.strip().encode("utf-8"), self._token.encode("utf-8")
        )

    def is_authorized(self, request: HTTPConnection) -> bool:
        """リクエストが管理者として認可されているか"""
        header_token = request.headers.get(ADMIN_TOKEN_HEADER)
        cookie_token = request.cookies.get(self.cookie_name)
        return self.validate(header_token) or self.validate(cookie_token)
