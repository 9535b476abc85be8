"""
署名用サーバーシークレットの供給

設定値があればそれを使い、無ければプロセス起動時に一度だけ
ランダムなシークレットを生成してプロセス終了まで保持する。
"""

import secrets
from typing import Optional

from aurora.core.logging import get_logger

logger = get_logger(__name__)


class SecretProvider:
    """
    HMAC署名用シークレットの供給元

    フォールバックで生成したシークレットはプロセス再起動で失われるため、
    それまでに発行したセッショントークンは再起動後に無効になる（単一ノード前提の制約）。
    """

    def __init__(self, configured_secret: Optional[str] = None) -> None:
        """
        Args:
            configured_secret: 運用者が設定したシークレット（空/Noneの場合は生成）
        """
        configured = (configured_secret or "").strip()
        if configured:
            self._secret = configured.encode("utf-8")
            self.ephemeral = False
        else:
            self._secret = secrets.token_urlsafe(32).encode("ascii")
            self.ephemeral = True
            logger.warning(
                "ANON_AUTH_SECRET is not set. Using a process-lifetime secret; "
                "session tokens will not survive a restart."
            )

    def get(self) -> bytes:
        """シークレットを返す"""
        return self._secret
