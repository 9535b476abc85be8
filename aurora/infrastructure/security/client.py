"""クライアント識別情報（IP・User-Agent）の解決"""

from dataclasses import dataclass
from typing import Mapping

UNKNOWN_CLIENT_IP = "unknown"


def resolve_client_ip(headers: Mapping[str, str]) -> str:
    """
    リクエストヘッダーからクライアントIPを解決する

    X-Forwarded-Forの先頭 → X-Real-IP → "unknown" の順に採用する。

    Args:
        headers: リクエストヘッダー（大文字小文字を区別しないMapping）

    Returns:
        クライアントIP
    """
    forwarded = headers.get("x-forwarded-for", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("x-real-ip", "").strip()
    return real_ip or UNKNOWN_CLIENT_IP


@dataclass(frozen=True)
class ClientIdentity:
    """
    セッションのフィンガープリントとレート制限キーに使うクライアント情報

    Attributes:
        ip: 解決済みクライアントIP
        user_agent: User-Agentヘッダー（未送信の場合は空文字）
    """

    ip: str
    user_agent: str = ""

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "ClientIdentity":
        return cls(
            ip=resolve_client_ip(headers),
            user_agent=headers.get("user-agent", ""),
        )
