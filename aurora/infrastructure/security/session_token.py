"""
署名付き匿名セッショントークン

トークン形式: ``v1.<payload>.<signature>``

- payload: {"sid", "iat", "exp", "fp"} のJSONをbase64url（パディング無し）でエンコード
- signature: payloadセグメント文字列に対するHMAC-SHA256（base64url）

サーバー側にセッションを保存せず、有効性はトークン自身で完結する。
"""

import base64
import binascii
import hashlib
import json
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Optional

from cryptography.hazmat.primitives import constant_time, hashes, hmac

from aurora.core.logging import get_logger

from .client import ClientIdentity
from .secret import SecretProvider

logger = get_logger(__name__)

TOKEN_VERSION = "v1"
DEFAULT_TTL_SECONDS = 60 * 60 * 12


@dataclass(frozen=True)
class SessionPayload:
    """
    トークンに埋め込むセッション情報

    Attributes:
        sid: セッションID
        iat: 発行時刻（UNIX秒）
        exp: 失効時刻（UNIX秒）
        fp: クライアントフィンガープリント
    """

    sid: str
    iat: int
    exp: int
    fp: str


@dataclass(frozen=True)
class TokenVerification:
    """検証結果。失敗理由は含めない"""

    valid: bool
    sid: Optional[str] = None


INVALID = TokenVerification(valid=False)


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def generate_session_id() -> str:
    """
    セッションIDを生成

    Returns:
        ランダムな32文字のHEX文字列
    """
    return secrets.token_hex(16)


def generate_fingerprint(client: ClientIdentity) -> str:
    """
    クライアントフィンガープリントを生成

    ``<client ip>|<user agent>`` のSHA256ハッシュ（base64url）

    Args:
        client: クライアント識別情報

    Returns:
        フィンガープリント文字列
    """
    source = f"{client.ip}|{client.user_agent}"
    return b64url_encode(hashlib.sha256(source.encode("utf-8")).digest())


def _equals(left: str, right: str) -> bool:
    return constant_time.bytes_eq(left.encode("utf-8"), right.encode("utf-8"))


class SessionTokenCodec:
    """
    匿名セッショントークンの発行・検証

    Example:
        >>> codec = SessionTokenCodec(SecretProvider("secret"))
        >>> client = ClientIdentity(ip="203.0.113.7", user_agent="Mozilla/5.0")
        >>> codec.verify(codec.issue(client), client).valid
        True
    """

    def __init__(
        self,
        secret_provider: SecretProvider,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            secret_provider: 署名用シークレットの供給元
            ttl_seconds: トークンの有効期間（秒）
            clock: 現在時刻（UNIX秒）を返す関数
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.secret_provider = secret_provider
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def _sign(self, payload_segment: str) -> str:
        h = hmac.HMAC(self.secret_provider.get(), hashes.SHA256())
        h.update(payload_segment.encode("ascii"))
        return b64url_encode(h.finalize())

    def issue(self, client: ClientIdentity) -> str:
        """
        新しいトークンを発行

        Args:
            client: クライアント識別情報

        Returns:
            ``v1.<payload>.<signature>`` 形式のトークン
        """
        now = int(self.clock())
        payload = {
            "sid": generate_session_id(),
            "iat": now,
            "exp": now + self.ttl_seconds,
            "fp": generate_fingerprint(client),
        }
        segment = b64url_encode(
            json.dumps(payload, separators=(",", ":")).encode("utf-8")
        )
        return f"{TOKEN_VERSION}.{segment}.{self._sign(segment)}"

    def decode(self, token: str) -> Optional[SessionPayload]:
        """
        署名を検証してペイロードを取り出す（失効・フィンガープリントは未検証）

        Args:
            token: トークン文字列

        Returns:
            ペイロード、署名または形式が不正な場合はNone
        """
        parts = token.split(".")
        if len(parts) != 3 or parts[0] != TOKEN_VERSION:
            return None

        _, segment, signature = parts
        try:
            expected = self._sign(segment)
        except UnicodeEncodeError:
            return None
        if not _equals(signature, expected):
            return None

        try:
            raw = json.loads(b64url_decode(segment))
        except (binascii.Error, ValueError, UnicodeDecodeError):
            return None
        if not isinstance(raw, dict):
            return None

        sid, iat, exp, fp = raw.get("sid"), raw.get("iat"), raw.get("exp"), raw.get("fp")
        if not isinstance(sid, str) or not sid or not isinstance(fp, str):
            return None
        if not isinstance(iat, int) or not isinstance(exp, int) or exp <= iat:
            return None
        return SessionPayload(sid=sid, iat=iat, exp=exp, fp=fp)

    def verify(self, token: Optional[str], client: ClientIdentity) -> TokenVerification:
        """
        トークンを検証

        形式・署名（定数時間比較）・有効期限・フィンガープリントを順に確認する。
        失敗時は理由に関わらず同一の結果を返し、例外は送出しない。

        Args:
            token: トークン文字列（Cookie値）
            client: 現在のリクエストのクライアント識別情報

        Returns:
            TokenVerification
        """
        if not token:
            return INVALID
        try:
            payload = self.decode(token.strip())
            if payload is None:
                return INVALID
            if payload.exp <= int(self.clock()):
                return INVALID
            if not _equals(payload.fp, generate_fingerprint(client)):
                return INVALID
            return TokenVerification(valid=True, sid=payload.sid)
        except Exception as e:
            logger.warning(f"Session token verification error: {type(e).__name__}")
            return INVALID
