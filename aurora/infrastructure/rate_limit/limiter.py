"""エンドポイント分類ごとの固定ウィンドウレート制限"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from aurora.core.config import Settings

from .store import RateLimitResult, RateLimitStore

QUESTIONS = "questions"
ANALYSIS = "analysis"
GENERAL = "general"

NO_SESSION = "no-session"
SESSION_SLICE_LENGTH = 16


@dataclass(frozen=True)
class RateLimitPolicy:
    """
    エンドポイント分類ごとの上限

    Attributes:
        name: エンドポイント分類名
        limit: ウィンドウあたりの上限
        window_seconds: ウィンドウ長（秒）
    """

    name: str
    limit: int
    window_seconds: int


# パスに含まれる文字列 → エンドポイント分類（先に一致したものを採用）
DEFAULT_CLASSIFICATION: tuple[tuple[str, str], ...] = (
    ("generate-questions", QUESTIONS),
    ("generate-analysis", ANALYSIS),
)


def build_policies(settings: Settings) -> dict[str, RateLimitPolicy]:
    """設定からエンドポイント分類ごとのポリシーを生成"""
    window = settings.RATE_LIMIT_WINDOW_SECONDS
    return {
        QUESTIONS: RateLimitPolicy(QUESTIONS, settings.RATE_LIMIT_QUESTIONS, window),
        ANALYSIS: RateLimitPolicy(ANALYSIS, settings.RATE_LIMIT_ANALYSIS, window),
        GENERAL: RateLimitPolicy(GENERAL, settings.RATE_LIMIT_GENERAL, window),
    }


def rate_limit_key(client_ip: str, session_id: Optional[str], endpoint_class: str) -> str:
    """
    レート制限キーを生成

    同じクライアントIP・セッション・エンドポイント分類は必ず同じキーになる。

    Args:
        client_ip: 解決済みクライアントIP
        session_id: 検証済みセッションID（無効/未送信の場合はNone）
        endpoint_class: エンドポイント分類名

    Returns:
        ``<ip>:<session slice>:<endpoint class>``
    """
    session_part = session_id[:SESSION_SLICE_LENGTH] if session_id else NO_SESSION
    return f"{client_ip}:{session_part}:{endpoint_class}"


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """X-RateLimit-* ヘッダーを生成（Resetは切り上げたUNIX秒）"""
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(math.ceil(result.reset_at)),
    }


class RateLimiter:
    """
    固定ウィンドウ方式のレート制限

    Example:
        >>> limiter = RateLimiter(InMemoryRateLimitStore(), build_policies(settings))
        >>> limiter.check("203.0.113.7:no-session:general", limit=5, window_seconds=60).remaining
        4
    """

    def __init__(
        self,
        store: RateLimitStore,
        policies: dict[str, RateLimitPolicy],
        whitelist: Iterable[str] = (),
        classification: tuple[tuple[str, str], ...] = DEFAULT_CLASSIFICATION,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if GENERAL not in policies:
            raise ValueError("A 'general' rate limit policy is required")
        self.store = store
        self.policies = policies
        self.whitelist = frozenset(whitelist)
        self.classification = classification
        self.clock = clock

    def classify(self, path: str) -> RateLimitPolicy:
        """パスからエンドポイント分類のポリシーを決定"""
        for needle, name in self.classification:
            if needle in path and name in self.policies:
                return self.policies[name]
        return self.policies[GENERAL]

    def check(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        """キーに1リクエストを計上して判定"""
        return self.store.hit(key, limit, window_seconds, self.clock())

    def check_request(
        self, client_ip: str, session_id: Optional[str], path: str
    ) -> RateLimitResult:
        """
        リクエスト単位の判定

        ホワイトリストのIPは計上せず、常に満枠の残り回数で許可する。

        Args:
            client_ip: 解決済みクライアントIP
            session_id: 検証済みセッションID
            path: 正規化済みのリクエストパス

        Returns:
            RateLimitResult
        """
        policy = self.classify(path)
        if client_ip in self.whitelist:
            return RateLimitResult(
                allowed=True,
                limit=policy.limit,
                remaining=policy.limit,
                reset_at=self.clock() + policy.window_seconds,
            )
        key = rate_limit_key(client_ip, session_id, policy.name)
        return self.check(key, policy.limit, policy.window_seconds)

    def retry_after(self, result: RateLimitResult) -> int:
        """Retry-Afterの秒数（最低1秒）"""
        return max(1, math.ceil(result.reset_at - self.clock()))

    def sweep(self) -> int:
        """ウィンドウ経過済みのレコードを削除"""
        return self.store.sweep(self.clock())
