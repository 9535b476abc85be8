"""
レート制限ウィンドウの保存先

ゲートウェイはRateLimitStoreインターフェースのみに依存し、
単一プロセス用のインメモリ実装とRedis実装を差し替えられる。
"""

import itertools
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import redis

from aurora.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitRecord:
    """
    固定ウィンドウのカウンター

    Attributes:
        count: 現ウィンドウで許可したリクエスト数
        reset_at: ウィンドウが切り替わる時刻（UNIX秒）
    """

    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    """
    レート制限チェック結果

    Attributes:
        allowed: 許可されたか
        limit: ウィンドウあたりの上限
        remaining: 残り回数
        reset_at: ウィンドウが切り替わる時刻（UNIX秒）
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float


class RateLimitStore(ABC):
    """レート制限レコードの保存先インターフェース"""

    @abstractmethod
    def get(self, key: str) -> Optional[RateLimitRecord]:
        """レコードを取得"""

    @abstractmethod
    def set(self, key: str, record: RateLimitRecord) -> None:
        """レコードを保存（置き換え）"""

    @abstractmethod
    def delete(self, key: str) -> None:
        """レコードを削除"""

    @abstractmethod
    def sweep(self, now: float) -> int:
        """
        ウィンドウが経過したレコードを削除

        Returns:
            削除した件数
        """

    @abstractmethod
    def hit(self, key: str, limit: int, window_seconds: int, now: float) -> RateLimitResult:
        """
        1リクエストを計上し、許可/拒否を判定する（キー単位でアトミック）

        - レコードが無いかウィンドウ経過済み: count=1で新しいウィンドウを開始
        - count >= limit: 拒否。カウントもreset_atも変更しない
        - それ以外: countを1増やして許可
        """

    @abstractmethod
    def __len__(self) -> int:
        """保持しているキー数"""


class InMemoryRateLimitStore(RateLimitStore):
    """
    プロセス内のdictによる実装

    sweepはAPSchedulerのバックグラウンドスレッドから呼ばれるため、
    読み取り→比較→書き込みは全てグローバルロック下で行う。
    レコードは不変オブジェクトで、更新は常に置き換え。

    Attributes:
        max_keys: 保持するキー数の上限
        evict_ratio: 上限到達時に削除する古いキーの割合
    """

    def __init__(self, max_keys: int = 10_000, evict_ratio: float = 0.2) -> None:
        if max_keys <= 0:
            raise ValueError("max_keys must be positive")
        self.max_keys = max_keys
        self.evict_ratio = evict_ratio
        self._records: dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[RateLimitRecord]:
        with self._lock:
            return self._records.get(key)

    def set(self, key: str, record: RateLimitRecord) -> None:
        with self._lock:
            if key not in self._records:
                self._ensure_capacity()
            self._records[key] = record

    def delete(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def sweep(self, now: float) -> int:
        with self._lock:
            expired = [k for k, r in self._records.items() if now > r.reset_at]
            for key in expired:
                del self._records[key]
        return len(expired)

    def _ensure_capacity(self) -> None:
        """上限到達時に挿入順で古いキーを削除する（ロック保持中に呼ぶこと）"""
        if len(self._records) < self.max_keys:
            return
        evict_count = max(1, int(len(self._records) * self.evict_ratio))
        oldest = list(itertools.islice(self._records, evict_count))
        for key in oldest:
            del self._records[key]
        logger.warning(
            f"Rate limit store reached {self.max_keys} keys; evicted {len(oldest)} oldest"
        )

    def hit(self, key: str, limit: int, window_seconds: int, now: float) -> RateLimitResult:
        with self._lock:
            record = self._records.get(key)

            if record is None or now > record.reset_at:
                if record is None:
                    self._ensure_capacity()
                else:
                    # 新しいウィンドウは挿入順の末尾に置く
                    del self._records[key]
                if limit <= 0:
                    return RateLimitResult(False, limit, 0, now + window_seconds)
                record = RateLimitRecord(count=1, reset_at=now + window_seconds)
                self._records[key] = record
                return RateLimitResult(True, limit, limit - 1, record.reset_at)

            if record.count >= limit:
                return RateLimitResult(False, limit, 0, record.reset_at)

            record = RateLimitRecord(count=record.count + 1, reset_at=record.reset_at)
            self._records[key] = record
            return RateLimitResult(True, limit, limit - record.count, record.reset_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


# KEYS[1]=key, ARGV=limit, window_seconds, now
# 戻り値: {allowed(0/1), remaining, reset_at(文字列)}
_HIT_SCRIPT = """
local limit = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local now = tonumber(ARGV[3])
local count = tonumber(redis.call('HGET', KEYS[1], 'count'))
local reset_at = tonumber(redis.call('HGET', KEYS[1], 'reset_at'))
if (not count) or (not reset_at) or now > reset_at then
  if limit <= 0 then
    return {0, 0, tostring(now + window)}
  end
  reset_at = now + window
  redis.call('HSET', KEYS[1], 'count', 1, 'reset_at', tostring(reset_at))
  redis.call('EXPIRE', KEYS[1], math.ceil(window) + 1)
  return {1, limit - 1, tostring(reset_at)}
end
if count >= limit then
  return {0, 0, tostring(reset_at)}
end
count = redis.call('HINCRBY', KEYS[1], 'count', 1)
return {1, limit - count, tostring(reset_at)}
"""


class RedisRateLimitStore(RateLimitStore):
    """
    Redisによる実装

    hitはLuaスクリプトでアトミックに実行する。
    レコードはウィンドウ長のTTLで自動失効するため、sweepと上限管理はRedis側に任せる。
    """

    def __init__(
        self,
        client: "redis.Redis",
        prefix: str = "aurora:ratelimit:",
    ) -> None:
        self.client = client
        self.prefix = prefix
        self._hit_script = client.register_script(_HIT_SCRIPT)

    @classmethod
    def from_settings(cls, host: str, port: int, db: int) -> "RedisRateLimitStore":
        return cls(redis.Redis(host=host, port=port, db=db))

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[RateLimitRecord]:
        data = self.client.hgetall(self._key(key))
        if not data:
            return None
        try:
            return RateLimitRecord(
                count=int(data[b"count"]), reset_at=float(data[b"reset_at"])
            )
        except (KeyError, ValueError) as e:
            logger.error(f"Broken rate limit record for {key}: {e}")
            return None

    def set(self, key: str, record: RateLimitRecord) -> None:
        name = self._key(key)
        pipe = self.client.pipeline()
        pipe.hset(name, mapping={"count": record.count, "reset_at": str(record.reset_at)})
        pipe.expireat(name, int(record.reset_at) + 1)
        pipe.execute()

    def delete(self, key: str) -> None:
        self.client.delete(self._key(key))

    def sweep(self, now: float) -> int:
        return 0

    def hit(self, key: str, limit: int, window_seconds: int, now: float) -> RateLimitResult:
        allowed, remaining, reset_at = self._hit_script(
            keys=[self._key(key)], args=[limit, window_seconds, repr(float(now))]
        )
        if isinstance(reset_at, bytes):
            reset_at = reset_at.decode("ascii")
        return RateLimitResult(
            allowed=bool(int(allowed)),
            limit=limit,
            remaining=max(0, int(remaining)),
            reset_at=float(reset_at),
        )

    def __len__(self) -> int:
        return sum(1 for _ in self.client.scan_iter(match=f"{self.prefix}*"))
