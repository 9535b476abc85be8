"""レート制限ストアの期限切れレコード掃除タスク"""

from aurora.infrastructure.batch.base import BatchTask
from aurora.infrastructure.batch.registry import TaskRegistry
from aurora.infrastructure.rate_limit.limiter import RateLimiter

TASK_ID = "rate_limit_sweep"


class RateLimitSweepTask(BatchTask):
    """期限切れのウィンドウを削除する"""

    def __init__(self, limiter: RateLimiter) -> None:
        super().__init__()
        self.limiter = limiter
        self.last_removed = 0

    def execute(self) -> None:
        self.last_removed = self.limiter.sweep()
        if self.last_removed:
            self.logger.info(
                f"[BATCH] Swept {self.last_removed} expired rate limit records"
            )


def register_rate_limit_sweep(
    registry: TaskRegistry, limiter: RateLimiter, interval_seconds: float
) -> RateLimitSweepTask:
    task = RateLimitSweepTask(limiter)
    registry.register(
        task_id=TASK_ID,
        func=task.run,
        seconds=interval_seconds,
        description="Rate limit store sweep",
    )
    return task
