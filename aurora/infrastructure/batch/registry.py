"""バッチタスクの登録レジストリ"""

from collections.abc import Callable
from typing import Optional, TypedDict, Union

from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger


class TaskInfo(TypedDict):
    """タスク情報の型定義"""

    func: Callable[[], None]
    trigger: Union[CronTrigger, IntervalTrigger]
    description: str


class TaskRegistry:
    """
    バッチタスクの登録レジストリ。

    アプリケーションごとに生成し、スケジューラー作成時に参照する。

    Example:
        >>> registry = TaskRegistry()
        >>> registry.register(
        ...     task_id="rate_limit_sweep",
        ...     func=sweep,
        ...     seconds=60,
        ...     description="Rate limit sweep"
        ... )
    """

    def __init__(self) -> None:
        self.tasks: dict[str, TaskInfo] = {}

    def register(
        self,
        task_id: str,
        func: Callable[[], None],
        cron: Optional[str] = None,
        seconds: Optional[float] = None,
        description: str = "",
    ) -> None:
        """
        タスクを登録する。

        Args:
            task_id: タスクの一意な識別子
            func: 実行する関数
            cron: cron形式のスケジュール (例: "0 3 * * *" = 毎日3時)
            seconds: 一定間隔で実行する場合の間隔（秒）
            description: タスクの説明（ログ出力用）

        Raises:
            ValueError: cronとsecondsのどちらか一方だけが指定されていない場合、
                または無効なcron形式の場合
        """
        if (cron is None) == (seconds is None):
            raise ValueError("Specify exactly one of cron or seconds")

        trigger: Union[CronTrigger, IntervalTrigger]
        if cron is not None:
            trigger = CronTrigger.from_crontab(cron)
        else:
            trigger = IntervalTrigger(seconds=seconds)

        self.tasks[task_id] = {
            "func": func,
            "trigger": trigger,
            "description": description,
        }

    def get_all(self) -> dict[str, TaskInfo]:
        """登録された全タスクを取得する。"""
        return self.tasks
