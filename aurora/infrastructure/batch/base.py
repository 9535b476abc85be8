"""バッチタスクの基底クラス"""

from abc import ABC, abstractmethod
from datetime import datetime

import sentry_sdk

from aurora.core.logging import get_logger


class BatchTask(ABC):
    """
    バッチタスクの基底クラス。

    サブクラスはexecute()を実装する。run()がログ出力・計測・
    Sentry送信を行う。
    """

    def __init__(self) -> None:
        self.logger = get_logger(__name__)

    @abstractmethod
    def execute(self) -> None:
        """タスク本体"""

    def on_failure(self, error: Exception) -> None:
        """
        タスク失敗時のフック。

        Args:
            error: 発生した例外
        """
        self.logger.error(f"Task failed: {error}", exc_info=True)

    def run(self) -> None:
        """
        execute()を実行する。

        Raises:
            Exception: execute()で発生した例外を再送出
        """
        start_time = datetime.now()
        task_name = self.__class__.__name__

        try:
            self.logger.debug(f"[BATCH] {task_name} start")
            self.execute()
            elapsed = datetime.now() - start_time
            self.logger.debug(f"[BATCH] {task_name} completed ({elapsed})")
        except Exception as e:
            self.on_failure(e)
            sentry_sdk.capture_exception(e)
            raise
