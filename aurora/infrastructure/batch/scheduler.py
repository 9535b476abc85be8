"""バッチスケジューラー管理"""

from apscheduler.schedulers.background import BackgroundScheduler

from aurora.core.logging import get_logger

from .registry import TaskRegistry

logger = get_logger(__name__)


def create_scheduler(registry: TaskRegistry) -> BackgroundScheduler:
    """
    スケジューラーを作成し、登録されたタスクをセットアップする。

    Args:
        registry: 登録済みタスクのレジストリ

    Returns:
        BackgroundScheduler: タスクが登録されたスケジューラー
    """
    scheduler = BackgroundScheduler()

    for task_id, task_info in registry.get_all().items():
        scheduler.add_job(
            task_info["func"],
            trigger=task_info["trigger"],
            id=task_id,
            name=task_info["description"] or task_id,
            coalesce=True,
            max_instances=1,
        )
        logger.info(f"[SCHEDULER] Registered task: {task_id}")

    return scheduler


def start_scheduler(scheduler: BackgroundScheduler) -> None:
    """スケジューラーを起動し、次回実行時刻をログに出力する。"""
    scheduler.start()
    logger.info("[SCHEDULER] Started")

    for job in scheduler.get_jobs():
        logger.info(f"[SCHEDULER] {job.id} next run: {job.next_run_time}")


def stop_scheduler(scheduler: BackgroundScheduler) -> None:
    """スケジューラーを停止する。"""
    if scheduler.running:
        scheduler.shutdown(wait=False)
    logger.info("[SCHEDULER] Stopped")
