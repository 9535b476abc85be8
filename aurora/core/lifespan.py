"""アプリケーションライフサイクル管理"""

import contextlib
from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import FastAPI

from aurora.core.logging import get_logger
from aurora.infrastructure.batch.registry import TaskRegistry
from aurora.infrastructure.batch.scheduler import (
    create_scheduler,
    start_scheduler,
    stop_scheduler,
)
from aurora.infrastructure.batch.tasks import register_rate_limit_sweep

logger = get_logger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    アプリケーションのライフサイクル管理

    起動時:
    - 起動時刻の記録
    - データディレクトリの作成
    - レート制限の掃除タスク登録
    - スケジューラー起動

    シャットダウン時:
    - スケジューラー停止
    """
    settings = app.state.settings

    # 起動時刻を記録（healthcheckのuptime計算用）
    app.state.start_time = datetime.now(timezone.utc)

    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    logger.info(f"Data directory: {settings.DATA_DIR}")

    registry = TaskRegistry()
    register_rate_limit_sweep(
        registry, app.state.rate_limiter, settings.RATE_LIMIT_SWEEP_SECONDS
    )

    scheduler = create_scheduler(registry)
    app.state.scheduler = scheduler
    start_scheduler(scheduler)

    yield

    # シャットダウン
    stop_scheduler(scheduler)
