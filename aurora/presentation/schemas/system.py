"""システム関連のスキーマ定義"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class HealthCheckResponse(BaseModel):
    """
    ヘルスチェックレスポンス

    Attributes:
        status: 全体的なヘルス状態
        timestamp: レスポンス生成時刻
        uptime_seconds: アプリケーション起動からの経過秒数
        environment: 実行環境（development/production/test）
        ai_configured: AIプロバイダーが利用可能か
    """

    status: Literal["ok"]
    timestamp: datetime
    uptime_seconds: float
    environment: str
    ai_configured: bool
