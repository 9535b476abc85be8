from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from aurora.core.config import Settings
from aurora.infrastructure.ai.client import AIClient
from aurora.presentation.api.deps import get_ai_client, get_app_settings
from aurora.presentation.responses import api_ok
from aurora.presentation.schemas.system import HealthCheckResponse

router = APIRouter()


@router.get("/health")
async def healthcheck(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    ai_client: AIClient = Depends(get_ai_client),
) -> JSONResponse:
    """
    ヘルスチェックエンドポイント

    - アプリケーションuptime
    - 環境情報
    - AIプロバイダー設定の有無
    """
    start_time = getattr(request.app.state, "start_time", None)
    uptime_seconds = 0.0
    if start_time:
        uptime_seconds = (datetime.now(timezone.utc) - start_time).total_seconds()

    health = HealthCheckResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=uptime_seconds,
        environment=settings.ENV_MODE,
        ai_configured=not ai_client.resolve().missing_fields(),
    )
    return api_ok(
        health.model_dump(mode="json"),
        headers={"Cache-Control": "no-store, no-cache, must-revalidate"},
    )
