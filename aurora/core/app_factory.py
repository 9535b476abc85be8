"""FastAPIアプリケーションファクトリー"""

from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from aurora.core.config import Settings, get_settings
from aurora.core.lifespan import lifespan
from aurora.core.logging import get_logger, install_access_log_filter
from aurora.core.monitoring import init_monitoring
from aurora.infrastructure.ai.client import AIClient
from aurora.infrastructure.rate_limit import create_rate_limiter
from aurora.infrastructure.security import (
    AdminAuthorizer,
    SecretBox,
    SecretProvider,
    SessionTokenCodec,
)
from aurora.infrastructure.storage import (
    AISettingsStore,
    QuestionStore,
    ResultStore,
    StatsStore,
)
from aurora.presentation.api import api_router
from aurora.presentation.exception_handlers import register_exception_handlers
from aurora.presentation.middleware import (
    AdmissionMiddleware,
    error_response_middleware,
)
from aurora.presentation.pages.locale import LocaleResolver
from aurora.presentation.pages.views import router as pages_router

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    FastAPIアプリケーションを生成

    Args:
        settings: アプリケーション設定（省略時は環境変数から読み込む）

    Returns:
        FastAPIアプリケーションインスタンス
    """
    settings = settings or get_settings()

    app_params: dict[str, Any] = {
        "title": "Aurora Personality",
        "description": "MBTI性格診断アプリケーションのAPI",
        "version": "0.1.0",
        "lifespan": lifespan,
    }

    # 本番環境ではドキュメントを無効化
    if settings.is_production:
        app_params["docs_url"] = None
        app_params["redoc_url"] = None
        app_params["openapi_url"] = None

    app = FastAPI(**app_params)

    init_monitoring(settings)
    install_access_log_filter()

    # サービス
    codec = SessionTokenCodec(
        SecretProvider(settings.ANON_AUTH_SECRET),
        ttl_seconds=settings.SESSION_TTL_SECONDS,
    )
    rate_limiter = create_rate_limiter(settings)
    ai_settings_store = AISettingsStore(
        settings.DATA_DIR, SecretBox(settings.AI_SETTINGS_SECRET)
    )

    app.state.settings = settings
    app.state.session_codec = codec
    app.state.rate_limiter = rate_limiter
    app.state.question_store = QuestionStore(settings.DATA_DIR)
    app.state.result_store = ResultStore(settings.DATA_DIR)
    app.state.stats_store = StatsStore(settings.DATA_DIR)
    app.state.ai_settings_store = ai_settings_store
    app.state.ai_client = AIClient(settings, ai_settings_store)
    app.state.admin_authorizer = AdminAuthorizer(
        settings.ADMIN_TOKEN, settings.ADMIN_COOKIE_NAME
    )
    app.state.templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    # 例外ハンドラー登録
    register_exception_handlers(app)

    # ミドルウェア登録（後に登録したものが外側）
    app.middleware("http")(error_response_middleware)
    app.add_middleware(
        AdmissionMiddleware,
        settings=settings,
        codec=codec,
        limiter=rate_limiter,
        locale_resolver=LocaleResolver(
            settings.locales, settings.DEFAULT_LOCALE, settings.LOCALE_COOKIE_NAME
        ),
    )

    # ルーター登録
    app.include_router(api_router)
    app.include_router(pages_router)

    return app
