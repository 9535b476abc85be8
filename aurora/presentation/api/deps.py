"""ルートハンドラー用のdependency"""

from fastapi import Depends, Request

from aurora.core.config import Settings
from aurora.domain.exceptions.base import NotConfiguredError, UnauthorizedError
from aurora.infrastructure.ai.client import AIClient
from aurora.infrastructure.security.admin_auth import AdminAuthorizer
from aurora.infrastructure.storage import (
    AISettingsStore,
    QuestionStore,
    ResultStore,
    StatsStore,
)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_question_store(request: Request) -> QuestionStore:
    return request.app.state.question_store


def get_result_store(request: Request) -> ResultStore:
    return request.app.state.result_store


def get_stats_store(request: Request) -> StatsStore:
    return request.app.state.stats_store


def get_ai_settings_store(request: Request) -> AISettingsStore:
    return request.app.state.ai_settings_store


def get_ai_client(request: Request) -> AIClient:
    return request.app.state.ai_client


def get_admin_authorizer(request: Request) -> AdminAuthorizer:
    return request.app.state.admin_authorizer


def require_admin(
    request: Request, authorizer: AdminAuthorizer = Depends(get_admin_authorizer)
) -> None:
    """
    管理者認可のdependency

    Raises:
        NotConfiguredError: ADMIN_TOKENが未設定の場合（503）
        UnauthorizedError: 認可されていない場合（401）
    """
    if not authorizer.is_configured():
        raise NotConfiguredError("ADMIN_TOKEN is not configured on server.")
    if not authorizer.is_authorized(request):
        raise UnauthorizedError("Unauthorized")
