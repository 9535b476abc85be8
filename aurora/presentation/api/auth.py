"""旧ログアウトエンドポイント"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from aurora.core.config import Settings
from aurora.domain.exceptions.base import ErrorCode
from aurora.presentation.api.admin.auth import clear_cookie
from aurora.presentation.api.deps import get_app_settings
from aurora.presentation.responses import api_error

router = APIRouter()


@router.post("/logout")
async def deprecated_logout(settings: Settings = Depends(get_app_settings)) -> JSONResponse:
    """410を返し、管理者Cookieを削除する。/api/admin/logout を使うこと"""
    response = api_error(
        ErrorCode.DEPRECATED, "Deprecated endpoint. Use /api/admin/logout."
    )
    clear_cookie(response, settings.ADMIN_COOKIE_NAME, settings)
    return response
