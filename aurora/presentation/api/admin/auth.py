"""管理者ログイン・ログアウト"""

import json

from fastapi import APIRouter, Depends, Request, Response

from aurora.core.config import Settings
from aurora.core.logging import get_logger
from aurora.domain.exceptions.base import (
    BadRequestError,
    NotConfiguredError,
    UnauthorizedError,
)
from aurora.infrastructure.security.admin_auth import AdminAuthorizer
from aurora.presentation.api.deps import get_admin_authorizer, get_app_settings
from aurora.presentation.responses import api_ok

router = APIRouter()
logger = get_logger(__name__)


def clear_cookie(response: Response, name: str, settings: Settings) -> None:
    response.set_cookie(
        key=name,
        value="",
        max_age=0,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


@router.post("/login")
async def login(
    request: Request,
    authorizer: AdminAuthorizer = Depends(get_admin_authorizer),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """
    管理者トークンを検証し、管理者Cookieを設定する

    - 未設定: 503 NOT_CONFIGURED
    - JSON不正: 400 BAD_REQUEST
    - トークン不一致: 401 UNAUTHORIZED
    """
    if not authorizer.is_configured():
        raise NotConfiguredError("ADMIN_TOKEN is not configured on server.")

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequestError("Invalid JSON payload.")

    token = payload.get("token") if isinstance(payload, dict) else None
    if not isinstance(token, str) or not authorizer.validate(token):
        logger.warning("Admin login failed")
        raise UnauthorizedError("Invalid admin token.")

    response = api_ok()
    response.set_cookie(
        key=authorizer.cookie_name,
        value=token.strip(),
        max_age=settings.ADMIN_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    return response


@router.post("/logout")
async def logout(settings: Settings = Depends(get_app_settings)) -> Response:
    """管理者Cookieを削除する（本文不要）"""
    response = api_ok()
    clear_cookie(response, settings.ADMIN_COOKIE_NAME, settings)
    return response
