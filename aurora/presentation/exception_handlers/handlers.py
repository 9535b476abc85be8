"""FastAPI例外ハンドラー"""

from typing import Awaitable, Callable, cast

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from aurora.domain.exceptions.base import (
    DomainError,
    MissingFieldsError,
    ValidationError,
)
from aurora.presentation.exceptions.api_errors import (
    APIError,
    code_for_status,
    domain_error_to_api_error,
)
from aurora.presentation.responses import api_error


async def domain_error_handler(request: Request, exc: DomainError) -> Response:
    """DomainError例外ハンドラ"""
    return domain_error_to_api_error(exc).to_json_response()


async def api_error_handler(request: Request, exc: APIError) -> Response:
    """APIError例外ハンドラ"""
    return exc.to_json_response()


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> Response:
    """HTTPException例外ハンドラ（ルーティングの404/405など）"""
    return api_error(
        code_for_status(exc.status_code),
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> Response:
    """
    バリデーションエラーハンドラ（Pydantic）

    必須項目の欠落のみの場合はMISSING_FIELDS、それ以外はINVALID_BODY
    """
    errors = exc.errors()
    details = [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in errors
    ]
    error: DomainError
    if errors and all(err["type"] == "missing" for err in errors):
        error = MissingFieldsError("Missing required fields", details=details)
    else:
        error = ValidationError("Invalid request body", details=details)
    return domain_error_to_api_error(error).to_json_response()


def register_exception_handlers(app: FastAPI) -> None:
    """
    FastAPIアプリケーションに例外ハンドラーを登録

    Args:
        app: FastAPIアプリケーションインスタンス
    """
    # Starletteの型定義との互換性のためキャスト
    handler_type = Callable[[Request, Exception], Awaitable[Response]]

    app.add_exception_handler(DomainError, cast(handler_type, domain_error_handler))
    app.add_exception_handler(APIError, cast(handler_type, api_error_handler))
    app.add_exception_handler(
        StarletteHTTPException, cast(handler_type, http_exception_handler)
    )
    app.add_exception_handler(
        RequestValidationError, cast(handler_type, validation_exception_handler)
    )
