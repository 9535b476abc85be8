"""APIレスポンスエンベロープ"""

from typing import Any, Mapping, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from aurora.domain.exceptions.base import ErrorCode, ErrorDetails
from aurora.presentation.exceptions.api_errors import (
    API_VERSION,
    ErrorBody,
    ErrorResponse,
    status_for,
)


def api_ok(
    payload: Optional[Mapping[str, Any]] = None,
    status_code: int = 200,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """
    成功レスポンスを生成

    本文は {"success": true, "version": "v1", ...payload} の形式。

    Args:
        payload: 追加フィールド
        status_code: HTTPステータス（2xx）
        headers: 追加ヘッダー

    Returns:
        JSONResponse
    """
    content: dict[str, Any] = {"success": True, "version": API_VERSION}
    content.update(jsonable_encoder(dict(payload or {})))
    return JSONResponse(content=content, status_code=status_code, headers=headers)


def error_content(
    code: ErrorCode, message: str, details: ErrorDetails = None
) -> dict[str, Any]:
    """エラーエンベロープ本文を生成"""
    return ErrorResponse(
        error=ErrorBody(code=code, message=message, details=details)
    ).to_content()


def api_error(
    code: ErrorCode,
    message: str,
    details: ErrorDetails = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """
    エラーレスポンスを生成

    HTTPステータスはエラーコードから決まるため、呼び出し側では指定しない。

    Args:
        code: エラーコード
        message: エラーメッセージ
        details: エラーの詳細情報（オプション）
        headers: 追加ヘッダー

    Returns:
        JSONResponse
    """
    return JSONResponse(
        content=error_content(code, message, details),
        status_code=status_for(code),
        headers=headers,
    )
