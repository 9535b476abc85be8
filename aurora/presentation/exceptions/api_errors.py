"""
Presentation層のAPIエラークラス

FastAPI/Pydanticに依存するAPIエラークラス。
ドメインエラーをHTTPレスポンス（エラーエンベロープ）に変換する。
"""

from typing import Literal, Optional

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ...domain.exceptions.base import DomainError, ErrorCode, ErrorDetails

API_VERSION = "v1"

# エラーコード → HTTPステータス（1対1）
STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_BODY: status.HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_FIELDS: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_LOCALE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.IMPORT_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.SESSION_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.METHOD_NOT_ALLOWED: status.HTTP_405_METHOD_NOT_ALLOWED,
    ErrorCode.DEPRECATED: status.HTTP_410_GONE,
    ErrorCode.UNSUPPORTED_MEDIA_TYPE: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    ErrorCode.UNPROCESSABLE_ENTITY: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.TOO_MANY_REQUESTS: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.UPSTREAM_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.SERVICE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.NOT_CONFIGURED: status.HTTP_503_SERVICE_UNAVAILABLE,
}

# FastAPI/Starletteが送出するHTTPExceptionのステータス → エラーコード
CODE_BY_STATUS: dict[int, ErrorCode] = {
    status.HTTP_400_BAD_REQUEST: ErrorCode.BAD_REQUEST,
    status.HTTP_401_UNAUTHORIZED: ErrorCode.UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN: ErrorCode.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.METHOD_NOT_ALLOWED,
    status.HTTP_410_GONE: ErrorCode.DEPRECATED,
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: ErrorCode.UNSUPPORTED_MEDIA_TYPE,
    status.HTTP_422_UNPROCESSABLE_ENTITY: ErrorCode.UNPROCESSABLE_ENTITY,
    status.HTTP_429_TOO_MANY_REQUESTS: ErrorCode.TOO_MANY_REQUESTS,
    status.HTTP_502_BAD_GATEWAY: ErrorCode.UPSTREAM_ERROR,
    status.HTTP_503_SERVICE_UNAVAILABLE: ErrorCode.SERVICE_UNAVAILABLE,
}


def status_for(code: ErrorCode) -> int:
    """エラーコードに対応するHTTPステータスを返す"""
    return STATUS_BY_CODE[code]


def code_for_status(status_code: int) -> ErrorCode:
    """HTTPステータスに対応するエラーコードを返す（未知の場合はステータス帯から推定）"""
    if status_code in CODE_BY_STATUS:
        return CODE_BY_STATUS[status_code]
    if status_code >= 500:
        return ErrorCode.INTERNAL_ERROR
    return ErrorCode.BAD_REQUEST


class ErrorBody(BaseModel):
    """
    エラー本体

    Attributes:
        code: エラーコード
        message: エラーメッセージ
        details: エラーの詳細情報（オプション）
    """

    code: ErrorCode
    message: str
    details: ErrorDetails = None


class ErrorResponse(BaseModel):
    """
    標準エラーレスポンス（エラーエンベロープ）

    全APIの非2xxレスポンスはこの形式のみ。

    Attributes:
        success: 常にFalse
        version: APIバージョン
        error: エラー本体
    """

    success: Literal[False] = False
    version: str = API_VERSION
    error: ErrorBody

    def to_content(self) -> dict:
        """JSONシリアライズ用のdictを返す（detailsが空の場合は省略）"""
        content = self.model_dump(mode="json")
        if content["error"].get("details") is None:
            content["error"].pop("details", None)
        return content


class APIError(HTTPException):
    """
    API エラーの基底クラス

    FastAPIのHTTPExceptionを継承し、エラーコードからHTTPステータスを決定する。

    Attributes:
        error_code: エラーコード
        error_message: エラーメッセージ
        details: エラーの詳細情報
    """

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    error_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: ErrorDetails = None,
        code: Optional[ErrorCode] = None,
    ) -> None:
        """
        Args:
            message: エラーメッセージ（オプション）
            details: エラーの詳細情報（オプション）
            code: エラーコード（オプション、省略時はクラスの既定値）
        """
        self.error_code = code or self.error_code
        self.error_message = message or self.error_message
        self.details = details
        super().__init__(
            status_code=status_for(self.error_code), detail=self.error_message
        )

    def to_response(self) -> ErrorResponse:
        """
        標準エラーレスポンス形式に変換

        Returns:
            ErrorResponse: 標準エラーレスポンス
        """
        return ErrorResponse(
            error=ErrorBody(
                code=self.error_code, message=self.error_message, details=self.details
            )
        )

    def to_json_response(self) -> JSONResponse:
        """エラーエンベロープのJSONResponseに変換"""
        return JSONResponse(
            content=self.to_response().to_content(),
            status_code=self.status_code,
            headers=self.headers,
        )


def domain_error_to_api_error(domain_error: DomainError) -> APIError:
    """
    ドメインエラーをAPIエラーに変換

    HTTPステータスはエラーコードから一意に決まる。

    Args:
        domain_error: ドメイン層のエラー

    Returns:
        APIError: API層のエラー

    Examples:
        >>> from aurora.domain.exceptions.base import NotFoundError
        >>> api_err = domain_error_to_api_error(NotFoundError("Question not found"))
        >>> api_err.status_code
        404
    """
    return APIError(
        message=domain_error.message,
        details=domain_error.details,
        code=domain_error.code,
    )
