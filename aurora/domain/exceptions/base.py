"""
ドメイン層の例外クラス

ビジネスロジックで発生するエラーを表現する純粋なPython例外。
フレームワークに依存しない。
"""

from enum import Enum
from typing import Any, Optional, Union

ErrorDetails = Optional[Union[str, dict[str, Any], list[dict[str, Any]]]]


class ErrorCode(str, Enum):
    """
    APIエラーコード（閉じた列挙）

    クライアントが機械的に判別できる識別子。
    HTTPステータスとの対応はPresentation層で一意に定義する。
    """

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    SESSION_REQUIRED = "SESSION_REQUIRED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    UNPROCESSABLE_ENTITY = "UNPROCESSABLE_ENTITY"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    DEPRECATED = "DEPRECATED"
    INVALID_BODY = "INVALID_BODY"
    MISSING_FIELDS = "MISSING_FIELDS"
    INVALID_LOCALE = "INVALID_LOCALE"
    IMPORT_ERROR = "IMPORT_ERROR"


class DomainError(Exception):
    """
    ドメイン層のベース例外

    Attributes:
        message: エラーメッセージ
        code: エラーコード
        details: エラーの詳細情報（オプション）
    """

    default_message: str = "Internal error"
    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        details: ErrorDetails = None,
    ) -> None:
        """
        Args:
            message: エラーメッセージ（省略時はクラスの既定値）
            code: エラーコード（省略時はクラスの既定値）
            details: エラーの詳細情報（オプション）
        """
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details
        super().__init__(self.message)


class BadRequestError(DomainError):
    """不正なリクエストエラー"""

    default_message = "Bad request"
    default_code = ErrorCode.BAD_REQUEST


class MissingFieldsError(BadRequestError):
    """必須フィールドの欠落"""

    default_message = "Required fields are missing"
    default_code = ErrorCode.MISSING_FIELDS


class ValidationError(BadRequestError):
    """バリデーションエラー"""

    default_message = "Validation error"
    default_code = ErrorCode.INVALID_BODY


class InvalidLocaleError(BadRequestError):
    """未対応のロケール"""

    default_message = "Unsupported locale"
    default_code = ErrorCode.INVALID_LOCALE


class ImportFailedError(BadRequestError):
    default_message = "Import failed"
    default_code = ErrorCode.IMPORT_ERROR


class UnauthorizedError(DomainError):
    """認証エラー"""

    default_message = "Unauthorized"
    default_code = ErrorCode.UNAUTHORIZED


class NotFoundError(DomainError):
    """リソースが見つからない場合のエラー"""

    default_message = "Resource not found"
    default_code = ErrorCode.NOT_FOUND


class NotConfiguredError(DomainError):
    """サーバー側で機能が設定されていない"""

    default_message = "Feature is not configured on server"
    default_code = ErrorCode.NOT_CONFIGURED


class UpstreamError(DomainError):
    """外部AIプロバイダーの呼び出し失敗"""

    default_message = "Upstream provider request failed"
    default_code = ErrorCode.UPSTREAM_ERROR
