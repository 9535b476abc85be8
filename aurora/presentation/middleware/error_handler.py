"""エラーハンドリングミドルウェア"""

from collections.abc import Awaitable, Callable

import sentry_sdk
from fastapi import Request, Response

from aurora.core.logging import get_logger
from aurora.domain.exceptions.base import ErrorCode
from aurora.presentation.responses import api_error

logger = get_logger(__name__)


async def error_response_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """
    全ての未処理例外をキャッチしてエラーエンベロープで返す

    Args:
        request: HTTPリクエスト
        call_next: 次のミドルウェア/エンドポイント

    Returns:
        HTTPレスポンス
    """
    try:
        return await call_next(request)
    except Exception as e:
        sentry_sdk.capture_exception(e)
        logger.error(f"Unhandled exception: {str(e)}", exc_info=e)

        return api_error(
            ErrorCode.INTERNAL_ERROR,
            "Internal server error occurred",
        )
