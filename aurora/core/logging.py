"""アプリケーション用のロギングユーティリティ。"""

import logging
import sys

HEALTHCHECK_PATHS = ("/api/health", "/api/v1/health")


def is_fastapi_context() -> bool:
    """
    FastAPI/uvicornコンテキストで実行中かどうかを判定する。

    Returns:
        bool: uvicornがロードされている場合True、そうでない場合False。
    """
    return "uvicorn" in sys.modules


def get_logger(name: str) -> logging.Logger:
    """
    ロガーインスタンスを取得する。

    uvicorn配下（Webサーバー）では"uvicorn"ロガーを返し、
    アクセスログと同じフォーマット・出力先に揃える。
    CLIやテストでは呼び出し元のモジュール名のロガーを返す。

    Args:
        name: ロガー名、通常は呼び出し元モジュールの__name__を指定。

    Returns:
        logging.Logger: 設定済みのロガーインスタンス。
    """
    if is_fastapi_context():
        return logging.getLogger("uvicorn")
    return logging.getLogger(name)


class HealthCheckFilter(logging.Filter):
    """ヘルスチェックのアクセスログを除外するフィルター"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(path in message for path in HEALTHCHECK_PATHS)


def install_access_log_filter() -> None:
    """uvicornのアクセスログにヘルスチェック除外フィルターを設定する"""
    access_logger = logging.getLogger("uvicorn.access")
    if not any(isinstance(f, HealthCheckFilter) for f in access_logger.filters):
        access_logger.addFilter(HealthCheckFilter())
