"""
例外ハンドラー
"""

from .handlers import register_exception_handlers

__all__ = ["register_exception_handlers"]
