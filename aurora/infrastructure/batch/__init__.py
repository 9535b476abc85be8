"""
バッチ処理
"""

from .base import BatchTask
from .registry import TaskRegistry
from .scheduler import create_scheduler, start_scheduler, stop_scheduler

__all__ = [
    "BatchTask",
    "TaskRegistry",
    "create_scheduler",
    "start_scheduler",
    "stop_scheduler",
]
