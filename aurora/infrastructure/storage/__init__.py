"""
JSONファイルストア
"""

from .ai_settings import AISettingsStore
from .json_store import JsonFileStore
from .models import (
    DIMENSIONS,
    MBTI_TYPES,
    AIConfigInput,
    AnonymousResult,
    PagedResults,
    QuestionFields,
    StatsData,
    StoredAIConfig,
    StoredQuestion,
)
from .questions import QuestionStore
from .results import ResultStore
from .stats import StatsStore

__all__ = [
    "AISettingsStore",
    "AIConfigInput",
    "AnonymousResult",
    "DIMENSIONS",
    "JsonFileStore",
    "MBTI_TYPES",
    "PagedResults",
    "QuestionFields",
    "QuestionStore",
    "ResultStore",
    "StatsData",
    "StatsStore",
    "StoredAIConfig",
    "StoredQuestion",
]
