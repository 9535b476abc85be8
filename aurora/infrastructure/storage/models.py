"""JSONストアに保存するデータのスキーマ"""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field

Dimension = Literal["EI", "SN", "TF", "JP"]
Letter = Literal["E", "I", "S", "N", "T", "F", "J", "P"]

MBTI_TYPES: tuple[str, ...] = (
    "INTJ", "INTP", "ENTJ", "ENTP",
    "INFJ", "INFP", "ENFJ", "ENFP",
    "ISTJ", "ISFJ", "ESTJ", "ESFJ",
    "ISTP", "ISFP", "ESTP", "ESFP",
)
DIMENSIONS: tuple[Dimension, ...] = ("EI", "SN", "TF", "JP")


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class QuestionFields(BaseModel):
    """設問の編集可能なフィールド"""

    locale: str
    text: str = Field(min_length=1, max_length=500)
    dimension: Dimension
    agree: Letter
    contexts: Optional[list[str]] = None
    ageGroups: Optional[list[str]] = None


class StoredQuestion(QuestionFields):
    """題庫に保存された設問"""

    id: str


class QuestionsFile(BaseModel):
    version: int = 1
    updatedAt: str = Field(default_factory=utcnow_iso)
    questions: list[StoredQuestion] = Field(default_factory=list)


class DimensionResult(BaseModel):
    winner: str
    percent: float


class AnonymousResult(BaseModel):
    """匿名で収集した診断結果"""

    id: str
    timestamp: str
    mbtiType: str
    locale: str
    scores: dict[Dimension, DimensionResult]
    ageGroup: Optional[str] = None
    gender: Optional[str] = None


class ResultsFile(BaseModel):
    results: list[AnonymousResult] = Field(default_factory=list)


class PagedResults(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int
    results: list[AnonymousResult]


class DailyStats(BaseModel):
    calls: int = 0
    tests: int = 0


class TokenUsage(BaseModel):
    input: int = 0
    output: int = 0


class StatsData(BaseModel):
    """API利用統計"""

    apiCalls: dict[str, int] = Field(default_factory=dict)
    tokenUsage: TokenUsage = Field(default_factory=TokenUsage)
    testCompletions: int = 0
    daily: dict[str, DailyStats] = Field(default_factory=dict)


class StoredAIConfig(BaseModel):
    """管理パネルから保存されたAIプロバイダー設定"""

    provider: Optional[str] = None
    baseUrl: Optional[str] = None
    model: Optional[str] = None
    apiKeyEncrypted: Optional[str] = None
    updatedAt: Optional[str] = None


class AIConfigInput(BaseModel):
    """復号済みのAIプロバイダー設定（APIキーは平文）"""

    provider: Optional[str] = None
    baseUrl: Optional[str] = None
    model: Optional[str] = None
    apiKey: Optional[str] = None
    updatedAt: Optional[str] = None
