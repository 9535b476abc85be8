"""管理API関連のスキーマ定義"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from aurora.infrastructure.storage.models import StoredQuestion


class LoginRequest(BaseModel):
    token: str = Field(min_length=1)


class QuestionImportRequest(BaseModel):
    """設問の一括取り込み"""

    questions: list[StoredQuestion]


class QuestionUpdateRequest(BaseModel):
    """設問の部分更新（指定されたフィールドのみ更新）"""

    locale: Optional[str] = None
    text: Optional[str] = None
    dimension: Optional[str] = None
    agree: Optional[str] = None
    contexts: Optional[list[str]] = None
    ageGroups: Optional[list[str]] = None


class AIConfigUpdateRequest(BaseModel):
    config: dict[str, Any]
