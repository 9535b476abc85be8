"""AI生成API関連のスキーマ定義"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from aurora.infrastructure.storage.models import Dimension


class Profile(BaseModel):
    """
    受検者のプロフィール

    未知のフィールドはプロンプトに使わないが、受け付ける。
    """

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = Field(default=None, max_length=100)
    age: Optional[Union[int, str]] = None
    gender: Optional[str] = Field(default=None, max_length=32)
    occupation: Optional[str] = Field(default=None, max_length=100)
    education: Optional[str] = Field(default=None, max_length=100)
    interests: Optional[str] = Field(default=None, max_length=500)
    workStyle: Optional[str] = Field(default=None, max_length=200)
    socialPreference: Optional[str] = Field(default=None, max_length=200)


class QuestionGenerationRequest(BaseModel):
    profile: Profile
    questionCount: int = Field(default=20, ge=1, le=100)
    locale: str = "zh"


class DimensionScore(BaseModel):
    percentFirst: float = Field(ge=0, le=100)
    percentSecond: float = Field(ge=0, le=100)
    winner: Optional[str] = None
    percent: Optional[float] = None


class MbtiResultPayload(BaseModel):
    type: str = Field(pattern=r"^[EI][SN][TF][JP]$")
    scores: dict[Dimension, DimensionScore]


class AnalysisRequest(BaseModel):
    profile: Profile
    mbtiResult: MbtiResultPayload
    locale: str = "zh"
