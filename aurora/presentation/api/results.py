"""匿名診断結果の受付"""

import json
from typing import Any, Optional

import pydantic
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from aurora.core.logging import get_logger
from aurora.infrastructure.storage import ResultStore, StatsStore
from aurora.infrastructure.storage.models import DIMENSIONS, MBTI_TYPES, utcnow_iso
from aurora.presentation.api.deps import get_result_store, get_stats_store
from aurora.presentation.responses import api_ok

router = APIRouter()
logger = get_logger(__name__)


def _dimension_score(dimension: str, raw: dict[str, Any]) -> dict[str, Any]:
    """percentFirst/percentSecond から winner と percent を求める"""
    first = float(raw.get("percentFirst", 50))
    second = float(raw.get("percentSecond", 100 - first))
    winner = raw.get("winner") or (dimension[0] if first >= 50 else dimension[1])
    percent = raw.get("percent")
    if percent is None:
        percent = first if first >= 50 else second
    return {"winner": winner, "percent": float(percent)}


def build_result(body: Any) -> Optional[dict[str, Any]]:
    """
    送信本文を保存用のdictに変換

    Returns:
        保存するフィールド、不正な本文の場合はNone
    """
    if not isinstance(body, dict):
        return None
    result = body.get("result")
    if not isinstance(result, dict):
        return None
    mbti_type = result.get("type")
    scores = result.get("scores")
    if mbti_type not in MBTI_TYPES or not isinstance(scores, dict):
        return None
    if not all(isinstance(scores.get(d), dict) for d in DIMENSIONS):
        return None

    profile = body.get("profile") if isinstance(body.get("profile"), dict) else {}
    locale = body.get("locale")
    return {
        "timestamp": utcnow_iso(),
        "mbtiType": mbti_type,
        "locale": locale if isinstance(locale, str) and locale else "unknown",
        "scores": {d: _dimension_score(d, scores[d]) for d in DIMENSIONS},
        "ageGroup": profile.get("ageGroup"),
        "gender": profile.get("gender"),
    }


@router.post("/submit")
async def submit_result(
    request: Request,
    results: ResultStore = Depends(get_result_store),
    stats: StatsStore = Depends(get_stats_store),
) -> JSONResponse:
    """
    匿名の診断結果を受け付ける

    本文の内容に関わらず常に成功を返す（受付可否をクライアントに見せない）。
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return api_ok()

    try:
        fields = build_result(body)
        if fields is not None:
            results.append(fields)
            stats.record_test_completion()
    except (ValueError, TypeError, pydantic.ValidationError) as e:
        logger.info(f"Ignored malformed result submission: {type(e).__name__}")

    return api_ok()
