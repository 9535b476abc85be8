"""
AI生成API

セッション必須（ゲートウェイで検証済み）。設問生成・分析・分析のストリーミング。
"""

import json
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from aurora.core.config import Settings
from aurora.core.logging import get_logger
from aurora.domain.exceptions.base import (
    InvalidLocaleError,
    UpstreamError,
)
from aurora.infrastructure.ai import (
    AIClient,
    Completion,
    build_analysis_messages,
    build_question_messages,
    extract_json,
)
from aurora.infrastructure.storage import StatsStore
from aurora.presentation.api.deps import get_ai_client, get_app_settings, get_stats_store
from aurora.presentation.responses import api_ok
from aurora.presentation.schemas.generation import AnalysisRequest, QuestionGenerationRequest

router = APIRouter()
logger = get_logger(__name__)

QUESTION_MAX_TOKENS = 6000
ANALYSIS_MAX_TOKENS = 3000
NDJSON_MEDIA_TYPE = "application/x-ndjson"


def _ensure_locale(locale: str, settings: Settings) -> None:
    if locale not in settings.locales:
        raise InvalidLocaleError(
            f"Unsupported locale: {locale}", details={"supported": settings.locales}
        )


def _record_usage(stats: StatsStore, endpoint: str, completion: Completion) -> None:
    stats.record_api_call(endpoint)
    stats.record_token_usage(completion.input_tokens, completion.output_tokens)


@router.post("/generate-questions")
async def generate_questions(
    payload: QuestionGenerationRequest,
    request: Request,
    ai_client: AIClient = Depends(get_ai_client),
    stats: StatsStore = Depends(get_stats_store),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """
    プロフィールに合わせた設問を生成する

    Raises:
        NotConfiguredError: AIプロバイダー未設定（503）
        UpstreamError: AI呼び出し失敗・応答を解析できない場合（502）
    """
    _ensure_locale(payload.locale, settings)
    messages = build_question_messages(
        payload.profile.model_dump(), payload.questionCount, payload.locale
    )
    completion = await ai_client.complete(
        messages, temperature=0.7, max_tokens=QUESTION_MAX_TOKENS
    )
    _record_usage(stats, "generate-questions", completion)

    parsed = extract_json(completion.text)
    questions = parsed.get("questions") if parsed else None
    if not isinstance(questions, list):
        logger.warning(
            f"Question generation returned unparsable content (session={request.state.session_id})"
        )
        raise UpstreamError("AI response could not be parsed")
    return api_ok({"questions": questions})


@router.post("/generate-analysis")
async def generate_analysis(
    payload: AnalysisRequest,
    ai_client: AIClient = Depends(get_ai_client),
    stats: StatsStore = Depends(get_stats_store),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """診断結果の分析レポートを生成する"""
    _ensure_locale(payload.locale, settings)
    messages = build_analysis_messages(
        payload.profile.model_dump(),
        payload.mbtiResult.model_dump(),
        payload.locale,
    )
    completion = await ai_client.complete(
        messages, temperature=0.7, max_tokens=ANALYSIS_MAX_TOKENS
    )
    _record_usage(stats, "generate-analysis", completion)

    parsed = extract_json(completion.text)
    if parsed is None:
        raise UpstreamError("AI response could not be parsed")
    return api_ok({"analysis": parsed.get("analysis", parsed)})


def _ndjson(event: dict) -> bytes:
    return (json.dumps(event, ensure_ascii=False) + "\n").encode("utf-8")


@router.post("/generate-analysis-stream")
async def generate_analysis_stream(
    payload: AnalysisRequest,
    ai_client: AIClient = Depends(get_ai_client),
    stats: StatsStore = Depends(get_stats_store),
    settings: Settings = Depends(get_app_settings),
) -> StreamingResponse:
    """
    分析レポートをNDJSONで逐次返す

    各行は {"type": "delta", "delta", "content"}、最後に {"type": "done", "content"}。
    ストリーム開始後の失敗は {"type": "error", "error"} 行で通知する。
    """
    _ensure_locale(payload.locale, settings)
    # ストリーム開始前に設定を検証し、未設定ならエラーエンベロープを返す
    ai_client.resolve().ensure_usable()

    messages = build_analysis_messages(
        payload.profile.model_dump(),
        payload.mbtiResult.model_dump(),
        payload.locale,
    )
    stats.record_api_call("generate-analysis-stream")

    async def events() -> AsyncIterator[bytes]:
        content = ""
        try:
            async for delta in ai_client.stream(messages, temperature=0.7):
                content += delta
                yield _ndjson({"type": "delta", "delta": delta, "content": content})
        except UpstreamError as e:
            logger.error(f"Analysis stream failed: {e.message}")
            yield _ndjson({"type": "error", "error": e.message})
            return
        yield _ndjson({"type": "done", "content": content})

    return StreamingResponse(
        events(),
        media_type=NDJSON_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
