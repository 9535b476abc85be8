"""AIプロバイダー設定の管理API"""

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from aurora.core.config import Settings
from aurora.core.logging import get_logger
from aurora.domain.exceptions.base import BadRequestError, UpstreamError
from aurora.infrastructure.ai.client import AIClient
from aurora.infrastructure.ai.providers import (
    merge_ai_config,
    public_view,
    resolve_ai_config,
    sanitize_ai_config,
)
from aurora.infrastructure.storage import AISettingsStore
from aurora.infrastructure.storage.models import AIConfigInput
from aurora.presentation.api.deps import (
    get_ai_client,
    get_ai_settings_store,
    get_app_settings,
)
from aurora.presentation.responses import api_ok

router = APIRouter()
logger = get_logger(__name__)

PROVIDER_TEST_TIMEOUT_SECONDS = 25.0
PROVIDER_TEST_MESSAGES = [
    {"role": "system", "content": "Return exactly one token: OK"},
    {"role": "user", "content": "Health check"},
]
PREVIEW_LENGTH = 120


@router.get("/ai-config")
async def get_ai_config(
    store: AISettingsStore = Depends(get_ai_settings_store),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """現在有効な設定（APIキーは伏せ字）"""
    resolved = resolve_ai_config(settings, store.load())
    return api_ok({"config": public_view(resolved)})


@router.post("/ai-config")
async def update_ai_config(
    request: Request,
    store: AISettingsStore = Depends(get_ai_settings_store),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """
    設定を検証して保存する

    保存済みの設定に重ねてから検証し、呼び出しに必要な項目が
    揃わない場合は保存しない。
    """
    merged = merge_ai_config(store.load(), await _read_config(request))
    resolved = resolve_ai_config(settings, merged)

    missing = resolved.missing_fields()
    if missing:
        raise BadRequestError(
            "AI config is incomplete", details={"missing": missing}
        )

    store.save(merged)
    logger.info(f"AI provider config updated: provider={resolved.provider}")
    return api_ok(
        {"saved": True, "config": public_view(resolve_ai_config(settings, store.load()))}
    )


@router.post("/provider-test")
async def run_provider_test(
    request: Request,
    store: AISettingsStore = Depends(get_ai_settings_store),
    settings: Settings = Depends(get_app_settings),
    ai_client: AIClient = Depends(get_ai_client),
) -> JSONResponse:
    """
    保存前の設定でプロバイダーへ疎通確認する

    候補の設定は保存済みの設定に重ねて解決するが、保存はしない。
    """
    merged = merge_ai_config(store.load(), await _read_config(request))
    resolved = resolve_ai_config(settings, merged)

    missing = resolved.missing_fields()
    if missing:
        raise BadRequestError(
            "AI config is incomplete", details={"missing": missing}
        )

    try:
        completion = await ai_client.complete(
            PROVIDER_TEST_MESSAGES,
            temperature=0,
            max_tokens=8,
            timeout=PROVIDER_TEST_TIMEOUT_SECONDS,
            config=resolved,
        )
    except UpstreamError as e:
        logger.warning(
            f"Provider test failed: provider={resolved.provider} model={resolved.model}"
        )
        raise UpstreamError(
            e.message,
            details={"provider": resolved.provider, "model": resolved.model},
        ) from e

    return api_ok(
        {
            "provider": resolved.provider,
            "model": resolved.model,
            "preview": completion.text[:PREVIEW_LENGTH],
        }
    )


async def _read_config(request: Request) -> AIConfigInput:
    """本文の config を取り出して正規化する"""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequestError("Invalid JSON payload.")
    if not isinstance(payload, dict):
        raise BadRequestError("Invalid AI config payload.")
    return sanitize_ai_config(payload.get("config"))
