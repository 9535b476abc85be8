"""
AIプロバイダー定義と設定の解決

すべてOpenAI互換のChat Completions APIとして扱う。
"""

import re
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse

from aurora.core.config import Settings
from aurora.domain.exceptions.base import BadRequestError, NotConfiguredError
from aurora.infrastructure.storage.models import AIConfigInput

MAX_TEXT_LENGTH = 256
MAX_TOKEN_LENGTH = 512

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ProviderSpec:
    id: str
    label: str
    default_base_url: str
    default_model: str
    requires_api_key: bool = True


PROVIDERS: dict[str, ProviderSpec] = {
    spec.id: spec
    for spec in (
        ProviderSpec("openai", "OpenAI", "https://api.openai.com/v1", "gpt-4o-mini"),
        ProviderSpec(
            "openrouter", "OpenRouter", "https://openrouter.ai/api/v1", "openai/gpt-4o-mini"
        ),
        ProviderSpec("deepseek", "DeepSeek", "https://api.deepseek.com/v1", "deepseek-chat"),
        ProviderSpec("newapi", "NewAPI", "", ""),
        ProviderSpec("custom", "Custom (OpenAI compatible)", "", "", requires_api_key=False),
    )
}
DEFAULT_PROVIDER = "openai"


@dataclass(frozen=True)
class ResolvedAIConfig:
    """呼び出しに使う最終的なプロバイダー設定"""

    provider: str
    base_url: str
    model: str
    api_key: Optional[str] = None
    source: str = "env"
    updated_at: Optional[str] = None

    @property
    def spec(self) -> ProviderSpec:
        return PROVIDERS[self.provider]

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def missing_fields(self) -> list[str]:
        missing = []
        if not self.base_url:
            missing.append("AI_BASE_URL")
        if not self.model:
            missing.append("AI_MODEL")
        if self.spec.requires_api_key and not self.api_key:
            missing.append("AI_API_KEY")
        return missing

    def ensure_usable(self) -> None:
        """
        呼び出し可能か検証

        Raises:
            NotConfiguredError: 必須項目が欠けている場合
        """
        missing = self.missing_fields()
        if missing:
            raise NotConfiguredError(
                "AI provider is not configured", details={"missing": missing}
            )


def _sanitize_text(value: Any, max_length: int = MAX_TEXT_LENGTH) -> str:
    if not isinstance(value, str):
        return ""
    return _CONTROL_CHARS.sub("", value).strip()[:max_length]


def _sanitize_token(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _WHITESPACE.sub("", value)[:MAX_TOKEN_LENGTH]


def _sanitize_url(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        return ""
    raw = value.strip()
    parsed = urlparse(raw)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return ""
    return raw.rstrip("/")


def normalize_base_url(provider: str, base_url: str) -> str:
    """末尾スラッシュを除去し、NewAPIは /v1 を補う"""
    base_url = base_url.rstrip("/")
    if provider == "newapi" and base_url and not base_url.endswith("/v1"):
        base_url = f"{base_url}/v1"
    return base_url


def sanitize_ai_config(raw: Any) -> AIConfigInput:
    """
    管理パネルからの入力を検証・正規化

    Raises:
        BadRequestError: オブジェクトでない場合、または未知のプロバイダー
    """
    if not isinstance(raw, dict):
        raise BadRequestError("Invalid AI config payload.")

    provider = raw.get("provider")
    if provider is not None:
        provider = _sanitize_text(provider, 32)
        if provider not in PROVIDERS:
            raise BadRequestError(f"Unknown AI provider: {provider}")

    return AIConfigInput(
        provider=provider or None,
        baseUrl=_sanitize_url(raw.get("baseUrl")) or None,
        model=_sanitize_text(raw.get("model")) or None,
        apiKey=_sanitize_token(raw.get("apiKey")) or None,
    )


def merge_ai_config(
    previous: Optional[AIConfigInput], update: AIConfigInput
) -> AIConfigInput:
    """
    保存済み設定に更新を重ねる

    プロバイダーが変わりAPIキーが指定されない場合、旧キーは引き継がない。
    """
    merged = previous.model_dump(exclude_none=True) if previous else {}
    merged.update(update.model_dump(exclude_none=True))
    if (
        update.provider
        and update.provider != (previous.provider if previous else None)
        and not update.apiKey
    ):
        merged.pop("apiKey", None)
    merged.pop("updatedAt", None)
    return AIConfigInput(**merged)


def resolve_ai_config(
    settings: Settings, stored: Optional[AIConfigInput] = None
) -> ResolvedAIConfig:
    """管理パネルの保存値 > 環境変数 > プロバイダー既定値 の順で解決"""
    stored = stored or AIConfigInput()
    provider = stored.provider or settings.AI_PROVIDER or DEFAULT_PROVIDER
    if provider not in PROVIDERS:
        provider = DEFAULT_PROVIDER
    spec = PROVIDERS[provider]

    base_url = stored.baseUrl or settings.AI_BASE_URL or spec.default_base_url
    return ResolvedAIConfig(
        provider=provider,
        base_url=normalize_base_url(provider, base_url),
        model=stored.model or settings.AI_MODEL or spec.default_model,
        api_key=stored.apiKey or settings.AI_API_KEY or None,
        source="panel" if stored.updatedAt else "env",
        updated_at=stored.updatedAt,
    )


def mask_secret(value: Optional[str]) -> str:
    if not value:
        return ""
    if len(value) < 8:
        return "***"
    return f"{value[:4]}***{value[-2:]}"


def public_view(config: ResolvedAIConfig) -> dict[str, Any]:
    """APIキーを伏せた設定の表示用dict"""
    return {
        "provider": config.provider,
        "baseUrl": config.base_url,
        "model": config.model,
        "apiKeySet": bool(config.api_key),
        "apiKeyMasked": mask_secret(config.api_key),
        "source": config.source,
        "updatedAt": config.updated_at or "",
    }
