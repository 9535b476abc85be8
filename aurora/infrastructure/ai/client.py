"""
OpenAI互換 Chat Completions クライアント
"""

import json
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional, Union

import httpx

from aurora.core.config import Settings
from aurora.core.logging import get_logger
from aurora.domain.exceptions.base import UpstreamError
from aurora.infrastructure.storage.ai_settings import AISettingsStore

from .providers import ResolvedAIConfig, resolve_ai_config

logger = get_logger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"

_DONE = object()


@dataclass
class Completion:
    text: str
    usage: dict[str, int] = field(default_factory=dict)

    @property
    def input_tokens(self) -> int:
        return self.usage.get("prompt_tokens", 0)

    @property
    def output_tokens(self) -> int:
        return self.usage.get("completion_tokens", 0)


class AIClient:
    """
    AIプロバイダー呼び出し

    設定は呼び出しごとに解決するため、管理パネルでの変更は即座に反映される。
    """

    def __init__(
        self,
        settings: Settings,
        settings_store: Optional[AISettingsStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.settings_store = settings_store
        self.transport = transport

    def resolve(self) -> ResolvedAIConfig:
        stored = self.settings_store.load() if self.settings_store else None
        return resolve_ai_config(self.settings, stored)

    def _headers(self, config: ResolvedAIConfig) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        return headers

    def _client(self, timeout: Optional[float]) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout or self.settings.AI_TIMEOUT_SECONDS,
            transport=self.transport,
        )

    @staticmethod
    def _body(
        config: ResolvedAIConfig,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: Optional[int],
        stream: bool,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": config.model,
            "messages": messages,
            "temperature": temperature,
            "stream": stream,
        }
        if max_tokens:
            body["max_tokens"] = max_tokens
        return body

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        config: Optional[ResolvedAIConfig] = None,
    ) -> Completion:
        """
        一括で応答を取得

        Args:
            config: 指定時は保存済み設定の代わりにこの設定で呼び出す

        Raises:
            NotConfiguredError: プロバイダーが未設定の場合
            UpstreamError: 通信エラー、非2xx応答、応答形式が不正な場合
        """
        config = config or self.resolve()
        config.ensure_usable()
        body = self._body(config, messages, temperature, max_tokens, stream=False)

        try:
            async with self._client(timeout) as client:
                response = await client.post(
                    config.chat_url, json=body, headers=self._headers(config)
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"AI provider {config.provider} returned {e.response.status_code}"
            )
            raise UpstreamError(
                f"AI provider returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"AI provider {config.provider} request failed: {e}")
            raise UpstreamError("AI provider request failed") from e
        except ValueError as e:
            raise UpstreamError("AI provider returned invalid JSON") from e

        try:
            text = payload["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamError("AI provider returned an unexpected response") from e

        usage = payload.get("usage") or {}
        return Completion(
            text=text,
            usage={k: v for k, v in usage.items() if isinstance(v, int)},
        )

    async def stream(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> AsyncIterator[str]:
        """
        SSEで応答のテキスト差分を順に返す

        Raises:
            NotConfiguredError: プロバイダーが未設定の場合
            UpstreamError: 通信エラー、非2xx応答の場合
        """
        config = self.resolve()
        config.ensure_usable()
        body = self._body(config, messages, temperature, max_tokens, stream=True)

        try:
            async with self._client(timeout) as client:
                async with client.stream(
                    "POST", config.chat_url, json=body, headers=self._headers(config)
                ) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        raise UpstreamError(
                            f"AI provider returned HTTP {response.status_code}"
                        )
                    async for line in response.aiter_lines():
                        delta = _parse_sse_line(line)
                        if delta is None:
                            continue
                        if delta is _DONE:
                            return
                        yield delta
        except httpx.HTTPError as e:
            logger.error(f"AI provider {config.provider} stream failed: {e}")
            raise UpstreamError("AI provider stream failed") from e


def _parse_sse_line(line: str) -> Union[str, object, None]:
    """
    SSEの1行からテキスト差分を取り出す

    Returns:
        差分文字列、終端なら_DONE、無関係な行ならNone
    """
    line = line.strip()
    if not line.startswith(SSE_DATA_PREFIX):
        return None
    data = line[len(SSE_DATA_PREFIX) :].strip()
    if not data:
        return None
    if data == SSE_DONE:
        return _DONE
    try:
        chunk = json.loads(data)
        content = chunk["choices"][0]["delta"].get("content")
    except (ValueError, KeyError, IndexError, TypeError, AttributeError):
        return None
    return content or None
