"""
AIプロバイダー連携
"""

from .client import AIClient, Completion
from .prompts import build_analysis_messages, build_question_messages, extract_json
from .providers import (
    PROVIDERS,
    ResolvedAIConfig,
    merge_ai_config,
    public_view,
    resolve_ai_config,
    sanitize_ai_config,
)

__all__ = [
    "AIClient",
    "Completion",
    "PROVIDERS",
    "ResolvedAIConfig",
    "build_analysis_messages",
    "build_question_messages",
    "extract_json",
    "merge_ai_config",
    "public_view",
    "resolve_ai_config",
    "sanitize_ai_config",
]
