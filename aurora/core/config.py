from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging import get_logger

logger = get_logger(__name__)

# 本番用CSPディレクティブ
DEFAULT_CSP_DIRECTIVES: dict[str, list[str]] = {
    "default-src": ["'self'"],
    "script-src": ["'self'", "blob:"],
    "style-src": ["'self'", "'unsafe-inline'"],
    "img-src": ["'self'", "data:", "https:", "blob:"],
    "font-src": ["'self'", "data:", "https:"],
    "connect-src": ["'self'", "https:", "wss:", "ws:"],
    "worker-src": ["'self'", "blob:"],
    "frame-src": ["'none'"],
    "object-src": ["'none'"],
    "base-uri": ["'self'"],
    "form-action": ["'self'"],
    "media-src": ["'self'", "data:", "https:"],
}

# 開発環境ではインラインスクリプトとevalを許可
DEVELOPMENT_SCRIPT_SRC: list[str] = ["'self'", "'unsafe-inline'", "'unsafe-eval'", "blob:"]


def _split_csv(v: str | list[str] | None) -> list[str] | None:
    if v is None:
        return None
    if isinstance(v, list):
        return [str(i).strip() for i in v if str(i).strip()]
    if v == "":
        return []
    return [i.strip() for i in v.split(",") if i.strip()]


class Settings(BaseSettings):
    """
    アプリケーション設定
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # 未定義のフィールドを無視
    )

    ENV_MODE: Literal["development", "production", "test"] = "development"

    # CORS許可オリジン（同一オリジンは常に許可）
    BACKEND_CORS_ORIGINS: str | list[str] = []

    @field_validator("BACKEND_CORS_ORIGINS")
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str]) -> list[str]:
        origins = _split_csv(v) or []
        if "*" in origins:
            # ワイルドカードは許可しない（Originのエコーのみ）
            logger.warning("BACKEND_CORS_ORIGINS='*' is ignored")
            origins = [o for o in origins if o != "*"]
        return origins

    CSP_DIRECTIVES: Optional[dict[str, list[str]]] = None

    # 匿名セッション
    ANON_AUTH_SECRET: str = ""
    SESSION_COOKIE_NAME: str = "aurora_anon_session"
    SESSION_TTL_SECONDS: int = 60 * 60 * 12  # 12 hours

    # レート制限
    RATE_LIMIT_BACKEND: Literal["memory", "redis"] = "memory"
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_QUESTIONS: int = 5
    RATE_LIMIT_ANALYSIS: int = 3
    RATE_LIMIT_GENERAL: int = 60
    RATE_LIMIT_WHITELIST: str | list[str] | None = None
    RATE_LIMIT_MAX_KEYS: int = 10_000
    RATE_LIMIT_EVICT_RATIO: float = 0.2
    RATE_LIMIT_SWEEP_SECONDS: int = 60

    @field_validator("RATE_LIMIT_WHITELIST")
    @classmethod
    def assemble_whitelist(cls, v: str | list[str] | None) -> list[str] | None:
        return _split_csv(v)

    @field_validator("RATE_LIMIT_EVICT_RATIO")
    @classmethod
    def validate_evict_ratio(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("RATE_LIMIT_EVICT_RATIO must be in (0, 1]")
        return v

    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    # 管理パネル
    ADMIN_TOKEN: str = ""
    ADMIN_COOKIE_NAME: str = "aurora_admin_token"
    ADMIN_COOKIE_MAX_AGE: int = 60 * 60 * 8  # 8 hours

    # AIプロバイダー
    AI_SETTINGS_SECRET: str = ""

    @field_validator("AI_SETTINGS_SECRET")
    @classmethod
    def validate_ai_settings_secret(cls, v: str) -> str:
        """暗号化キー検証"""
        if not v:
            logger.warning(
                "AI_SETTINGS_SECRET is not set. Provider API keys set from the admin panel will not be stored."
            )
            return ""

        try:
            from cryptography.fernet import Fernet

            Fernet(v.encode())
        except Exception:
            raise ValueError(
                'Invalid AI_SETTINGS_SECRET format. Generate with: aurora-admin generate-secret'
            )

        return v

    AI_PROVIDER: str = "openai"
    AI_BASE_URL: str = ""
    AI_MODEL: str = ""
    AI_API_KEY: str = ""
    AI_TIMEOUT_SECONDS: float = 60.0

    # データ保存先・ロケール
    DATA_DIR: Path = Path("./data")
    SUPPORTED_LOCALES: str | list[str] = ["zh", "en", "ja"]
    DEFAULT_LOCALE: str = "zh"
    LOCALE_COOKIE_NAME: str = "aurora_locale"

    @field_validator("SUPPORTED_LOCALES")
    @classmethod
    def assemble_locales(cls, v: str | list[str]) -> list[str]:
        return _split_csv(v) or ["zh"]

    SENTRY_DSN: Optional[str] = None
    SENTRY_TRACES_SAMPLE_RATE: float = 1.0

    @field_validator("SENTRY_DSN")
    @classmethod
    def sentry_dsn_can_be_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        return v

    NEW_RELIC_LICENSE_KEY: Optional[str] = None
    NEW_RELIC_APP_NAME: str = "Aurora Personality"
    NEW_RELIC_HIGH_SECURITY: bool = False
    NEW_RELIC_MONITOR_MODE: bool = True

    @property
    def is_development(self) -> bool:
        """開発環境かどうか"""
        return self.ENV_MODE == "development"

    @property
    def is_production(self) -> bool:
        """本番環境かどうか"""
        return self.ENV_MODE == "production"

    @property
    def is_test(self) -> bool:
        """テスト環境かどうか"""
        return self.ENV_MODE == "test"

    @property
    def cors_origins(self) -> list[str]:
        """CORS許可オリジン一覧"""
        return list(self.BACKEND_CORS_ORIGINS)

    @property
    def locales(self) -> list[str]:
        """対応ロケール一覧"""
        return list(self.SUPPORTED_LOCALES)

    @property
    def rate_limit_whitelist(self) -> list[str]:
        """
        レート制限を免除するクライアントIP

        未設定の場合、開発環境ではループバックアドレスのみ
        """
        if self.RATE_LIMIT_WHITELIST is not None:
            return list(self.RATE_LIMIT_WHITELIST)
        if self.is_development:
            return ["127.0.0.1", "::1"]
        return []

    @property
    def csp_directives(self) -> dict[str, list[str]]:
        """CSPディレクティブ（ディレクティブ名 → 許可ソース）"""
        if self.CSP_DIRECTIVES:
            return self.CSP_DIRECTIVES
        directives = dict(DEFAULT_CSP_DIRECTIVES)
        if self.is_development:
            directives["script-src"] = DEVELOPMENT_SCRIPT_SRC
        return directives


@lru_cache
def get_settings() -> Settings:
    """
    アプリケーション設定を取得（キャッシュ）
    """
    return Settings()
