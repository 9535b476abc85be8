"""
pytest設定と共通フィクスチャ

アプリケーションは明示的なテスト用設定から生成し、データは一時ディレクトリに書く。
"""

from pathlib import Path
from typing import Any, Callable, Generator

import pytest
from cryptography.fernet import Fernet
from fastapi import FastAPI
from fastapi.testclient import TestClient

from aurora.core.app_factory import create_app
from aurora.core.config import Settings

ADMIN_TOKEN = "test-admin-token"
SESSION_SECRET = "test-session-secret"


@pytest.fixture
def settings_factory(tmp_path: Path) -> Callable[..., Settings]:
    """
    テスト用設定を生成するファクトリー

    .envや環境変数の影響を受けないよう、必要な値はすべて明示する。
    """

    def factory(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "ENV_MODE": "test",
            "DATA_DIR": tmp_path / "data",
            "ANON_AUTH_SECRET": SESSION_SECRET,
            "ADMIN_TOKEN": ADMIN_TOKEN,
            "AI_SETTINGS_SECRET": Fernet.generate_key().decode(),
            "AI_PROVIDER": "openai",
            "AI_BASE_URL": "",
            "AI_MODEL": "",
            "AI_API_KEY": "",
            "BACKEND_CORS_ORIGINS": ["https://allowed.example.com"],
            "RATE_LIMIT_WHITELIST": [],
            "SENTRY_DSN": None,
            "NEW_RELIC_LICENSE_KEY": None,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return factory


@pytest.fixture
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    return settings_factory()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """
    テスト用FastAPIクライアント（lifespan実行あり）

    Yields:
        FastAPI TestClient
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Token": ADMIN_TOKEN}


@pytest.fixture
def session_client(client: TestClient) -> TestClient:
    """有効な匿名セッションCookieを保持したクライアント"""
    response = client.get("/api/health")
    assert response.status_code == 200
    assert client.cookies.get("aurora_anon_session")
    return client
