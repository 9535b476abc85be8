"""
管理APIの統合テスト
"""

import json
from typing import Callable, Optional

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from aurora.core.app_factory import create_app
from aurora.core.config import Settings
from aurora.infrastructure.ai.client import AIClient

QUESTION = {"locale": "zh", "text": "我喜欢和朋友聚会", "dimension": "EI", "agree": "E"}


class TestAdminAuth:
    """ログイン・ログアウト・認可のテスト"""

    def test_login_sets_cookie(self, client: TestClient) -> None:
        """正しいトークンでログインすると管理者Cookieが設定されること"""
        response = client.post("/api/admin/login", json={"token": "test-admin-token"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "version": "v1"}
        assert "aurora_admin_token" in response.cookies

        questions = client.get("/api/admin/questions")
        assert questions.status_code == 200

    def test_login_wrong_token(self, client: TestClient) -> None:
        """トークン不一致は401"""
        response = client.post("/api/admin/login", json={"token": "wrong"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_login_invalid_json(self, client: TestClient) -> None:
        """JSONとして解析できない本文は400"""
        response = client.post(
            "/api/admin/login",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"

    def test_admin_not_configured(self, settings_factory: Callable[..., Settings]) -> None:
        """ADMIN_TOKEN未設定の場合は503"""
        with TestClient(create_app(settings_factory(ADMIN_TOKEN=""))) as client:
            login = client.post("/api/admin/login", json={"token": "anything"})
            questions = client.get("/api/admin/questions")

        assert login.status_code == 503
        assert login.json()["error"]["code"] == "NOT_CONFIGURED"
        assert questions.status_code == 503

    def test_protected_without_token(self, client: TestClient) -> None:
        """認可無しでは401"""
        for path in ("/api/admin/questions", "/api/admin/results", "/api/admin/stats", "/api/admin/ai-config"):
            response = client.get(path)
            assert response.status_code == 401, path
            assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_logout_clears_cookie(self, client: TestClient) -> None:
        """ログアウトで管理者Cookieが消えること"""
        client.post("/api/admin/login", json={"token": "test-admin-token"})

        response = client.post("/api/admin/logout")

        assert response.status_code == 200
        assert "aurora_admin_token=" in response.headers["set-cookie"]
        assert client.get("/api/admin/questions").status_code == 401

    def test_deprecated_logout(self, client: TestClient) -> None:
        """旧ログアウトは410"""
        response = client.post("/api/auth/logout")

        assert response.status_code == 410
        assert response.json()["error"]["code"] == "DEPRECATED"


class TestQuestionAdmin:
    """題庫管理APIのテスト"""

    def test_crud(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """追加・一覧・更新・削除ができること"""
        created = client.post("/api/admin/questions", json=QUESTION, headers=admin_headers)
        assert created.status_code == 200
        question = created.json()["question"]
        assert question["id"] == "zh-ei-1"

        listed = client.get("/api/admin/questions?locale=zh", headers=admin_headers)
        assert listed.json()["total"] == 1
        assert listed.json()["questions"][0]["text"] == QUESTION["text"]

        updated = client.post(
            f"/api/admin/questions/{question['id']}",
            json={"text": "更新後"},
            headers=admin_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["question"]["text"] == "更新後"
        assert updated.json()["question"]["dimension"] == "EI"

        deleted = client.post(
            f"/api/admin/questions/{question['id']}/delete", json={}, headers=admin_headers
        )
        assert deleted.json() == {"success": True, "version": "v1", "deleted": "zh-ei-1"}

        again = client.post(
            f"/api/admin/questions/{question['id']}/delete", json={}, headers=admin_headers
        )
        assert again.status_code == 404
        assert again.json()["error"]["code"] == "NOT_FOUND"

    def test_add_unsupported_locale(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """未対応のロケールは400 INVALID_LOCALE"""
        response = client.post(
            "/api/admin/questions", json={**QUESTION, "locale": "fr"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_LOCALE"

    def test_add_missing_fields(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """必須項目の欠落は400 MISSING_FIELDS"""
        response = client.post(
            "/api/admin/questions", json={"locale": "zh"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_FIELDS"

    def test_update_invalid_dimension(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """不正な値への更新は400 INVALID_BODY"""
        question = client.post("/api/admin/questions", json=QUESTION, headers=admin_headers).json()["question"]

        response = client.post(
            f"/api/admin/questions/{question['id']}",
            json={"dimension": "XY"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_BODY"

    def test_update_missing(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """存在しない設問の更新は404"""
        response = client.post(
            "/api/admin/questions/zh-ei-99", json={"text": "x"}, headers=admin_headers
        )

        assert response.status_code == 404

    def test_import(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """一括取り込みができること"""
        payload = {
            "questions": [
                {**QUESTION, "id": "zh-ei-1"},
                {**QUESTION, "id": "en-sn-1", "locale": "en", "dimension": "SN", "agree": "N", "text": "I trust hunches"},
            ]
        }

        response = client.post("/api/admin/questions/import", json=payload, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["imported"] == 2
        assert response.json()["total"] == 2

    def test_import_unsupported_locale(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """未対応ロケールを含む場合は何も取り込まないこと"""
        payload = {"questions": [{**QUESTION, "id": "fr-ei-1", "locale": "fr"}]}

        response = client.post("/api/admin/questions/import", json=payload, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "IMPORT_ERROR"
        assert response.json()["error"]["details"] == {"locales": ["fr"]}
        assert client.get("/api/admin/questions", headers=admin_headers).json()["total"] == 0


class TestResultsAdmin:
    """診断結果・統計APIのテスト"""

    def _submit(
        self,
        client: TestClient,
        mbti_type: str,
        locale: str,
        percent_first: int = 60,
        profile: Optional[dict[str, str]] = None,
    ) -> None:
        scores = {
            d: {"percentFirst": percent_first, "percentSecond": 100 - percent_first}
            for d in ("EI", "SN", "TF", "JP")
        }
        body: dict = {"result": {"type": mbti_type, "scores": scores}, "locale": locale}
        if profile:
            body["profile"] = profile
        response = client.post("/api/results/submit", json=body)
        assert response.status_code == 200

    def test_results_and_stats(self, session_client: TestClient, admin_headers: dict[str, str]) -> None:
        """送信された結果が一覧・統計に反映されること"""
        self._submit(session_client, "ESTJ", "zh")
        self._submit(session_client, "ESTJ", "en")
        self._submit(session_client, "INFP", "en")

        results = session_client.get("/api/admin/results?type=ESTJ", headers=admin_headers)
        assert results.status_code == 200
        body = results.json()
        assert body["total"] == 2
        assert body["page"] == 1
        assert body["results"][0]["locale"] == "en"
        assert body["results"][0]["scores"]["EI"] == {"winner": "E", "percent": 60.0}

        stats = session_client.get("/api/admin/stats", headers=admin_headers).json()
        assert stats["stats"]["testCompletions"] == 3
        assert stats["results"]["byType"] == {"ESTJ": 2, "INFP": 1}

    def test_analytics(self, session_client: TestClient, admin_headers: dict[str, str]) -> None:
        """次元平均は先頭文字側の割合に換算し、分布は件数の多い順であること"""
        self._submit(session_client, "ESTJ", "zh", 60, {"ageGroup": "18-24", "gender": "female"})
        self._submit(session_client, "ESTJ", "en", 60, {"ageGroup": "25-34"})
        self._submit(session_client, "INFP", "en", 30, {"ageGroup": "18-24", "gender": "male"})

        response = session_client.get("/api/admin/analytics", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert body["typeDistribution"][:2] == [
            {"type": "ESTJ", "count": 2},
            {"type": "INFP", "count": 1},
        ]
        assert len(body["typeDistribution"]) == 16
        assert body["dimensionAverages"][0] == {
            "dimension": "EI",
            "firstLetter": "E",
            "secondLetter": "I",
            "firstPercent": 50,
        }
        assert body["ageGroupDistribution"] == [
            {"ageGroup": "18-24", "count": 2},
            {"ageGroup": "25-34", "count": 1},
        ]
        assert body["genderDistribution"] == [
            {"gender": "female", "count": 1},
            {"gender": "male", "count": 1},
        ]
        assert len(body["dailyTrend"]) == 30
        assert body["dailyTrend"][-1]["count"] == 3

    def test_analytics_requires_admin(self, client: TestClient) -> None:
        response = client.get("/api/admin/analytics")

        assert response.status_code == 401

    @pytest.mark.parametrize("query", ["limit=0", "limit=500", "page=0"])
    def test_invalid_paging(self, client: TestClient, admin_headers: dict[str, str], query: str) -> None:
        """範囲外のページング指定は400"""
        response = client.get(f"/api/admin/results?{query}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_BODY"


class TestAIConfigAdmin:
    """AIプロバイダー設定APIのテスト"""

    def test_default_config(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """環境変数由来の設定が表示されること"""
        response = client.get("/api/admin/ai-config", headers=admin_headers)

        config = response.json()["config"]
        assert config["provider"] == "openai"
        assert config["apiKeySet"] is False
        assert config["source"] == "env"

    def test_save_config(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """設定を保存するとAPIキーは伏せ字で返ること"""
        response = client.post(
            "/api/admin/ai-config",
            json={"config": {"provider": "deepseek", "apiKey": "sk-1234567890"}},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["saved"] is True
        assert body["config"]["provider"] == "deepseek"
        assert body["config"]["baseUrl"] == "https://api.deepseek.com/v1"
        assert body["config"]["apiKeyMasked"] == "sk-1***90"
        assert body["config"]["source"] == "panel"
        assert "sk-1234567890" not in response.text

        health = client.get("/api/health").json()
        assert health["ai_configured"] is True

    def test_incomplete_config_rejected(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """必須項目が揃わない設定は保存しないこと"""
        response = client.post(
            "/api/admin/ai-config",
            json={"config": {"provider": "custom", "model": "llama3"}},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"missing": ["AI_BASE_URL"]}
        assert client.get("/api/admin/ai-config", headers=admin_headers).json()["config"]["provider"] == "openai"

    def test_unknown_provider(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """未知のプロバイダーは400"""
        response = client.post(
            "/api/admin/ai-config",
            json={"config": {"provider": "gemini"}},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"


def install_transport(
    app: FastAPI, handler: Callable[[httpx.Request], httpx.Response]
) -> list[httpx.Request]:
    received: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        received.append(request)
        return handler(request)

    app.state.ai_client = AIClient(
        app.state.settings,
        app.state.ai_settings_store,
        transport=httpx.MockTransport(recording),
    )
    return received


class TestProviderTest:
    """POST /api/admin/provider-test のテスト"""

    def test_candidate_config_called(
        self, app: FastAPI, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        """候補の設定でプロバイダーを呼び出し、保存はしないこと"""
        received = install_transport(
            app,
            lambda _: httpx.Response(200, json={"choices": [{"message": {"content": "OK"}}]}),
        )

        response = client.post(
            "/api/admin/provider-test",
            json={"config": {"provider": "deepseek", "apiKey": "sk-candidate"}},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "version": "v1",
            "provider": "deepseek",
            "model": "deepseek-chat",
            "preview": "OK",
        }
        assert str(received[0].url) == "https://api.deepseek.com/v1/chat/completions"
        assert received[0].headers["authorization"] == "Bearer sk-candidate"
        sent = json.loads(received[0].content)
        assert sent["temperature"] == 0
        assert sent["max_tokens"] == 8

        config = client.get("/api/admin/ai-config", headers=admin_headers).json()["config"]
        assert config["provider"] == "openai"
        assert config["apiKeySet"] is False

    def test_preview_truncated(
        self, app: FastAPI, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        install_transport(
            app,
            lambda _: httpx.Response(200, json={"choices": [{"message": {"content": "x" * 300}}]}),
        )

        response = client.post(
            "/api/admin/provider-test",
            json={"config": {"apiKey": "sk-candidate"}},
            headers=admin_headers,
        )

        assert response.json()["preview"] == "x" * 120

    def test_upstream_failure(
        self, app: FastAPI, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        """プロバイダーの失敗は502 UPSTREAM_ERROR"""
        install_transport(app, lambda _: httpx.Response(401, text="invalid key"))

        response = client.post(
            "/api/admin/provider-test",
            json={"config": {"provider": "openai", "apiKey": "sk-wrong"}},
            headers=admin_headers,
        )

        assert response.status_code == 502
        error = response.json()["error"]
        assert error["code"] == "UPSTREAM_ERROR"
        assert error["details"] == {"provider": "openai", "model": "gpt-4o-mini"}
        assert "invalid key" not in response.text

    def test_incomplete_config(
        self, app: FastAPI, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        """必須項目が欠けていれば呼び出さずに400"""
        received = install_transport(app, lambda _: httpx.Response(200))

        response = client.post(
            "/api/admin/provider-test",
            json={"config": {"provider": "custom"}},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"missing": ["AI_BASE_URL", "AI_MODEL"]}
        assert received == []

    def test_requires_admin(self, client: TestClient) -> None:
        response = client.post("/api/admin/provider-test", json={"config": {}})

        assert response.status_code == 401
