"""
受付ゲートウェイ（セッション・レート制限・通信ポリシー・ヘッダー）の統合テスト
"""

from typing import Callable

from fastapi.testclient import TestClient

from aurora.core.app_factory import create_app
from aurora.core.config import Settings

SESSION_COOKIE = "aurora_anon_session"

SECURITY_HEADERS = (
    "content-security-policy",
    "x-frame-options",
    "x-content-type-options",
    "referrer-policy",
    "permissions-policy",
    "x-xss-protection",
)

QUESTION_BODY = {"profile": {"name": "Aki"}, "questionCount": 5, "locale": "zh"}


def assert_security_headers(response) -> None:  # type: ignore[no-untyped-def]
    for name in SECURITY_HEADERS:
        assert name in response.headers, name
    assert response.headers["x-frame-options"] == "DENY"


class TestSessionRequired:
    """セッション必須エンドポイントのテスト"""

    def test_without_cookie(self, client: TestClient) -> None:
        """Cookie無しは401 SESSION_REQUIREDで新しいセッションCookieを発行すること"""
        response = client.post("/api/generate-questions", json=QUESTION_BODY)

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["version"] == "v1"
        assert body["error"]["code"] == "SESSION_REQUIRED"
        set_cookie = response.headers["set-cookie"]
        assert f"{SESSION_COOKIE}=v1." in set_cookie
        assert "httponly" in set_cookie.lower()
        assert "samesite=lax" in set_cookie.lower()
        assert "max-age=43200" in set_cookie.lower()
        assert "; secure" not in set_cookie.lower()
        assert_security_headers(response)

    def test_secure_cookie_in_production(
        self, settings_factory: Callable[..., Settings]
    ) -> None:
        """本番モードではSecure属性付きのCookieを発行すること"""
        with TestClient(create_app(settings_factory(ENV_MODE="production"))) as client:
            response = client.get("/api/health")

        set_cookie = response.headers["set-cookie"].lower()
        assert f"{SESSION_COOKIE}=v1." in set_cookie
        assert "httponly" in set_cookie
        assert "max-age=43200" in set_cookie
        assert "; secure" in set_cookie

    def test_retry_with_issued_cookie(self, client: TestClient) -> None:
        """発行されたCookieで再送すると後段に到達すること（AI未設定なら503）"""
        first = client.post("/api/generate-questions", json=QUESTION_BODY)
        assert first.status_code == 401

        retry = client.post("/api/generate-questions", json=QUESTION_BODY)

        assert retry.status_code == 503
        assert retry.json()["error"]["code"] == "NOT_CONFIGURED"
        assert retry.json()["error"]["details"] == {"missing": ["AI_API_KEY"]}
        assert "set-cookie" not in retry.headers

    def test_tampered_cookie(self, client: TestClient) -> None:
        """改ざんされたCookieは無効として扱うこと"""
        client.get("/api/health")
        token = client.cookies.get(SESSION_COOKIE)
        assert token
        client.cookies.clear()
        client.cookies.set(SESSION_COOKIE, token[:-1] + ("A" if token[-1] != "A" else "B"))

        response = client.post("/api/generate-analysis", json={})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "SESSION_REQUIRED"

    def test_cookie_bound_to_user_agent(self, client: TestClient) -> None:
        """別のUser-AgentからのCookieは無効"""
        client.get("/api/health")

        response = client.post(
            "/api/generate-questions",
            json=QUESTION_BODY,
            headers={"User-Agent": "another-browser"},
        )

        assert response.status_code == 401

    def test_get_does_not_require_session(self, client: TestClient) -> None:
        """GETはセッション必須の対象外"""
        response = client.get("/api/health")

        assert response.status_code == 200
        assert SESSION_COOKIE in response.cookies


class TestRateLimit:
    """レート制限のテスト"""

    def test_general_limit(self, session_client: TestClient) -> None:
        """一般APIは60回まで許可され、61回目は429"""
        for i in range(60):
            response = session_client.get("/api/health")
            assert response.status_code == 200, i
            assert response.headers["x-ratelimit-limit"] == "60"
            assert response.headers["x-ratelimit-remaining"] == str(59 - i)

        blocked = session_client.get("/api/health")

        assert blocked.status_code == 429
        body = blocked.json()
        assert body["error"]["code"] == "TOO_MANY_REQUESTS"
        retry_after = int(blocked.headers["retry-after"])
        assert 0 < retry_after <= 60
        assert body["error"]["details"] == {"retryAfter": retry_after}
        assert blocked.headers["x-ratelimit-remaining"] == "0"
        assert_security_headers(blocked)

    def test_questions_limit(self, session_client: TestClient) -> None:
        """設問生成は5回まで（後段の結果に関わらず計上）"""
        for _ in range(5):
            response = session_client.post("/api/generate-questions", json=QUESTION_BODY)
            assert response.status_code == 503

        blocked = session_client.post("/api/generate-questions", json=QUESTION_BODY)

        assert blocked.status_code == 429
        assert blocked.headers["x-ratelimit-limit"] == "5"

    def test_classes_are_independent(self, session_client: TestClient) -> None:
        """分類ごとに独立していること"""
        for _ in range(6):
            session_client.post("/api/generate-questions", json=QUESTION_BODY)

        response = session_client.get("/api/health")

        assert response.status_code == 200

    def test_pages_are_not_limited(self, client: TestClient) -> None:
        """ページにはレート制限ヘッダーを付けないこと"""
        response = client.get("/zh")

        assert response.status_code == 200
        assert "x-ratelimit-limit" not in response.headers

    def test_whitelisted_client(self, settings_factory: Callable[..., Settings]) -> None:
        """ホワイトリストのIPは制限されないこと"""
        app = create_app(settings_factory(RATE_LIMIT_GENERAL=2, RATE_LIMIT_WHITELIST=["10.1.1.1"]))
        with TestClient(app) as client:
            for _ in range(5):
                response = client.get("/api/health", headers={"X-Forwarded-For": "10.1.1.1"})
                assert response.status_code == 200
                assert response.headers["x-ratelimit-remaining"] == "2"

            # 1回目はセッション発行（セッション無しのキーで計上）
            client.get("/api/health", headers={"X-Forwarded-For": "10.2.2.2"})
            for _ in range(2):
                response = client.get("/api/health", headers={"X-Forwarded-For": "10.2.2.2"})
                assert response.status_code == 200
            blocked = client.get("/api/health", headers={"X-Forwarded-For": "10.2.2.2"})
            assert blocked.status_code == 429


class TestTransportPolicy:
    """メソッド・Content-Type・プリフライトのテスト"""

    def test_preflight_same_origin(self, client: TestClient) -> None:
        """同一オリジンのOPTIONSは204でCORSヘッダー付き"""
        response = client.options(
            "/api/generate-questions", headers={"Origin": "http://testserver"}
        )

        assert response.status_code == 204
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "http://testserver"
        assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"
        assert "origin" in response.headers["vary"].lower()
        assert "access-control-allow-credentials" not in response.headers
        assert_security_headers(response)

    def test_preflight_allow_listed_origin(self, client: TestClient) -> None:
        """許可リストのOriginを返すこと"""
        response = client.options(
            "/api/health", headers={"Origin": "https://allowed.example.com"}
        )

        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == "https://allowed.example.com"

    def test_preflight_unknown_origin(self, client: TestClient) -> None:
        """許可されていないOriginにはCORSヘッダーを付けないこと"""
        response = client.options("/api/health", headers={"Origin": "https://evil.example.com"})

        assert response.status_code == 204
        assert "access-control-allow-origin" not in response.headers

    def test_method_not_allowed(self, client: TestClient) -> None:
        """GET/POST/OPTIONS以外は405"""
        for method in ("PUT", "DELETE", "PATCH"):
            response = client.request(method, "/api/health")
            assert response.status_code == 405
            assert response.json()["error"]["code"] == "METHOD_NOT_ALLOWED"
            assert response.headers["allow"] == "GET, OPTIONS, POST"

    def test_unsupported_media_type(self, session_client: TestClient) -> None:
        """JSON以外のPOSTは415"""
        response = session_client.post(
            "/api/results/submit",
            content="type=INTJ",
            headers={"Content-Type": "text/plain"},
        )

        assert response.status_code == 415
        assert response.json()["error"]["code"] == "UNSUPPORTED_MEDIA_TYPE"

    def test_missing_content_type(self, session_client: TestClient) -> None:
        """Content-Type無しのPOSTも415"""
        response = session_client.post("/api/results/submit")

        assert response.status_code == 415

    def test_json_with_charset(self, session_client: TestClient) -> None:
        """charset付きのapplication/jsonは許可"""
        response = session_client.post(
            "/api/results/submit",
            content="{}",
            headers={"Content-Type": "application/json; charset=utf-8"},
        )

        assert response.status_code == 200

    def test_logout_exempt(self, client: TestClient) -> None:
        """ログアウトは本文無しで受け付けること"""
        response = client.post("/api/admin/logout")

        assert response.status_code == 200
        assert response.json() == {"success": True, "version": "v1"}

    def test_logout_exempt_with_trailing_slash(self, client: TestClient) -> None:
        """末尾スラッシュ付きのログアウトも415にしないこと"""
        response = client.post("/api/admin/logout/", follow_redirects=False)

        assert response.status_code != 415
        assert response.status_code < 400

    def test_versioned_path(self, client: TestClient) -> None:
        """/api/v1/... は /api/... として処理されること"""
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.headers["x-ratelimit-limit"] == "60"

    def test_versioned_session_required(self, client: TestClient) -> None:
        """/api/v1 経由でもセッション必須"""
        response = client.post("/api/v1/generate-questions", json=QUESTION_BODY)

        assert response.status_code == 401


class TestPageHeaders:
    """ページのヘッダー・Cookieのテスト"""

    def test_page_gets_security_headers_and_session(self, client: TestClient) -> None:
        """ページにもセキュリティヘッダーとセッションCookieが付くこと"""
        response = client.get("/zh")

        assert response.status_code == 200
        assert_security_headers(response)
        assert SESSION_COOKIE in response.cookies
        assert "access-control-allow-origin" not in response.headers

    def test_existing_session_kept(self, client: TestClient) -> None:
        """有効なセッションがあれば再発行しないこと"""
        client.get("/zh")

        response = client.get("/zh/about")

        assert response.status_code == 200
        assert SESSION_COOKIE not in response.cookies

    def test_root_redirect(self, client: TestClient) -> None:
        """/ はロケール付きパスへ307リダイレクト"""
        response = client.get("/", headers={"Accept-Language": "ja,en;q=0.8"}, follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/ja"
        assert_security_headers(response)
