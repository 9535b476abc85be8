"""
リクエスト受付ゲートウェイ

すべてのリクエストが通過する単一のミドルウェア。次の順に処理する:

1. ``/api/v1/...`` を ``/api/...`` に書き換え
2. セッションCookieの検証
3. AI生成系POSTでセッションが無効なら401（新しいセッションCookie付き）
4. レート制限（APIパスのみ）
5. ページパスのロケール解決
6. APIパスのメソッド・Content-Type制限、OPTIONSプリフライト
7. セキュリティヘッダー・CORSヘッダー・レート制限ヘッダーの付与
8. セッションが無効だった場合は新しいセッションCookieを発行
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from aurora.core.config import Settings
from aurora.core.logging import get_logger
from aurora.domain.exceptions.base import ErrorCode
from aurora.infrastructure.rate_limit.limiter import RateLimiter, rate_limit_headers
from aurora.infrastructure.security.client import ClientIdentity
from aurora.infrastructure.security.session_token import (
    SessionTokenCodec,
    TokenVerification,
)
from aurora.presentation.pages.locale import LocaleResolver
from aurora.presentation.responses import api_error

from .security_headers import CorsPolicy, build_csp, security_headers

logger = get_logger(__name__)

API_PREFIX = "/api"
VERSIONED_API_PREFIX = "/api/v1"

ALLOWED_API_METHODS = frozenset({"GET", "POST", "OPTIONS"})

# セッション必須のエンドポイント（POSTのみ、前方一致）
SESSION_REQUIRED_PREFIXES = ("/api/generate-questions", "/api/generate-analysis")

# 本文を持たないためContent-Type検査を免除するエンドポイント
CONTENT_TYPE_EXEMPT_PATHS = frozenset({"/api/admin/logout", "/api/auth/logout"})

JSON_MEDIA_TYPE = "application/json"


def normalize_api_path(path: str) -> str:
    """
    バージョン付きAPIパスを内部パスに書き換える

    Example:
        >>> normalize_api_path("/api/v1/health")
        '/api/health'
    """
    if path == VERSIONED_API_PREFIX:
        return API_PREFIX
    if path.startswith(VERSIONED_API_PREFIX + "/"):
        return API_PREFIX + path[len(VERSIONED_API_PREFIX) :]
    return path


def is_api_path(path: str) -> bool:
    return path == API_PREFIX or path.startswith(API_PREFIX + "/")


def requires_session(method: str, path: str) -> bool:
    return method == "POST" and path.startswith(SESSION_REQUIRED_PREFIXES)


def is_content_type_exempt(path: str) -> bool:
    """JSON本文を要求しないPOSTか（末尾スラッシュは無視）"""
    return (path.rstrip("/") or "/") in CONTENT_TYPE_EXEMPT_PATHS


def is_json_content_type(value: Optional[str]) -> bool:
    if not value:
        return False
    return value.split(";", 1)[0].strip().lower() == JSON_MEDIA_TYPE


@dataclass
class AdmissionDecision:
    """
    リクエスト単位の受付判定

    Attributes:
        headers: 最終レスポンスに付与するレート制限ヘッダー
        response: 遮断する場合のレスポンス（許可ならNone）
    """

    headers: dict[str, str] = field(default_factory=dict)
    response: Optional[Response] = None

    @property
    def allowed(self) -> bool:
        return self.response is None


class AdmissionMiddleware(BaseHTTPMiddleware):
    """
    セッション検証・レート制限・通信ポリシーをまとめて適用するミドルウェア

    ルートハンドラーには request.state.session_id（検証済みまたは新規発行の
    セッションID）と request.state.client を渡す。
    """

    def __init__(
        self,
        app: ASGIApp,
        settings: Settings,
        codec: SessionTokenCodec,
        limiter: RateLimiter,
        locale_resolver: LocaleResolver,
    ) -> None:
        super().__init__(app)
        self.settings = settings
        self.codec = codec
        self.limiter = limiter
        self.locale_resolver = locale_resolver
        self.cors = CorsPolicy(settings.cors_origins)
        self.security_headers = security_headers(build_csp(settings.csp_directives))

    def _set_session_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(
            key=self.settings.SESSION_COOKIE_NAME,
            value=token,
            max_age=self.codec.ttl_seconds,
            path="/",
            httponly=True,
            samesite="lax",
            secure=self.settings.is_production,
        )

    def _issue_session(self, request: Request, client: ClientIdentity) -> str:
        token = self.codec.issue(client)
        payload = self.codec.decode(token)
        request.state.session_id = payload.sid if payload else None
        return token

    def _decorate(
        self,
        request: Request,
        response: Response,
        is_api: bool,
        rate_headers: dict[str, str],
    ) -> Response:
        response.headers.update(self.security_headers)
        if is_api:
            cors_headers = self.cors.headers_for(request)
            vary = cors_headers.pop("Vary", None)
            response.headers.update(cors_headers)
            if vary:
                existing = response.headers.get("vary")
                if existing and vary.lower() not in existing.lower():
                    response.headers["Vary"] = f"{existing}, {vary}"
                elif not existing:
                    response.headers["Vary"] = vary
        response.headers.update(rate_headers)
        return response

    def _check_rate_limit(
        self, path: str, client: ClientIdentity, verification: TokenVerification
    ) -> AdmissionDecision:
        result = self.limiter.check_request(client.ip, verification.sid, path)
        headers = rate_limit_headers(result)
        if result.allowed:
            return AdmissionDecision(headers=headers)

        retry_after = self.limiter.retry_after(result)
        logger.warning(
            f"Rate limit exceeded: ip={client.ip} path={path} retry_after={retry_after}"
        )
        response = api_error(
            ErrorCode.TOO_MANY_REQUESTS,
            "Too many requests, please try again later.",
            details={"retryAfter": retry_after},
            headers={**headers, "Retry-After": str(retry_after)},
        )
        return AdmissionDecision(headers=headers, response=response)

    def _check_transport(self, request: Request, path: str) -> Optional[Response]:
        method = request.method
        if method not in ALLOWED_API_METHODS:
            logger.info(f"Method not allowed: {method} {path}")
            return api_error(
                ErrorCode.METHOD_NOT_ALLOWED,
                f"Method {method} is not allowed.",
                headers={"Allow": ", ".join(sorted(ALLOWED_API_METHODS))},
            )
        if (
            method == "POST"
            and not is_content_type_exempt(path)
            and not is_json_content_type(request.headers.get("content-type"))
        ):
            logger.info(f"Unsupported content type on POST {path}")
            return api_error(
                ErrorCode.UNSUPPORTED_MEDIA_TYPE,
                "Content-Type must be application/json.",
            )
        if method == "OPTIONS":
            return Response(status_code=204)
        return None

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """
        受付判定を行い、許可されたリクエストを後段に渡す

        Args:
            request: HTTPリクエスト
            call_next: 次のミドルウェア/エンドポイント

        Returns:
            HTTPレスポンス
        """
        # 1. パスの正規化
        path = normalize_api_path(request.scope["path"])
        if path != request.scope["path"]:
            request.scope["path"] = path
            request.scope["raw_path"] = path.encode("utf-8")
        is_api = is_api_path(path)

        # 2. セッション検証
        client = ClientIdentity.from_headers(request.headers)
        verification = self.codec.verify(
            request.cookies.get(self.settings.SESSION_COOKIE_NAME), client
        )
        request.state.client = client
        request.state.session_id = verification.sid

        # 3. セッション必須エンドポイント
        if not verification.valid and requires_session(request.method, path):
            logger.info(f"Session required: {request.method} {path}")
            response = api_error(
                ErrorCode.SESSION_REQUIRED,
                "A valid session is required. Please retry the request.",
            )
            self._set_session_cookie(response, self._issue_session(request, client))
            return self._decorate(request, response, is_api, {})

        # 4. レート制限
        decision = AdmissionDecision()
        if is_api:
            decision = self._check_rate_limit(path, client, verification)

        # 5-6. ロケール解決 / API通信ポリシー
        if decision.allowed:
            if is_api:
                decision.response = self._check_transport(request, path)
            else:
                decision.response = self.locale_resolver.redirect_for(request, path)

        # 8. セッション発行（後段でもセッションIDを参照できるよう先に発行）
        token = None
        if not verification.valid:
            token = self._issue_session(request, client)

        response = decision.response
        if response is None:
            response = await call_next(request)

        # 7. ヘッダー付与
        self._decorate(request, response, is_api, decision.headers)
        if token:
            self._set_session_cookie(response, token)
        return response
