"""セキュリティヘッダー・CORSヘッダーの生成"""

from typing import Iterable, Mapping, Optional

from starlette.requests import Request

CORS_ALLOW_METHODS = "GET, POST, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type"


def build_csp(directives: Mapping[str, Iterable[str]]) -> str:
    """
    ディレクティブ名 → 許可ソースのmapからCSPヘッダー値を組み立てる

    Example:
        >>> build_csp({"default-src": ["'self'"], "frame-src": ["'none'"]})
        "default-src 'self'; frame-src 'none'"
    """
    parts = []
    for name, sources in directives.items():
        sources = " ".join(sources)
        parts.append(f"{name} {sources}".strip())
    return "; ".join(parts)


def security_headers(csp: str) -> dict[str, str]:
    """すべてのレスポンスに付与するセキュリティヘッダー"""
    return {
        "Content-Security-Policy": csp,
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
        "X-XSS-Protection": "1; mode=block",
    }


class CorsPolicy:
    """
    Originの許可判定

    同一オリジンまたは許可リストに含まれるOriginのみ許可し、
    許可したOriginをそのまま返す（ワイルドカードは使わない）。
    """

    def __init__(self, allowed_origins: Iterable[str]) -> None:
        self.allowed_origins = frozenset(o.rstrip("/") for o in allowed_origins)

    @staticmethod
    def request_origin(request: Request) -> str:
        host = request.headers.get("host") or request.url.netloc
        return f"{request.url.scheme}://{host}"

    def is_allowed(self, origin: Optional[str], request: Request) -> bool:
        if not origin:
            return False
        origin = origin.rstrip("/")
        return origin == self.request_origin(request) or origin in self.allowed_origins

    def headers_for(self, request: Request) -> dict[str, str]:
        """許可されたOriginの場合のみCORSヘッダーを返す"""
        origin = request.headers.get("origin")
        if not self.is_allowed(origin, request):
            return {}
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
            "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
            "Vary": "Origin",
        }
