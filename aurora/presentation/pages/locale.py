"""ページパスのロケール解決"""

from typing import Iterable, Optional

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

# ロケール解決の対象外（静的ファイル・APIドキュメント）
EXEMPT_PREFIXES = ("/static/", "/docs", "/redoc", "/openapi.json")


def parse_accept_language(header: str) -> list[str]:
    """
    Accept-Languageを優先度順の言語タグ一覧に変換

    Example:
        >>> parse_accept_language("en-US,en;q=0.9,ja;q=0.8")
        ['en-us', 'en', 'ja']
    """
    weighted: list[tuple[float, int, str]] = []
    for index, part in enumerate(header.split(",")):
        tag, _, params = part.strip().partition(";")
        tag = tag.strip().lower()
        if not tag or tag == "*":
            continue
        quality = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 0.0
        if quality > 0:
            weighted.append((-quality, index, tag))
    return [tag for _, _, tag in sorted(weighted)]


class LocaleResolver:
    """
    ロケール接頭辞の無いページパスを ``/<locale><path>`` へリダイレクトする

    ロケールはCookie → Accept-Language → 既定値の順に決定する。
    """

    def __init__(
        self, locales: Iterable[str], default_locale: str, cookie_name: str
    ) -> None:
        self.locales = list(locales)
        self.default_locale = (
            default_locale if default_locale in self.locales else self.locales[0]
        )
        self.cookie_name = cookie_name

    def locale_from_path(self, path: str) -> Optional[str]:
        first = path.lstrip("/").split("/", 1)[0]
        return first if first in self.locales else None

    def preferred_locale(self, request: Request) -> str:
        cookie_locale = request.cookies.get(self.cookie_name)
        if cookie_locale in self.locales:
            return cookie_locale
        for tag in parse_accept_language(request.headers.get("accept-language", "")):
            primary = tag.split("-", 1)[0]
            if primary in self.locales:
                return primary
        return self.default_locale

    @staticmethod
    def is_exempt(path: str) -> bool:
        if path.startswith(EXEMPT_PREFIXES):
            return True
        # ファイル名らしいパス（favicon.ico など）
        return "." in path.rsplit("/", 1)[-1]

    def redirect_for(self, request: Request, path: str) -> Optional[Response]:
        """
        リダイレクトが必要な場合はレスポンスを返す

        Returns:
            307リダイレクト、リダイレクト不要ならNone
        """
        if self.is_exempt(path) or self.locale_from_path(path):
            return None
        locale = self.preferred_locale(request)
        target = f"/{locale}" if path == "/" else f"/{locale}{path}"
        if request.url.query:
            target = f"{target}?{request.url.query}"
        return RedirectResponse(url=target, status_code=307)
