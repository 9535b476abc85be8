"""ロケール付きページ（フロントエンドのシェル）"""

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from aurora.domain.exceptions.base import NotFoundError

router = APIRouter()

PAGES = frozenset(
    {
        "",
        "about",
        "admin",
        "cookies",
        "history",
        "login",
        "profile",
        "result",
        "test",
        "test-mode",
        "types",
    }
)

TITLES = {
    "zh": "Aurora 人格测试",
    "en": "Aurora Personality Test",
    "ja": "Aurora 性格診断",
}


def render_page(request: Request, locale: str, page: str) -> HTMLResponse:
    settings = request.app.state.settings
    if locale not in settings.locales or page not in PAGES:
        raise NotFoundError("Page not found")

    response = request.app.state.templates.TemplateResponse(
        request,
        "page.html",
        {
            "locale": locale,
            "page": page or "home",
            "title": TITLES.get(locale, TITLES["en"]),
            "locales": settings.locales,
        },
    )
    response.set_cookie(
        key=settings.LOCALE_COOKIE_NAME,
        value=locale,
        max_age=60 * 60 * 24 * 365,
        path="/",
        samesite="lax",
        secure=settings.is_production,
    )
    return response


@router.get("/{locale}", response_class=HTMLResponse, include_in_schema=False)
async def locale_home(request: Request, locale: str) -> HTMLResponse:
    return render_page(request, locale, "")


@router.get("/{locale}/{page}", response_class=HTMLResponse, include_in_schema=False)
async def locale_page(request: Request, locale: str, page: str) -> HTMLResponse:
    return render_page(request, locale, page)
