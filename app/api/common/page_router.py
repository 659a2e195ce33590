"""HTML page shells served behind the access gate."""

from html import escape

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from app.dependencies import OptionalUserDep

router = APIRouter(tags=["pages"], include_in_schema=False)

PAGE_TEMPLATE = """<!doctype html>
<html lang="zh">
<head><meta charset="utf-8"><title>{title}</title></head>
<body data-page="{page}" data-user="{user}">
<h1>{title}</h1>
<main id="app"></main>
</body>
</html>
"""


def render_page(page: str, title: str, username: str | None = None) -> HTMLResponse:
    return HTMLResponse(
        PAGE_TEMPLATE.format(
            page=escape(page),
            title=escape(title),
            user=escape(username or ""),
        )
    )


@router.get("/", response_class=HTMLResponse)
async def chat_page(user: OptionalUserDep) -> HTMLResponse:
    return render_page("chat", "对话", user.username if user else None)


@router.get("/login", response_class=HTMLResponse)
async def login_page() -> HTMLResponse:
    return render_page("login", "登录")


@router.get("/admin", response_class=HTMLResponse)
async def admin_page(user: OptionalUserDep) -> HTMLResponse:
    return render_page("admin", "管理后台", user.username if user else None)


@router.get("/metrics", response_class=HTMLResponse)
async def metrics_page(user: OptionalUserDep) -> HTMLResponse:
    return render_page("metrics", "使用统计", user.username if user else None)
