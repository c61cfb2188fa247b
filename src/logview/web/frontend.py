"""HTML index page and health check for the LogView web UI."""

from __future__ import annotations

from importlib.resources import files
from string import Template

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

PAGE_TITLE = "LogView"

router = APIRouter()


def _load_template() -> Template:
    template = files("logview.web").joinpath("templates", "index.html")
    return Template(template.read_text(encoding="utf-8"))


def render_index(title: str = PAGE_TITLE) -> str:
    return _load_template().safe_substitute(title=title)


@router.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    return HTMLResponse(content=render_index())


@router.get("/healthz")
async def health() -> dict[str, str]:
    return {"status": "ok"}
