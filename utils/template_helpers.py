from __future__ import annotations

from fastapi import Request
from fastapi.templating import Jinja2Templates

from config import PROJECT_ROOT


def wants_html(request: Request) -> bool:
    """Return ``True`` when the client prefers an HTML page over JSON."""

    accept = request.headers.get("accept", "")
    return "text/html" in accept.lower()


def create_templates() -> Jinja2Templates:
    """Return a Jinja2Templates instance for the bundled pages."""

    return Jinja2Templates(directory=PROJECT_ROOT / "templates")
