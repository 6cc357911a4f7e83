"""Informational page handlers for the wedding site."""

from __future__ import annotations

from pathlib import Path

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from .analytics import format_guest_count, party_size_category
from .config import settings
from .utils import format_timestamp, humanize_time, pluralize

templates = Jinja2Templates(directory=Path(__file__).parent / "templates")
templates.env.globals["settings"] = settings
templates.env.globals["pluralize"] = pluralize
templates.env.filters["relative_time"] = humanize_time
templates.env.filters["timestamp"] = format_timestamp
templates.env.filters["guest_count"] = format_guest_count
templates.env.filters["party_size"] = party_size_category


def _page_response(request: Request, template_name: str, context: dict | None = None):
    return templates.TemplateResponse(
        request,
        template_name,
        {"request": request, **(context or {})},
    )


def home(request: Request):
    """Render the landing page."""
    return _page_response(request, "index.html")


def travel(request: Request):
    """Render travel and accommodation details."""
    return _page_response(request, "travel.html")


def thank_you(request: Request):
    """Summarise a submitted RSVP from the redirect's query string."""
    params = request.query_params
    attending = params.get("attending")
    return _page_response(
        request,
        "thank_you.html",
        {
            "guest_name": params.get("name"),
            "attending": None if attending is None else attending == "true",
            "guest_count": params.get("guests"),
            "dietary": params.get("dietary"),
        },
    )


def register_web_routes(app):
    """Register web routes on the FastAPI app."""
    app.get("/", response_class=HTMLResponse)(home)
    app.get("/travel", response_class=HTMLResponse)(travel)
    app.get("/thank-you", response_class=HTMLResponse)(thank_you)
