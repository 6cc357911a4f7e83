"""FastAPI application for the wedding RSVP site."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from contextlib import asynccontextmanager
from hashlib import blake2s
from importlib.metadata import PackageNotFoundError, version as pkg_version
from pathlib import Path
from typing import Any
from urllib.parse import urlencode
import tomllib

from fastapi import Depends, FastAPI, Form, HTTPException, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from .analytics import (
    FILTERS,
    SORT_KEYS,
    AdminStats,
    build_admin_stats,
    filter_rsvps,
    group_dietary_restrictions,
    sort_rsvps,
    subset_stats,
)
from .cache import PageCache
from .config import settings
from .crud import (
    GuestNamesError,
    delete_rsvp,
    get_all_rsvps,
    get_attending_with_dietary_restrictions,
    get_attending_with_song_requests,
    get_rsvp,
    get_rsvp_by_email,
    get_rsvp_stats,
    update_rsvp,
)
from .database import SessionLocal
from .error_messages import (
    ERROR_MESSAGES,
    enhance_error_messages,
    get_error_summary,
    group_errors_by_field,
)
from .forms import decode_guest_names, parse_form_submission, parse_json_submission
from .guest_names import guest_count_for, sync_guest_names
from .mailer import ConfirmationMailer
from .models import RSVP, Meta
from .observers import LoggingSubmissionObserver
from .scheduler import start_scheduler, stop_scheduler
from .storage import fetch_root_token, init_db
from .submission import SubmissionPipeline, SubmissionResult, storage_error_field
from .validation import (
    FORM_FIELD,
    MAX_GUESTS,
    FieldError,
    validate_email_address,
    validate_rsvp,
)
from .web import register_web_routes, templates

# Use uvicorn's error logger so messages get the level prefix in the default log
# format.
logger = logging.getLogger("uvicorn.error")

GENERIC_FORM_ERROR = "Something went wrong. Please try again."


def _no_cache(response: Response) -> Response:
    """Prevent clients from caching dynamic pages so fresh data is shown."""
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


def _load_app_version() -> str:
    """Return the current package version, falling back to pyproject for dev runs."""
    try:
        return pkg_version("weddingrsvp")
    except PackageNotFoundError:
        pyproject_path = Path(__file__).resolve().parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            data = tomllib.loads(pyproject_path.read_text())
            project = data.get("project") or {}
            return str(project.get("version") or "dev")
    return "dev"


APP_VERSION = _load_app_version()


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    if settings.enable_scheduler:
        start_scheduler()
    try:
        yield
    finally:
        stop_scheduler()


app = FastAPI(title="Wedding RSVP", version=APP_VERSION, lifespan=lifespan)
static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
app.state.page_cache = PageCache()
app.state.mailer = ConfirmationMailer(settings)
app.state.observer = LoggingSubmissionObserver(settings.slow_submission_ms)

register_web_routes(app)


def _asset_version(filename: str) -> str:
    file_path = static_dir / filename
    if not file_path.is_file():
        return APP_VERSION
    hasher = blake2s()
    with file_path.open("rb") as handle:
        while True:
            chunk = handle.read(8192)
            if not chunk:
                break
            hasher.update(chunk)
    digest = hasher.hexdigest()[:12]
    mtime = int(file_path.stat().st_mtime)
    return f"{digest}{mtime}"


ASSET_VERSIONS = {name: _asset_version(name) for name in ["app.css"]}


def asset_version(filename: str) -> str:
    return ASSET_VERSIONS.get(filename, APP_VERSION)


templates.env.globals["app_version"] = APP_VERSION
templates.env.globals["asset_version"] = asset_version


def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_page_cache(request: Request) -> PageCache:
    return request.app.state.page_cache


def get_pipeline(request: Request, db: Session = Depends(get_db)) -> SubmissionPipeline:
    return SubmissionPipeline(
        db,
        mailer=request.app.state.mailer,
        page_cache=request.app.state.page_cache,
        observer=request.app.state.observer,
    )


def _wants_json(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    return request.url.path.startswith("/api/") or (
        "application/json" in accept and "text/html" not in accept
    )


def _render_error(request: Request, status_code: int, message: str | None):
    lower_message = (message or "").lower()
    extra_hint = None
    if "rsvp not found" in lower_message:
        extra_hint = "It may already have been removed from the guest list."
    context = {
        "request": request,
        "status_code": status_code,
        "error_message": message or "Something went wrong.",
        "extra_hint": extra_hint,
    }
    return templates.TemplateResponse(
        request, "error.html", context, status_code=status_code
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as friendly pages unless JSON was requested."""
    if _wants_json(request):
        return JSONResponse(
            {"detail": exc.detail}, status_code=exc.status_code, headers=exc.headers
        )
    detail = exc.detail if isinstance(exc.detail, str) else "Something went wrong."
    return _render_error(request, exc.status_code, detail)


@app.exception_handler(OperationalError)
async def operational_error_handler(request: Request, exc: OperationalError):
    raw = str(exc.orig) if getattr(exc, "orig", None) else str(exc)
    lower = raw.lower()
    if "database is locked" in lower:
        logger.error(
            "SQLite database is locked while handling %s %s",
            request.method,
            request.url.path,
        )
        detail = "The database is busy at the moment. Please wait a few seconds and try again."
        status = 503
    else:
        logger.error(
            "Operational database error on %s %s: %s",
            request.method,
            request.url.path,
            raw,
        )
        detail = "We hit a database issue. Please try again."
        status = 500
    if _wants_json(request):
        return JSONResponse({"detail": detail}, status_code=status)
    return _render_error(request, status, detail)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    if _wants_json(request):
        return JSONResponse({"detail": exc.errors()}, status_code=422)
    return _render_error(
        request,
        422,
        "Some of the fields were invalid. Please double-check and try again.",
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Gracefully handle unexpected errors."""
    logger.exception(
        "Unhandled error while processing %s %s", request.method, request.url.path
    )
    if _wants_json(request):
        return JSONResponse(
            {
                "detail": "Internal server error",
                "message": "Internal server error",
                "errors": [{"field": FORM_FIELD, "message": GENERIC_FORM_ERROR}],
            },
            status_code=500,
        )
    return _render_error(
        request,
        500,
        "We hit a snag while processing that request. Please try again.",
    )


def _require_root_access(root_token: str) -> None:
    stored = fetch_root_token()
    if root_token != stored:
        raise HTTPException(status_code=403, detail="Forbidden")


def _get_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization") or ""
    if not auth_header.lower().startswith("bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def _fetch_root_token_in_session(db: Session) -> str | None:
    meta = db.get(Meta, settings.root_token_key)
    return meta.value if meta else None


def _require_root_bearer(request: Request, db: Session) -> None:
    token = _get_bearer_token(request)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if token != _fetch_root_token_in_session(db):
        raise HTTPException(status_code=403, detail="Forbidden")


def _ensure_rsvp(db: Session, rsvp_id: int) -> RSVP:
    rsvp = get_rsvp(db, rsvp_id)
    if not rsvp:
        raise HTTPException(status_code=404, detail="RSVP not found")
    return rsvp


def serialize_rsvp(rsvp: RSVP) -> dict[str, Any]:
    return {
        "id": rsvp.id,
        "name": rsvp.name,
        "email": rsvp.email,
        "isAttending": bool(rsvp.is_attending),
        "numberOfGuests": rsvp.number_of_guests,
        "guestNames": list(rsvp.guest_names) if rsvp.guest_names else None,
        "dietaryRestrictions": rsvp.dietary_restrictions,
        "songRequests": rsvp.song_requests,
        "notes": rsvp.notes,
        "createdAt": rsvp.created_at.isoformat() if rsvp.created_at else None,
        "updatedAt": rsvp.updated_at.isoformat() if rsvp.updated_at else None,
    }


def _serialize_admin_stats(admin_stats: AdminStats) -> dict[str, Any]:
    stats = admin_stats.stats
    breakdown = admin_stats.guest_breakdown
    timeline = admin_stats.submission_timeline
    return {
        "totalResponses": stats.total,
        "attendingCount": stats.attending_count,
        "notAttendingCount": stats.not_attending_count,
        "totalGuests": stats.total_guests,
        "totalAttendees": stats.total_attendees,
        "attendanceRate": round(admin_stats.attendance_rate, 1),
        "averageGuestsPerRsvp": round(admin_stats.average_guests_per_rsvp, 2),
        "recentSubmissions24h": admin_stats.recent_submissions_24h,
        "guestBreakdown": {
            "soloAttendees": breakdown.solo_attendees,
            "couples": breakdown.couples,
            "families": breakdown.families,
        },
        "submissionTimeline": {
            "last7Days": timeline.last_7_days,
            "last30Days": timeline.last_30_days,
            "older": timeline.older,
        },
        "summary": admin_stats.summary,
    }


def _errors_payload(errors: list[FieldError]) -> list[dict[str, str]]:
    return [error.as_dict() for error in errors]


def _thank_you_url(rsvp: RSVP) -> str:
    params = {
        "name": rsvp.name,
        "attending": "true" if rsvp.is_attending else "false",
        "guests": str(rsvp.number_of_guests),
    }
    if rsvp.dietary_restrictions:
        params["dietary"] = rsvp.dietary_restrictions
    return f"/thank-you?{urlencode(params)}"


def _admin_url(root_token: str, page: str = "", **params: str) -> str:
    path = f"/admin/{root_token}{page}"
    query = {key: value for key, value in params.items() if value}
    return f"{path}?{urlencode(query)}" if query else path


def _safe_count(raw: Any) -> int:
    try:
        return int(raw or 0)
    except (TypeError, ValueError):
        return 0


def _form_values(source: Mapping[str, Any]) -> dict[str, Any]:
    """Values to echo back into the RSVP form, keyed by input name."""
    payload = parse_form_submission(source)
    return {key: value for key, value in payload.items() if key != "guestNames"}


def _guest_slots(source: Mapping[str, Any]) -> tuple[int, list[str]]:
    values = _form_values(source)
    attending = values.get("attendance") == "yes"
    count = guest_count_for(attending, _safe_count(values.get("numberOfGuests")))
    names = [
        name if isinstance(name, str) else ""
        for name in decode_guest_names(source)
    ]
    return count, sync_guest_names(names, count, attending)


def _rsvp_retry_url(form: Mapping[str, Any], error: FieldError) -> str:
    """Back to the form with the first error and whatever the guest typed."""
    params = {"error": error.field, "message": error.message}
    params.update({key: value for key, value in _form_values(form).items() if value})
    _, slots = _guest_slots(form)
    params.update({f"guestName{index}": name for index, name in enumerate(slots) if name})
    return f"/rsvp?{urlencode(params)}"


def _render_rsvp_form(
    request: Request,
    *,
    values: dict[str, Any] | None = None,
    guest_slots: list[str] | None = None,
    errors: list[FieldError] | None = None,
    message: str | None = None,
):
    errors = errors or []
    response = templates.TemplateResponse(
        request,
        "rsvp_form.html",
        {
            "request": request,
            "values": values or {},
            "guest_slots": guest_slots or [],
            "errors": group_errors_by_field(errors),
            "error_summary": message or get_error_summary(errors),
            "max_guests": MAX_GUESTS,
        },
    )
    return _no_cache(response)


@app.get("/rsvp")
def rsvp_form(
    request: Request,
    error: str | None = Query(None),
    message: str | None = Query(None),
):
    errors = [FieldError(error, message)] if error and message else []
    _, slots = _guest_slots(request.query_params)
    return _render_rsvp_form(
        request,
        values=_form_values(request.query_params),
        guest_slots=slots,
        errors=errors,
        message=message,
    )


@app.post("/rsvp")
async def submit_rsvp_form(
    request: Request, pipeline: SubmissionPipeline = Depends(get_pipeline)
):
    form = await request.form()
    if form.get("intent") == "refresh":
        count, slots = _guest_slots(form)
        values = {**_form_values(form), "numberOfGuests": count}
        return _render_rsvp_form(request, values=values, guest_slots=slots)

    result: SubmissionResult = await run_in_threadpool(pipeline.submit_form, form)
    if result.success:
        return RedirectResponse(url=_thank_you_url(result.rsvp), status_code=303)
    return RedirectResponse(url=_rsvp_retry_url(form, result.errors[0]), status_code=303)


@app.post("/api/rsvp")
async def api_submit_rsvp(
    request: Request, pipeline: SubmissionPipeline = Depends(get_pipeline)
):
    body = await request.body()
    try:
        data = json.loads(body or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError):
        errors = [FieldError(FORM_FIELD, "Request body must be valid JSON")]
        return JSONResponse(
            {"message": ERROR_MESSAGES["VALIDATION_FAILED"], "errors": _errors_payload(errors)},
            status_code=400,
        )

    result: SubmissionResult = await run_in_threadpool(pipeline.submit_json, data)
    if result.success:
        return {
            "message": ERROR_MESSAGES["RSVP_SUBMITTED"],
            "data": {"id": result.rsvp.id},
        }
    if result.server_error:
        return JSONResponse(
            {"message": "Internal server error", "errors": _errors_payload(result.errors)},
            status_code=500,
        )
    return JSONResponse(
        {"message": ERROR_MESSAGES["VALIDATION_FAILED"], "errors": _errors_payload(result.errors)},
        status_code=400,
    )


@app.post("/api/validate-email")
async def api_validate_email(request: Request, db: Session = Depends(get_db)):
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        data = None
    email = data.get("email") if isinstance(data, dict) else None
    if not isinstance(email, str) or not email.strip():
        errors = [FieldError("email", ERROR_MESSAGES["REQUIRED_EMAIL"])]
        return JSONResponse(
            {"message": "Email is required", "errors": _errors_payload(errors)},
            status_code=400,
        )

    checked = validate_email_address(email)
    if not checked.success:
        errors = enhance_error_messages(checked.errors)
        return JSONResponse(
            {"message": "Email validation failed", "errors": _errors_payload(errors)},
            status_code=400,
        )

    try:
        existing = await run_in_threadpool(get_rsvp_by_email, db, checked.data)
    except SQLAlchemyError:
        logger.exception("Email availability check failed")
        errors = [FieldError("email", ERROR_MESSAGES["EMAIL_CHECK_FAILED"])]
        return JSONResponse(
            {"message": "Internal server error", "errors": _errors_payload(errors)},
            status_code=500,
        )
    if existing:
        errors = [FieldError("email", ERROR_MESSAGES["EMAIL_ALREADY_EXISTS"])]
        return JSONResponse(
            {"message": "Email validation failed", "errors": _errors_payload(errors)},
            status_code=400,
        )
    return {"message": ERROR_MESSAGES["EMAIL_AVAILABLE"], "available": True}


def _cached_admin_page(request: Request, tag: str, render) -> Response:
    cache = get_page_cache(request)
    key = request.url.path
    if request.url.query:
        key = f"{key}?{request.url.query}"
    html = cache.get(tag, key)
    if html is None:
        generation = cache.generation(tag)
        response = render()
        html = response.body.decode("utf-8")
        cache.set(tag, key, html, generation=generation)
    return _no_cache(HTMLResponse(html))


def _flash(request: Request) -> dict[str, str | None]:
    return {
        "message": request.query_params.get("message"),
        "message_class": request.query_params.get("message_class"),
    }


@app.get("/admin/{root_token}")
def admin_dashboard(root_token: str, request: Request, db: Session = Depends(get_db)):
    _require_root_access(root_token)

    def render():
        rsvps = get_all_rsvps(db)
        admin_stats = build_admin_stats(get_rsvp_stats(db), rsvps)
        recent = filter_rsvps(rsvps, "recent")
        return templates.TemplateResponse(
            request,
            "admin/dashboard.html",
            {
                "request": request,
                "root_token": root_token,
                "admin_stats": admin_stats,
                "stats": admin_stats.stats,
                "recent_rsvps": recent[:10],
                "dietary_count": len(get_attending_with_dietary_restrictions(db)),
                "song_count": len(get_attending_with_song_requests(db)),
                "email_configured": settings.email_configured,
                **_flash(request),
            },
        )

    return _cached_admin_page(request, "dashboard", render)


@app.get("/admin/{root_token}/guests")
def admin_guests(
    root_token: str,
    request: Request,
    sort: str = Query("date"),
    direction: str = Query("desc"),
    status: str = Query("all", alias="filter"),
    db: Session = Depends(get_db),
):
    _require_root_access(root_token)
    sort = sort if sort in SORT_KEYS else "date"
    direction = direction if direction in {"asc", "desc"} else "desc"
    status = status if status in FILTERS else "all"

    def render():
        rsvps = get_all_rsvps(db)
        shown = sort_rsvps(filter_rsvps(rsvps, status), sort, direction)
        return templates.TemplateResponse(
            request,
            "admin/guests.html",
            {
                "request": request,
                "root_token": root_token,
                "rsvps": shown,
                "total": len(rsvps),
                "shown_stats": subset_stats(shown),
                "sort": sort,
                "direction": direction,
                "filter": status,
                "sort_keys": SORT_KEYS,
                "filters": FILTERS,
                **_flash(request),
            },
        )

    return _cached_admin_page(request, "guests", render)


@app.get("/admin/{root_token}/dietary")
def admin_dietary(root_token: str, request: Request, db: Session = Depends(get_db)):
    _require_root_access(root_token)

    def render():
        rsvps = get_all_rsvps(db)
        with_restrictions = get_attending_with_dietary_restrictions(db)
        return templates.TemplateResponse(
            request,
            "admin/dietary.html",
            {
                "request": request,
                "root_token": root_token,
                "total": len(rsvps),
                "attending_count": sum(1 for rsvp in rsvps if rsvp.is_attending),
                "with_restrictions": with_restrictions,
                "groups": group_dietary_restrictions(with_restrictions),
            },
        )

    return _cached_admin_page(request, "dietary", render)


@app.get("/admin/{root_token}/songs")
def admin_songs(root_token: str, request: Request, db: Session = Depends(get_db)):
    _require_root_access(root_token)

    def render():
        return templates.TemplateResponse(
            request,
            "admin/songs.html",
            {
                "request": request,
                "root_token": root_token,
                "rsvps": get_attending_with_song_requests(db),
            },
        )

    return _cached_admin_page(request, "songs", render)


def _record_payload(rsvp: RSVP) -> dict[str, Any]:
    return {
        "name": rsvp.name,
        "email": rsvp.email,
        "attendance": rsvp.attendance,
        "numberOfGuests": rsvp.number_of_guests,
        "guestNames": list(rsvp.guest_names or []),
        "dietaryRestrictions": rsvp.dietary_restrictions,
        "songRequests": rsvp.song_requests,
        "notes": rsvp.notes,
    }


def _apply_admin_update(
    db: Session, rsvp: RSVP, changes: Mapping[str, Any], cache: PageCache
) -> list[FieldError]:
    """Validate the merged record and persist it; the email is never changed."""
    payload = {**_record_payload(rsvp), **dict(changes), "email": rsvp.email}
    if payload["attendance"] == "no" and changes.get("numberOfGuests") in (None, ""):
        # Declining drops the stored party unless the caller says otherwise.
        payload["numberOfGuests"] = 0
        payload["guestNames"] = []
    result = validate_rsvp(payload)
    if not result.success:
        return enhance_error_messages(result.errors)
    data = result.data
    try:
        update_rsvp(
            db,
            rsvp.id,
            {
                "name": data.name,
                "is_attending": data.is_attending,
                "number_of_guests": data.number_of_guests,
                "guest_names": list(data.guest_names),
                "dietary_restrictions": data.dietary_restrictions or "",
                "song_requests": data.song_requests or "",
                "notes": data.notes or "",
            },
        )
    except GuestNamesError as exc:
        return [storage_error_field(exc)]
    db.commit()
    cache.invalidate_rsvp_pages()
    return []


def _render_edit_page(
    request: Request,
    root_token: str,
    rsvp: RSVP,
    *,
    values: dict[str, Any],
    guest_slots: list[str],
    errors: list[FieldError] | None = None,
    status_code: int = 200,
):
    errors = errors or []
    response = templates.TemplateResponse(
        request,
        "admin/edit_rsvp.html",
        {
            "request": request,
            "root_token": root_token,
            "rsvp": rsvp,
            "values": values,
            "email_locked": True,
            "guest_slots": guest_slots,
            "errors": group_errors_by_field(errors),
            "error_summary": get_error_summary(errors),
            "max_guests": MAX_GUESTS,
        },
        status_code=status_code,
    )
    return _no_cache(response)


@app.get("/admin/{root_token}/rsvp/{rsvp_id}/edit")
def admin_edit_rsvp(
    root_token: str, rsvp_id: int, request: Request, db: Session = Depends(get_db)
):
    _require_root_access(root_token)
    rsvp = _ensure_rsvp(db, rsvp_id)
    values = _record_payload(rsvp)
    slots = values.pop("guestNames")
    return _render_edit_page(request, root_token, rsvp, values=values, guest_slots=slots)


@app.post("/admin/{root_token}/rsvp/{rsvp_id}/edit")
async def admin_save_rsvp(
    root_token: str, rsvp_id: int, request: Request, db: Session = Depends(get_db)
):
    await run_in_threadpool(_require_root_access, root_token)
    rsvp = await run_in_threadpool(_ensure_rsvp, db, rsvp_id)
    form = await request.form()
    values = {**_form_values(form), "email": rsvp.email}
    if form.get("intent") == "refresh":
        count, slots = _guest_slots(form)
        values["numberOfGuests"] = count
        return _render_edit_page(request, root_token, rsvp, values=values, guest_slots=slots)

    changes = parse_form_submission(form)
    errors = await run_in_threadpool(
        _apply_admin_update, db, rsvp, changes, get_page_cache(request)
    )
    if errors:
        _, slots = _guest_slots(form)
        return _render_edit_page(
            request,
            root_token,
            rsvp,
            values=values,
            guest_slots=slots,
            errors=errors,
            status_code=400,
        )
    url = _admin_url(
        root_token,
        "/guests",
        message=f"Updated RSVP for {rsvp.name}.",
        message_class="alert-success",
    )
    return RedirectResponse(url=url, status_code=303)


@app.get("/admin/{root_token}/rsvp/{rsvp_id}/delete")
def admin_confirm_delete(
    root_token: str, rsvp_id: int, request: Request, db: Session = Depends(get_db)
):
    _require_root_access(root_token)
    rsvp = _ensure_rsvp(db, rsvp_id)
    response = templates.TemplateResponse(
        request,
        "admin/confirm_delete.html",
        {"request": request, "root_token": root_token, "rsvp": rsvp},
    )
    return _no_cache(response)


@app.post("/admin/{root_token}/rsvp/{rsvp_id}/delete")
def admin_delete_rsvp(
    root_token: str, rsvp_id: int, request: Request, db: Session = Depends(get_db)
):
    _require_root_access(root_token)
    deleted = delete_rsvp(db, rsvp_id)
    if deleted is None:
        raise HTTPException(status_code=404, detail="RSVP not found")
    db.commit()
    get_page_cache(request).invalidate_rsvp_pages()
    logger.info("Admin deleted RSVP %s (%s)", rsvp_id, deleted.email)
    url = _admin_url(
        root_token,
        "/guests",
        message=f"Removed RSVP for {deleted.name}.",
        message_class="alert-success",
    )
    return RedirectResponse(url=url, status_code=303)


@app.post("/admin/{root_token}/test-email")
def admin_send_test_email(
    root_token: str, request: Request, email: str = Form(...)
):
    _require_root_access(root_token)
    checked = validate_email_address(email)
    if not checked.success:
        message = enhance_error_messages(checked.errors)[0].message
        url = _admin_url(root_token, message=message, message_class="alert-error")
        return RedirectResponse(url=url, status_code=303)
    result = request.app.state.mailer.send_test_email(checked.data)
    if result.success:
        message, message_class = f"Test email sent to {checked.data}.", "alert-success"
    else:
        message = f"Test email failed: {result.error or 'unknown error'}"
        message_class = "alert-error"
    url = _admin_url(root_token, message=message, message_class=message_class)
    return RedirectResponse(url=url, status_code=303)


@app.get("/api/admin/rsvps")
def api_admin_list_rsvps(
    request: Request,
    sort: str = Query("date"),
    direction: str = Query("desc"),
    status: str = Query("all", alias="filter"),
    db: Session = Depends(get_db),
):
    _require_root_bearer(request, db)
    if sort not in SORT_KEYS:
        raise HTTPException(status_code=400, detail=f"Invalid sort; use one of {', '.join(SORT_KEYS)}")
    if direction not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="Invalid direction; use asc or desc")
    if status not in FILTERS:
        raise HTTPException(status_code=400, detail=f"Invalid filter; use one of {', '.join(FILTERS)}")
    rsvps = sort_rsvps(filter_rsvps(get_all_rsvps(db), status), sort, direction)
    return {"rsvps": [serialize_rsvp(rsvp) for rsvp in rsvps], "count": len(rsvps)}


@app.get("/api/admin/stats")
def api_admin_stats(request: Request, db: Session = Depends(get_db)):
    _require_root_bearer(request, db)
    admin_stats = build_admin_stats(get_rsvp_stats(db), get_all_rsvps(db))
    return _serialize_admin_stats(admin_stats)


@app.patch("/api/admin/rsvps/{rsvp_id}")
async def api_admin_update_rsvp(
    rsvp_id: int, request: Request, db: Session = Depends(get_db)
):
    await run_in_threadpool(_require_root_bearer, request, db)
    try:
        changes = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        changes = None
    if not isinstance(changes, dict) or not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    changes = parse_json_submission(changes)
    if "attendance" not in changes and isinstance(changes.get("isAttending"), bool):
        changes["attendance"] = "yes" if changes.pop("isAttending") else "no"
    rsvp = await run_in_threadpool(_ensure_rsvp, db, rsvp_id)
    errors = await run_in_threadpool(
        _apply_admin_update, db, rsvp, changes, get_page_cache(request)
    )
    if errors:
        return JSONResponse(
            {"message": ERROR_MESSAGES["VALIDATION_FAILED"], "errors": _errors_payload(errors)},
            status_code=400,
        )
    return {"rsvp": serialize_rsvp(rsvp)}


@app.delete("/api/admin/rsvps/{rsvp_id}", status_code=204)
def api_admin_delete_rsvp(rsvp_id: int, request: Request, db: Session = Depends(get_db)):
    _require_root_bearer(request, db)
    if delete_rsvp(db, rsvp_id) is None:
        raise HTTPException(status_code=404, detail="RSVP not found")
    db.commit()
    get_page_cache(request).invalidate_rsvp_pages()
    return Response(status_code=204)
