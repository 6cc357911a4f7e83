"""Typer CLI for the wedding RSVP site."""

from __future__ import annotations

import json
from pathlib import Path

from sqlalchemy.exc import OperationalError
import typer
import uvicorn

from .analytics import build_admin_stats
from .config import (
    load_settings,
    settings,
    settings_as_dict,
    update_config_file,
)
from .crud import get_all_rsvps, get_rsvp_stats
from .database import get_session
from .mailer import ConfirmationMailer
from .maintenance import vacuum_database
from .scheduler import start_scheduler, stop_scheduler
from .seed import seed_fake_data
from .storage import (
    ensure_root_token,
    fetch_root_token,
    init_db,
    rotate_root_token,
    upgrade_database,
)
from .validation import validate_email_address

app = typer.Typer(help="Wedding RSVP command-line interface")


def _exit_if_readonly(exc: OperationalError, action: str) -> None:
    message = str(getattr(exc, "orig", exc)).lower()
    if "readonly" in message or "read-only" in message:
        typer.secho(
            f"Unable to {action} because the database is read-only. "
            f"Ensure write access to {settings.database_path}.",
            err=True,
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Show help when no subcommand is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("admin-token")
def admin_token() -> None:
    """Print the current root admin token."""
    init_db()
    token = fetch_root_token()
    typer.echo(token)


@app.command("rotate-admin-token")
def rotate_admin_token() -> None:
    """Rotate the root admin token."""
    try:
        init_db()
        token = rotate_root_token()
    except OperationalError as exc:
        _exit_if_readonly(exc, "rotate the root admin token")
        raise
    typer.echo(token)


@app.command("upgrade-db")
def upgrade_db(
    no_backup: bool = typer.Option(
        False,
        "--no-backup",
        help="Skip creating a .bak copy of the database before upgrading",
    ),
) -> None:
    """Upgrade the SQLite database schema if needed."""
    try:
        actions = upgrade_database(make_backup=not no_backup)
    except OperationalError as exc:
        _exit_if_readonly(exc, "upgrade")
        raise

    if not actions:
        typer.echo("Database already up to date.")
        return

    ensure_root_token()
    typer.echo("Database upgrade complete:")
    for action in actions:
        typer.echo(f"- {action}")


@app.command("vacuum")
def vacuum() -> None:
    """Run SQLite VACUUM now instead of waiting for the scheduler."""
    init_db()
    vacuum_database()
    typer.echo("Database vacuum complete.")


@app.command("runserver")
def runserver(
    host: str = typer.Option(settings.app_host, "--host", help="Host to bind"),
    port: int = typer.Option(settings.app_port, "--port", help="Port to bind"),
):
    """Start FastAPI with APScheduler."""
    init_db()
    if settings.enable_scheduler:
        start_scheduler()
    config = uvicorn.Config(
        "weddingrsvp.api:app",
        host=host,
        port=port,
        reload=False,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
    server = uvicorn.Server(config)
    try:
        typer.echo(f"Starting wedding RSVP site on {host}:{port}")
        server.run()
    finally:
        stop_scheduler()


@app.command("seed-data")
def seed_data(
    rsvps: int = typer.Option(
        settings.seed_rsvps, "--rsvps", min=0, help="Number of fake RSVPs to create"
    ),
    attending_percent: int = typer.Option(
        80,
        "--attending-percent",
        min=0,
        max=100,
        help="Percent of fake RSVPs that accept",
    ),
    max_age_days: int = typer.Option(
        45, "--max-age-days", min=0, help="Spread submission dates over this many days"
    ),
):
    """Populate the database with fake RSVPs for local development."""
    stats = seed_fake_data(
        rsvp_count=rsvps,
        attending_percent=attending_percent,
        max_age_days=max_age_days,
    )
    typer.echo(
        "Seeded {rsvps} RSVPs ({attending} attending, {guests} additional guests, "
        "{skipped} skipped).".format(**stats)
    )


@app.command("send-test-email")
def send_test_email(email: str = typer.Argument(..., help="Recipient address")):
    """Send a sample confirmation email through Resend."""
    checked = validate_email_address(email)
    if not checked.success:
        typer.secho(checked.errors[0].message, err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    result = ConfirmationMailer(settings).send_test_email(checked.data)
    if not result.success:
        typer.secho(
            f"Test email failed: {result.error}", err=True, fg=typer.colors.RED
        )
        raise typer.Exit(code=1)
    typer.echo(f"Test email sent to {checked.data} (id={result.message_id}).")


@app.command("stats")
def stats(
    as_json: bool = typer.Option(False, "--json", help="Print machine-readable JSON"),
):
    """Print RSVP totals."""
    init_db()
    with get_session() as session:
        admin_stats = build_admin_stats(get_rsvp_stats(session), get_all_rsvps(session))
    if as_json:
        payload = {
            **admin_stats.stats.as_dict(),
            "attendance_rate": round(admin_stats.attendance_rate, 1),
            "average_guests_per_rsvp": round(admin_stats.average_guests_per_rsvp, 2),
            "recent_submissions_24h": admin_stats.recent_submissions_24h,
        }
        typer.echo(json.dumps(payload, indent=2))
        return
    typer.echo(admin_stats.summary)
    typer.echo(
        f"Attending: {admin_stats.stats.attending_count}  "
        f"Not attending: {admin_stats.stats.not_attending_count}  "
        f"Headcount: {admin_stats.stats.total_attendees}"
    )


@app.command("config")
def configure(
    show: bool = typer.Option(
        False, "--show", help="Show the current effective configuration"
    ),
    vacuum_hours: int | None = typer.Option(
        None, "--vacuum-hours", min=1, help="Hours between SQLite VACUUM runs"
    ),
    host: str | None = typer.Option(None, "--host", help="Default host for runserver"),
    port: int | None = typer.Option(None, "--port", help="Default port for runserver"),
    config_path: Path | None = typer.Option(
        None,
        "--config-path",
        help="Path to weddingrsvp.toml (default: ./weddingrsvp.toml)",
    ),
    enable_scheduler: bool | None = typer.Option(
        None,
        "--enable-scheduler/--disable-scheduler",
        help="Toggle background scheduler (vacuum)",
    ),
    email_enabled: bool | None = typer.Option(
        None,
        "--email/--no-email",
        help="Toggle confirmation emails",
    ),
    email_from: str | None = typer.Option(
        None, "--email-from", help="Sender shown on confirmation emails"
    ),
    site_url: str | None = typer.Option(
        None, "--site-url", help="Public URL linked from confirmation emails"
    ),
    couple_names: str | None = typer.Option(None, "--couple-names"),
    wedding_date: str | None = typer.Option(None, "--wedding-date"),
    ceremony_details: str | None = typer.Option(None, "--ceremony-details"),
    reception_details: str | None = typer.Option(None, "--reception-details"),
    venue_address: str | None = typer.Option(None, "--venue-address"),
    slow_submission_ms: int | None = typer.Option(
        None,
        "--slow-submission-ms",
        min=1,
        help="Log a warning when a submission takes longer than this",
    ),
    seed_rsvps: int | None = typer.Option(
        None, "--seed-rsvps", min=0, help="Default seed-data RSVP count"
    ),
):
    """View or update the persistent configuration file.

    The Resend API key is never written here; set WEDDINGRSVP_RESEND_API_KEY.
    """

    updates = {
        "sqlite_vacuum_hours": vacuum_hours,
        "app_host": host,
        "app_port": port,
        "enable_scheduler": enable_scheduler,
        "email_enabled": email_enabled,
        "email_from": email_from,
        "site_url": site_url,
        "couple_names": couple_names,
        "wedding_date": wedding_date,
        "ceremony_details": ceremony_details,
        "reception_details": reception_details,
        "venue_address": venue_address,
        "slow_submission_ms": slow_submission_ms,
        "seed_rsvps": seed_rsvps,
    }
    clean_updates = {k: v for k, v in updates.items() if v is not None}

    settings_ref = settings
    target_path = config_path or settings.config_path
    if clean_updates:
        settings_ref = update_config_file(clean_updates, path=target_path)
        typer.echo(f"Updated configuration in {target_path}")
    else:
        settings_ref = load_settings(target_path)
    if show or not clean_updates:
        effective = settings_as_dict(settings_ref)
        effective["config_path"] = str(target_path)
        typer.echo(json.dumps(effective, indent=2))


if __name__ == "__main__":
    app()
