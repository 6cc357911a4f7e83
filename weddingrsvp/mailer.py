"""Confirmation emails sent through Resend."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import resend
from jinja2 import Environment, FileSystemLoader, select_autoescape
from resend.exceptions import ResendError

from .config import Settings
from .models import RSVP

logger = logging.getLogger("uvicorn.error")

NOT_CONFIGURED = "Email service not configured"
ATTENDING_SUBJECT = "We can't wait to see you at our wedding! \U0001f495"
DECLINING_SUBJECT = "Thank you for your RSVP response"
TEMPLATE_NAME = "email/rsvp_confirmation.html"

_env = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
    autoescape=select_autoescape(["html"]),
)


@dataclass
class EmailResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


def confirmation_subject(is_attending: bool) -> str:
    return ATTENDING_SUBJECT if is_attending else DECLINING_SUBJECT


def sample_rsvp(email: str) -> RSVP:
    """A throwaway attending RSVP used by the test-email actions."""
    return RSVP(
        name="Test Guest",
        email=email,
        is_attending=True,
        number_of_guests=2,
        guest_names=["Jane Doe", "John Doe"],
        dietary_restrictions="Vegetarian",
        song_requests="Dancing Queen - ABBA",
        notes="This is a test email.",
    )


class ConfirmationMailer:
    """Compose and send the RSVP confirmation for a stored record."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def configured(self) -> bool:
        return self.settings.email_configured

    def render(self, rsvp: RSVP) -> str:
        template = _env.get_template(TEMPLATE_NAME)
        return template.render(
            rsvp=rsvp,
            guest_names=list(rsvp.guest_names or []),
            settings=self.settings,
        )

    def build_params(self, rsvp: RSVP) -> dict[str, Any]:
        return {
            "from": self.settings.email_from,
            "to": [rsvp.email],
            "subject": confirmation_subject(bool(rsvp.is_attending)),
            "html": self.render(rsvp),
        }

    def send_confirmation(self, rsvp: RSVP) -> EmailResult:
        if not self.configured:
            logger.warning(
                "Resend API key not configured; skipping confirmation for %s",
                rsvp.email,
            )
            return EmailResult(False, error=NOT_CONFIGURED)

        resend.api_key = self.settings.resend_api_key
        try:
            response = resend.Emails.send(self.build_params(rsvp))
        except ResendError as exc:
            logger.error("Resend rejected confirmation for %s: %s", rsvp.email, exc)
            return EmailResult(False, error=str(exc))
        except Exception as exc:
            logger.exception("Unexpected error sending confirmation to %s", rsvp.email)
            return EmailResult(False, error=str(exc) or "Unknown error")

        message_id = response.get("id") if isinstance(response, dict) else None
        logger.info("Confirmation email sent to %s (id=%s)", rsvp.email, message_id)
        return EmailResult(True, message_id=message_id)

    def send_test_email(self, email: str) -> EmailResult:
        return self.send_confirmation(sample_rsvp(email))
