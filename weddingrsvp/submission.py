"""The RSVP submission pipeline shared by the form post and the JSON API.

parse -> validate -> uniqueness pre-check -> persist -> email -> invalidate.
Each step runs only if the previous one succeeded; nothing after a failed
validation touches the database or the mail provider.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .cache import PageCache
from .crud import (
    DuplicateEmailError,
    GuestNamesError,
    RSVPStorageError,
    create_rsvp,
    get_rsvp_by_email,
)
from .error_messages import ERROR_MESSAGES, enhance_error_messages
from .forms import parse_form_submission, parse_json_submission
from .mailer import ConfirmationMailer, EmailResult
from .models import RSVP
from .observers import SubmissionObserver
from .validation import FORM_FIELD, FieldError, validate_rsvp

logger = logging.getLogger("uvicorn.error")


@dataclass
class SubmissionResult:
    success: bool
    rsvp: RSVP | None = None
    errors: list[FieldError] = field(default_factory=list)
    email: EmailResult | None = None
    server_error: bool = False

    @classmethod
    def failed(
        cls, errors: list[FieldError], *, server_error: bool = False
    ) -> "SubmissionResult":
        return cls(False, errors=errors, server_error=server_error)

    @property
    def email_sent(self) -> bool:
        return bool(self.email and self.email.success)


def storage_error_field(exc: Exception) -> FieldError:
    """Map a persistence failure onto the field the guest should fix."""
    if isinstance(exc, DuplicateEmailError):
        return FieldError("email", ERROR_MESSAGES["EMAIL_ALREADY_EXISTS"])
    message = str(exc).lower()
    if "email" in message or "unique" in message:
        return FieldError("email", ERROR_MESSAGES["EMAIL_ALREADY_EXISTS"])
    if "guest" in message:
        return FieldError("guestNames", ERROR_MESSAGES["GUEST_NAMES_REQUIRED"])
    return FieldError(FORM_FIELD, ERROR_MESSAGES["SERVER_ERROR"])


class SubmissionPipeline:
    def __init__(
        self,
        session: Session,
        *,
        mailer: ConfirmationMailer | None = None,
        page_cache: PageCache | None = None,
        observer: SubmissionObserver | None = None,
    ):
        self.session = session
        self.mailer = mailer
        self.page_cache = page_cache
        self.observer = observer or SubmissionObserver()

    def submit_form(self, form: Mapping[str, Any]) -> SubmissionResult:
        return self.submit(parse_form_submission(form), source="form")

    def submit_json(self, data: Any) -> SubmissionResult:
        return self.submit(parse_json_submission(data), source="json")

    def submit(self, payload: Any, *, source: str = "json") -> SubmissionResult:
        started = time.perf_counter()
        self.observer.submission_started(source)
        result = self._process(payload)
        elapsed_ms = (time.perf_counter() - started) * 1000
        self.observer.submission_completed(result.success, elapsed_ms)
        return result

    def _process(self, payload: Any) -> SubmissionResult:
        validation = validate_rsvp(payload)
        if not validation.success:
            self.observer.validation_failed(validation.errors)
            return SubmissionResult.failed(enhance_error_messages(validation.errors))
        submission = validation.data

        if self._email_taken(submission.email):
            self.observer.duplicate_email(submission.email)
            return SubmissionResult.failed(
                [FieldError("email", ERROR_MESSAGES["EMAIL_ALREADY_EXISTS"])]
            )

        try:
            rsvp = create_rsvp(self.session, submission)
            self.session.commit()
        except DuplicateEmailError as exc:
            self.observer.duplicate_email(exc.email)
            return SubmissionResult.failed([storage_error_field(exc)])
        except (GuestNamesError, RSVPStorageError, SQLAlchemyError) as exc:
            self.session.rollback()
            self.observer.storage_failed(exc)
            error = storage_error_field(exc)
            return SubmissionResult.failed(
                [error], server_error=error.field == FORM_FIELD
            )
        self.observer.rsvp_created(rsvp.id, bool(rsvp.is_attending))

        email_result = self._send_confirmation(rsvp)
        if self.page_cache is not None:
            self.page_cache.invalidate_rsvp_pages()
        return SubmissionResult(True, rsvp=rsvp, email=email_result)

    def _email_taken(self, email: str) -> bool:
        try:
            return get_rsvp_by_email(self.session, email) is not None
        except SQLAlchemyError:
            # The unique index still rejects a duplicate on insert.
            logger.warning("Email pre-check failed for %s; continuing", email, exc_info=True)
            self.session.rollback()
            return False

    def _send_confirmation(self, rsvp: RSVP) -> EmailResult | None:
        if self.mailer is None:
            return None
        try:
            result = self.mailer.send_confirmation(rsvp)
        except Exception as exc:
            logger.exception("Confirmation email for RSVP %s failed", rsvp.id)
            result = EmailResult(False, error=str(exc))
        if not result.success:
            self.observer.email_failed(rsvp.email, result.error)
        return result
