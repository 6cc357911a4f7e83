"""Instrumentation hooks for the submission pipeline."""

from __future__ import annotations

import logging

from .validation import FieldError

logger = logging.getLogger("uvicorn.error")


class SubmissionObserver:
    """No-op base; subclass and override the hooks you care about."""

    def submission_started(self, source: str) -> None:
        pass

    def validation_failed(self, errors: list[FieldError]) -> None:
        pass

    def duplicate_email(self, email: str) -> None:
        pass

    def storage_failed(self, error: Exception) -> None:
        pass

    def rsvp_created(self, rsvp_id: int, is_attending: bool) -> None:
        pass

    def email_failed(self, email: str, error: str | None) -> None:
        pass

    def submission_completed(self, success: bool, duration_ms: float) -> None:
        pass


class LoggingSubmissionObserver(SubmissionObserver):
    def __init__(self, slow_threshold_ms: float = 1000):
        self.slow_threshold_ms = slow_threshold_ms

    def validation_failed(self, errors: list[FieldError]) -> None:
        logger.info(
            "RSVP rejected with %d validation error(s): %s",
            len(errors),
            ", ".join(sorted({error.field for error in errors})),
        )

    def duplicate_email(self, email: str) -> None:
        logger.info("Duplicate RSVP attempt for %s", email)

    def storage_failed(self, error: Exception) -> None:
        logger.error("Failed to store RSVP: %s", error)

    def rsvp_created(self, rsvp_id: int, is_attending: bool) -> None:
        logger.info("RSVP %s created (attending=%s)", rsvp_id, is_attending)

    def email_failed(self, email: str, error: str | None) -> None:
        logger.warning("Confirmation email to %s not sent: %s", email, error)

    def submission_completed(self, success: bool, duration_ms: float) -> None:
        if duration_ms > self.slow_threshold_ms:
            logger.warning(
                "Slow RSVP submission: %.0fms (threshold %.0fms, success=%s)",
                duration_ms,
                self.slow_threshold_ms,
                success,
            )


class RecordingSubmissionObserver(SubmissionObserver):
    """Collects hook calls in order; handy for tests and debugging."""

    def __init__(self) -> None:
        self.events: list[tuple[str, tuple]] = []

    def submission_started(self, source: str) -> None:
        self.events.append(("submission_started", (source,)))

    def validation_failed(self, errors: list[FieldError]) -> None:
        self.events.append(("validation_failed", (errors,)))

    def duplicate_email(self, email: str) -> None:
        self.events.append(("duplicate_email", (email,)))

    def storage_failed(self, error: Exception) -> None:
        self.events.append(("storage_failed", (error,)))

    def rsvp_created(self, rsvp_id: int, is_attending: bool) -> None:
        self.events.append(("rsvp_created", (rsvp_id, is_attending)))

    def email_failed(self, email: str, error: str | None) -> None:
        self.events.append(("email_failed", (email, error)))

    def submission_completed(self, success: bool, duration_ms: float) -> None:
        self.events.append(("submission_completed", (success,)))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]
