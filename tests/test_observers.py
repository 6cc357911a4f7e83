from __future__ import annotations

import logging

from weddingrsvp.observers import LoggingSubmissionObserver
from weddingrsvp.validation import FieldError


def test_slow_submissions_are_logged(caplog):
    observer = LoggingSubmissionObserver(slow_threshold_ms=50)
    with caplog.at_level(logging.WARNING, logger="uvicorn.error"):
        observer.submission_completed(True, 10)
        observer.submission_completed(False, 120)
    slow = [record for record in caplog.records if "Slow RSVP submission" in record.message]
    assert len(slow) == 1
    assert "success=False" in slow[0].message


def test_validation_failures_log_field_names(caplog):
    observer = LoggingSubmissionObserver()
    with caplog.at_level(logging.INFO, logger="uvicorn.error"):
        observer.validation_failed(
            [FieldError("email", "bad"), FieldError("name", "bad"), FieldError("email", "worse")]
        )
    assert "3 validation error(s): email, name" in caplog.text
