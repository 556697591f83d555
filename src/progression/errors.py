"""
Error taxonomy for the progress core.

Derivation code degrades gracefully on bad data; these exceptions are for the
conditions a caller has to decide on (missing resources, ownership, limits,
store outages). Each carries the envelope `code` and an HTTP status so the API
layer can map them without a lookup table.
"""

from __future__ import annotations

from typing import Any, Optional


class ProgressError(Exception):
    code = "PROGRESS_ERROR"
    status_code = 400

    def __init__(self, message: str, *, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFound(ProgressError):
    code = "NOT_FOUND"
    status_code = 404


class Forbidden(ProgressError):
    code = "FORBIDDEN"
    status_code = 403


class PayloadValidationError(ProgressError):
    """Malformed event payload. Raised only at the API boundary; graders log and skip instead."""
    code = "VALIDATION_ERROR"
    status_code = 400


class MaxAttemptsExceeded(ProgressError):
    code = "MAX_ATTEMPTS"
    status_code = 400


class NoEligibleQuestions(ProgressError):
    code = "NO_ELIGIBLE_QUESTIONS"
    status_code = 400


class StoreUnavailable(ProgressError):
    code = "STORE_UNAVAILABLE"
    status_code = 503


class ShapeMismatch(ProgressError):
    """Saved snapshot cardinality differs from fresh content. Handled inside reconciliation."""
    code = "SHAPE_MISMATCH"
    status_code = 409
