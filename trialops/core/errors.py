"""
Domain errors raised by the service layer.

Every error carries an HTTP status and a short machine-readable ``code``;
``trialops.main`` turns them into ``{"detail", "code"}`` JSON responses so
routes never have to translate them by hand.
"""

from typing import Optional


class TrialOpsError(Exception):
    """Base class for all recoverable, caller-facing errors."""

    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class InvalidRequestError(TrialOpsError):
    """Bad input shape or a missing mandatory field."""

    status_code = 400
    code = "invalid_request"


class SchedulingRejected(TrialOpsError):
    """Proposed appointment date falls outside the OPD window or on a closed weekday."""

    status_code = 400
    code = "scheduling_rejected"


class PreconditionFailedError(TrialOpsError):
    """The operation is valid in shape but the visit sequence does not allow it yet."""

    status_code = 409
    code = "precondition_failed"


class DuplicateIdentifierError(TrialOpsError):
    status_code = 409
    code = "duplicate_identifier"


class PermissionDeniedError(TrialOpsError):
    status_code = 403
    code = "permission_denied"


class NotFoundError(TrialOpsError):
    status_code = 404
    code = "not_found"


class ExtractionError(TrialOpsError):
    """The vision service failed or returned something that is not a JSON object."""

    status_code = 502
    code = "extraction_failed"
