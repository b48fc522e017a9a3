"""Typed errors raised by the service layer.

Services raise these instead of ``HTTPException`` so the auto-approval job can
catch them per log; ``main.py`` maps them onto JSON responses.
"""
from typing import Any, Optional


class EcoTrackError(Exception):
    """Base class for every domain error."""

    status_code = 400
    code = "error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


class ValidationFailed(EcoTrackError):
    code = "validation_error"

    def __init__(self, field: str, rule: str, message: str, received: Any = None, **extra: Any):
        details = {"field": field, "rule": rule, "received": received, **extra}
        super().__init__(message, details)
        self.field = field
        self.rule = rule


class DuplicateSubmission(EcoTrackError):
    code = "duplicate_submission"

    def __init__(self, kind: str, message: str, existing_log_id: int):
        super().__init__(message, {"kind": kind, "existing_log_id": existing_log_id})
        self.kind = kind


class NotRegistered(EcoTrackError):
    code = "not_registered"


class EventNotFound(EcoTrackError):
    status_code = 404
    code = "event_not_found"


class NotFound(EcoTrackError):
    status_code = 404
    code = "not_found"


class AlreadyVerified(EcoTrackError):
    code = "already_verified"


class PermissionDenied(EcoTrackError):
    status_code = 403
    code = "permission_denied"


class StorageFailure(EcoTrackError):
    status_code = 500
    code = "storage_failure"


class RegistrationRefused(EcoTrackError):
    code = "registration_refused"
