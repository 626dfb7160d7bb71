"""
Domain error taxonomy.

Every error is an HTTPException so services can raise them the same way they
raise HTTPException; main.py renders them as {"success": false, "error", "code"}.
"""

from typing import Optional

from fastapi import HTTPException


class ServiceDomeError(HTTPException):
    status_code = 500
    code = "internal_error"
    default_detail = "Something went wrong. Please try again."

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code, detail=detail or self.default_detail, headers=headers
        )


class ValidationError(ServiceDomeError):
    status_code = 400
    code = "validation_error"
    default_detail = "Invalid input"


class Unauthorized(ServiceDomeError):
    status_code = 401
    code = "unauthorized"
    default_detail = "Not authenticated"


class Forbidden(ServiceDomeError):
    status_code = 403
    code = "forbidden"
    default_detail = "You are not allowed to perform this action"


class QuotaExceeded(ServiceDomeError):
    status_code = 403
    code = "quota_exceeded"
    default_detail = "Plan limit reached"


class NotFound(ServiceDomeError):
    status_code = 404
    code = "not_found"
    default_detail = "Not found"


class Conflict(ServiceDomeError):
    status_code = 409
    code = "conflict"
    default_detail = "Conflicting request"


class SlotUnavailable(Conflict):
    code = "slot_unavailable"
    default_detail = "The requested time slot is not available"


class InvalidTransition(ServiceDomeError):
    status_code = 409
    code = "invalid_transition"
    default_detail = "Status change not allowed"


class UpstreamFailure(ServiceDomeError):
    status_code = 502
    code = "upstream_failure"
    default_detail = "An external service is unavailable"
