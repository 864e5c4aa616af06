"""
Error taxonomy for the access model.

Validation errors are terminal for the triggering operation and are never
retried. StoreUnavailable is the only retryable class.
"""

from __future__ import annotations

from typing import Any


class AccessModelError(Exception):
    """Base class; carries an HTTP status and a stable machine-readable code."""

    status_code = 400
    code = "ACCESS_MODEL_ERROR"
    retryable = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "status": self.status_code,
        }


class UnknownTarget(AccessModelError):
    status_code = 404
    code = "UNKNOWN_TARGET"


class UnknownRequest(AccessModelError):
    status_code = 404
    code = "UNKNOWN_REQUEST"


class RequestNotPending(UnknownRequest):
    """The request exists but has already left PENDING."""

    status_code = 409
    code = "REQUEST_NOT_PENDING"


class UnknownRole(AccessModelError):
    status_code = 404
    code = "UNKNOWN_ROLE"


class DuplicateRole(AccessModelError):
    status_code = 409
    code = "DUPLICATE_ROLE"


class DuplicateMember(AccessModelError):
    status_code = 409
    code = "DUPLICATE_MEMBER"


class EmptyDefinition(AccessModelError):
    status_code = 422
    code = "EMPTY_DEFINITION"


class AccessDenied(AccessModelError):
    status_code = 403
    code = "ACCESS_DENIED"


class StoreUnavailable(AccessModelError):
    status_code = 503
    code = "STORE_UNAVAILABLE"
    retryable = True
