"""Service-layer errors.

Every error a request can end in maps to one class here. The web layer turns
them into JSON responses with the matching HTTP status.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base class for request-scoped failures."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class ValidationError(ServiceError):
    """Raised when a payload field is missing or malformed."""
    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "field": self.field}


class AuthenticationError(ServiceError):
    """Raised when no caller identity could be resolved."""
    status_code = 401


class PermissionDeniedError(ServiceError):
    """Raised when the caller lacks the access tier an operation needs."""
    status_code = 403


class NotFoundError(ServiceError):
    """Raised when a referenced entity does not exist."""
    status_code = 404


class ConflictError(ServiceError):
    """Raised on duplicate pending matches and invalid state transitions."""
    status_code = 409
