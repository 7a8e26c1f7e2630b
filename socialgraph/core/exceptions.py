"""Domain exceptions for the social graph service.

Services raise these; the API layer turns them into an
``{"error": {"kind", "message"}}`` envelope with a matching HTTP status.
"""
from typing import Any, Dict, Optional


class SocialGraphError(Exception):
    """Base exception for all social graph errors."""

    kind = "error"
    status_code = 400
    retryable = False
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        error = {"kind": self.kind, "message": self.message}
        if self.details:
            error["details"] = self.details
        if self.retryable:
            error["retryable"] = True
        return error


class SelfReferenceError(SocialGraphError):
    """Raised when a user tries to friend, follow or block themselves."""

    kind = "self_reference"
    status_code = 400


class ConflictError(SocialGraphError):
    """Raised when an active edge already exists for the pair."""

    kind = "conflict"
    status_code = 409


class UnauthenticatedError(SocialGraphError):
    """Raised when the bearer token is missing, malformed or expired."""

    kind = "unauthenticated"
    status_code = 401
    headers = {"WWW-Authenticate": "Bearer"}


class NotFoundError(SocialGraphError):
    """Raised when a user, edge or post id is unknown."""

    kind = "not_found"
    status_code = 404


class AuthorizationError(SocialGraphError):
    """Raised when the acting user is not allowed to touch the edge."""

    kind = "forbidden"
    status_code = 403


class InvalidStateError(SocialGraphError):
    """Raised when a transition is attempted from an ineligible state."""

    kind = "invalid_state"
    status_code = 409


class StorageError(SocialGraphError):
    """Raised when the database fails underneath an operation.

    Treated as transient. The service does not retry; callers may.
    """

    kind = "storage"
    status_code = 503
    retryable = True
