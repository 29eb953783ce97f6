"""Domain error taxonomy.

Services raise these; the HTTP layer translates them into JSON responses in
``learnhub.middleware.error_handler``. ``extra`` carries structured context
(for example the learner's current completion percentage) that is merged
into the response body.
"""

from __future__ import annotations

from typing import Any


class LearnHubError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra


class UnauthorizedError(LearnHubError):
    """No authenticated user, or the token could not be verified."""

    status_code = 401


class ForbiddenError(UnauthorizedError):
    """Authenticated, but the user's role does not allow the action."""

    status_code = 403


class NotFoundError(LearnHubError):
    """Entity missing, or not visible to this user."""

    status_code = 404


class IneligibleError(LearnHubError):
    """Precondition not met (completion below threshold, payment required, ...)."""

    status_code = 400


class ConflictError(LearnHubError):
    """Duplicate creation attempt."""

    status_code = 409


class InternalError(LearnHubError):
    """Unexpected failure; the message is never shown to clients."""

    status_code = 500
