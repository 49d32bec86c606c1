"""Error taxonomy shared by the store, the dispatcher and the HTTP layer.

Every error carries a stable machine-readable ``code`` and the HTTP status
the web layer should answer with, so callers branch on type, never on
message text.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for all expected application errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = "", code: str | None = None) -> None:
        if code:
            self.code = code
        super().__init__(message or self.code)
        self.message = message or self.code


class ValidationError(AppError):
    """Input failed validation. ``errors`` lists every problem found."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, errors: list[str] | str) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(AppError):
    """An activity with the same name and date already exists."""

    code = "CONFLICT"
    status_code = 409


class UnauthorizedError(AppError):
    code = "UNAUTHORIZED"
    status_code = 401


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    status_code = 403


class ConfigurationError(AppError):
    """A required server-side setting is missing."""

    code = "NOT_CONFIGURED"
    status_code = 500


# ---------------------------------------------------------------------------
# Messaging transport failures
# ---------------------------------------------------------------------------


class UpstreamError(AppError):
    """The messaging transport rejected or failed a request."""

    code = "LINE_API_ERROR"
    status_code = 502

    def __init__(self, message: str = "", http_status: int | None = None) -> None:
        super().__init__(message)
        self.http_status = http_status


class UpstreamRateLimited(UpstreamError):
    """HTTP 429. Transient, recoverable by backing off."""

    code = "RATE_LIMITED"


class UpstreamQuotaExhausted(UpstreamError):
    """The monthly message allowance is used up. Never retried."""

    code = "QUOTA_EXHAUSTED"


class UpstreamClientError(UpstreamError):
    code = "LINE_CLIENT_ERROR"


class UpstreamServerError(UpstreamError):
    code = "LINE_SERVER_ERROR"


class UpstreamTimeout(UpstreamError):
    code = "TIMEOUT"
    status_code = 504
