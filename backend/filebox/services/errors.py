"""Error taxonomy shared by the adapters, the catalog and the account controller."""

from __future__ import annotations


class FileBoxError(Exception):
    """Base class for every error FileBox raises or reports."""


class AuthError(FileBoxError):
    """Rejected by the auth provider (bad credentials, email in use, ...)."""

    def __init__(self, code: str, detail: str | None = None):
        self.code = code
        self.detail = detail
        super().__init__(detail or code)


class NotAuthenticated(FileBoxError):
    """A catalog operation was attempted while nobody is signed in."""


class ValidationError(FileBoxError):
    """Input rejected before any provider call (empty name, password mismatch)."""


class ProviderError(FileBoxError):
    """Network or storage failure reported by the remote object store."""


class ProviderUnavailable(ProviderError):
    pass


class NotFound(ProviderError):
    pass


class QuotaExceeded(ProviderError):
    pass


# Normalized auth error codes
EMAIL_IN_USE = "email_in_use"
INVALID_EMAIL = "invalid_email"
WEAK_PASSWORD = "weak_password"
USER_NOT_FOUND = "user_not_found"
INVALID_CREDENTIALS = "invalid_credentials"
TOO_MANY_REQUESTS = "too_many_requests"
USER_DISABLED = "user_disabled"
SESSION_EXPIRED = "session_expired"
UNKNOWN = "unknown"
