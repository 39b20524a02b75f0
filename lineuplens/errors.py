"""Exception hierarchy shared by auth, API, and catalog layers.

Every failure raised by lineup-lens derives from :class:`LineupLensError` so
the CLI can report it uniformly. Subclasses are grouped by the component that
raises them:

- :class:`AuthError` - PKCE login, token exchange and refresh
- :class:`ApiError` - Spotify Web API responses
- :class:`CatalogError` - festival lineup CSV loading
"""

from __future__ import annotations


class LineupLensError(Exception):
    """Base class for all lineup-lens failures."""


# ---------------- Authentication -----------------

class AuthError(LineupLensError):
    """Authentication flow failure."""


class StateMismatch(AuthError):
    def __init__(self, message: str = "Invalid state parameter. Possible CSRF attack."):
        super().__init__(message)


class MissingVerifier(AuthError):
    def __init__(self, message: str = "Code verifier not found. Please try logging in again."):
        super().__init__(message)


class ExchangeFailed(AuthError):
    """Authorization code could not be exchanged for a token."""


class RefreshFailed(AuthError):
    """Refresh token exchange failed; the user must log in again."""


# ---------------- Spotify Web API -----------------

class ApiError(LineupLensError):
    """Non-success response from the Spotify Web API."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class Unauthenticated(ApiError):
    def __init__(self, message: str = "Authentication failed. Please log in again."):
        super().__init__(message, status=401)


class Forbidden(ApiError):
    def __init__(self, message: str = "Access forbidden. Please check your permissions."):
        super().__init__(message, status=403)


class ServerError(ApiError):
    def __init__(self, status: int):
        super().__init__(f"Spotify API error ({status}). Please try again later.", status=status)


class RateLimited(ApiError):
    """HTTP 429. Handled inside the client by waiting ``retry_after`` seconds."""

    def __init__(self, retry_after: int):
        super().__init__(f"Rate limited. Retry after {retry_after}s", status=429)
        self.retry_after = retry_after


class GenericApiError(ApiError):
    """Any other non-2xx response or transport failure."""


# ---------------- Catalog loading -----------------

class CatalogError(LineupLensError):
    """Festival lineup data could not be loaded."""


class MissingColumns(CatalogError):
    def __init__(self, missing: list[str]):
        super().__init__(f"Invalid CSV structure. Missing required columns: {', '.join(missing)}")
        self.missing = missing


class EmptyCatalog(CatalogError):
    def __init__(self, message: str = "No valid artists found in CSV file."):
        super().__init__(message)


class MalformedIdentifier(CatalogError):
    """Row-level defect: artist ID is not 22 alphanumeric characters.

    Raised only inside row validation; the loader logs and skips the row.
    """

    def __init__(self, value: str):
        super().__init__(f"Invalid Spotify ID format: {value!r}")
        self.value = value


__all__ = [
    "LineupLensError",
    "AuthError",
    "StateMismatch",
    "MissingVerifier",
    "ExchangeFailed",
    "RefreshFailed",
    "ApiError",
    "Unauthenticated",
    "Forbidden",
    "ServerError",
    "RateLimited",
    "GenericApiError",
    "CatalogError",
    "MissingColumns",
    "EmptyCatalog",
    "MalformedIdentifier",
]
