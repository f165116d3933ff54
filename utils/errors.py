"""Custom exceptions for CloudStash.

Two families share one base: AuthError for the OAuth session lifecycle and
DriveError for Drive API operations. Errors raised from an HTTP response carry
its status code and body.
"""
from typing import Optional


class CloudStashError(Exception):
    """Base exception for all CloudStash errors.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status of the failing response, if there was one.
        body: Response body text, if there was one.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the error message, optionally including the HTTP status."""
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


# --- OAuth session ---------------------------------------------------------

class AuthError(CloudStashError):
    """Raised when the OAuth flow or session fails."""
    pass


class StateMismatchError(AuthError):
    """Raised when the callback state does not match the pending flow."""
    pass


class AuthorizationDeniedError(AuthError):
    """Raised when the provider redirects back with an error parameter."""
    pass


class MissingCodeError(AuthError):
    """Raised when the callback carries neither a code nor an error."""
    pass


class SessionExpiredError(AuthError):
    """Raised when the session can no longer be refreshed.

    The credentials have already been cleared when this is raised; callers
    must ask the user to sign in again.
    """
    pass


class TokenExchangeError(AuthError):
    """Raised when the token endpoint fails or returns an unusable payload."""
    pass


class InvalidCallbackError(AuthError):
    """Raised when a redirect URL is not this app's OAuth callback."""
    pass


# --- Local storage ---------------------------------------------------------

class CredentialStorageError(CloudStashError):
    """Raised when the OS keychain cannot store or remove a secret."""
    pass


# --- Drive API -------------------------------------------------------------

class DriveError(CloudStashError):
    """Raised when a Drive API operation fails."""
    pass


class NotSignedInError(DriveError):
    """Raised before any network call when no session exists."""

    def __init__(self, message: str = "Not signed in. Please sign in with Google.") -> None:
        super().__init__(message)


class UploadFailedError(DriveError):
    """Raised when creating the file fails."""
    pass


class PermissionFailedError(UploadFailedError):
    """Raised when making an uploaded file public fails."""
    pass


class DownloadFailedError(DriveError):
    """Raised when downloading a file fails."""
    pass


class ListFailedError(DriveError):
    """Raised when listing files fails."""
    pass


class DeleteFailedError(DriveError):
    """Raised when deleting a file fails."""
    pass


class UserInfoFailedError(DriveError):
    """Raised when the profile endpoint fails."""
    pass
