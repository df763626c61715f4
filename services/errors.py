from __future__ import annotations


class CredentialError(RuntimeError):
    """Raised when the OAuth client secrets or the cached token cannot be loaded."""


class AuthorizationError(RuntimeError):
    """Raised when exchanging an authorization code for a token fails."""


class GmailError(RuntimeError):
    """Raised when a Gmail API call fails.

    ``operation`` names the call (``list``, ``get``, ``send``, ``labels.list``,
    ``labels.create`` or ``modify``) and ``status`` carries the HTTP status when
    the API returned one.
    """

    def __init__(self, operation: str, message: str, status: int | None = None):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.message = message
        self.status = status

    @property
    def is_conflict(self) -> bool:
        return self.status == 409
