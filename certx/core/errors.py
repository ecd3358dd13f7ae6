"""
Error taxonomy.

  ValidationError        -> caught locally, the request is never sent
  AuthorizationError     -> role insufficient (local table or server 401/403)
  NotFoundError          -> resource gone; callers refetch
  ConflictError          -> another actor changed it first; callers refetch
  TransientNetworkError  -> no usable answer from the server; user may retry
  ApiError               -> any other server refusal, message kept verbatim

None of these are retried automatically.
"""


class CertxError(Exception):
    """Base class for every error raised by the client core."""

    #: True when a fresh list must be fetched before the user acts again
    requires_refresh = False

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(CertxError):
    """Missing or malformed input, detected before any network call."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ExpirationUnresolvedError(ValidationError):
    """A non-permanent credential has no usable expiration date."""

    def __init__(self, message: str = "Choose a validity period or enter an expiration date"):
        super().__init__(message, field="expirationDate")


class AuthorizationError(CertxError):
    """The caller's role may not perform this operation."""


class IllegalTransitionError(CertxError):
    """The certificate is not in a state that allows this transition."""


class NotFoundError(CertxError):
    requires_refresh = True


class ConflictError(CertxError):
    requires_refresh = True


class TransientNetworkError(CertxError):
    """Timeout, refused connection, gateway failure."""

    DEFAULT_MESSAGE = "Cannot reach the server. Check your network connection and try again."

    def __init__(self, message: str = DEFAULT_MESSAGE, status_code: int | None = None):
        super().__init__(message, status_code)


class ApiError(CertxError):
    """Server-side refusal not covered by a more specific class."""
