"""Exception hierarchy for CancelFlow.

Errors that surface over HTTP carry ``status_code`` and ``error_code`` class
attributes so handlers and clients can map them uniformly.
"""


class CancelFlowError(Exception):
    """Base exception for all CancelFlow errors."""


class TransientError(CancelFlowError):
    """Errors that may succeed when the user retries the action."""


class PermanentError(CancelFlowError):
    """Errors that require configuration or code changes."""


class ConfigurationError(PermanentError):
    """Invalid or missing configuration."""


class PersistenceError(PermanentError):
    """A lookup, insert or update against the database failed."""

    status_code: int = 500
    error_code: str = "persistence_error"


class UserAborted(CancelFlowError):  # noqa: N818
    """User left the cancellation flow."""


class WizardValidationError(CancelFlowError):
    """Answers on the current step do not satisfy its rules.

    The message is meant to be shown inline next to the offending input.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize WizardValidationError.

        Args:
            message: Human-readable inline error.
            field: Optional name of the answer that failed validation.
        """
        self.field = field
        super().__init__(message)


class ApiRequestError(TransientError):
    """The cancellation API answered with a non-success status."""

    status_code: int = 500
    error_code: str = "request_failed"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize ApiRequestError.

        Args:
            message: Error message returned by the server, if any.
            status_code: HTTP status code of the response.
        """
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class RateLimitExceeded(ApiRequestError):  # noqa: N818
    """Too many requests for this session within the window."""

    status_code: int = 429
    error_code: str = "rate_limited"


class CsrfRejected(ApiRequestError):  # noqa: N818
    """The CSRF token was missing, unknown or expired."""

    status_code: int = 403
    error_code: str = "invalid_csrf_token"
