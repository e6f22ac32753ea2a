"""Utilities module for CancelFlow."""

from .config import AppConfig, ConfigLoader
from .exceptions import (
    ApiRequestError,
    CancelFlowError,
    ConfigurationError,
    CsrfRejected,
    PermanentError,
    PersistenceError,
    RateLimitExceeded,
    TransientError,
    UserAborted,
    WizardValidationError,
)
from .session import SessionLogger, StepTransition, Submission

__all__ = [
    "ApiRequestError",
    "AppConfig",
    "CancelFlowError",
    "ConfigLoader",
    "ConfigurationError",
    "CsrfRejected",
    "PermanentError",
    "PersistenceError",
    "RateLimitExceeded",
    "SessionLogger",
    "StepTransition",
    "Submission",
    "TransientError",
    "UserAborted",
    "WizardValidationError",
]
