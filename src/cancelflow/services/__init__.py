"""Services behind the wizard and the API."""

from cancelflow.services.api_client import CancellationApiClient
from cancelflow.services.cancellation import (
    CancellationService,
    random_variant,
    validate_cancellation_data,
)

__all__ = [
    "CancellationApiClient",
    "CancellationService",
    "random_variant",
    "validate_cancellation_data",
]
