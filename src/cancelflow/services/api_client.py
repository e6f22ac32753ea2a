"""HTTP client for the cancellation API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from cancelflow.core.protocols import (
    VARIANTS,
    CancellationData,
    SubmissionResult,
    VariantAssignment,
)
from cancelflow.utils.exceptions import (
    ApiRequestError,
    CsrfRejected,
    RateLimitExceeded,
)

logger = logging.getLogger(__name__)

CANCELLATION_PATH = "/api/cancellation"
CSRF_HEADER = "x-csrf-token"

_ERRORS_BY_STATUS: dict[int, type[ApiRequestError]] = {
    403: CsrfRejected,
    429: RateLimitExceeded,
}


class CancellationApiClient:
    """Talks to ``/api/cancellation`` on behalf of the wizard.

    Attributes:
        base_url: Root URL of the API, e.g. "http://localhost:8000".
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL of the API.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport, used to run against an
                in-process app.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    async def fetch_variant(self, user_id: str) -> VariantAssignment:
        """Get or create the user's A/B variant.

        Args:
            user_id: The user going through the flow.

        Returns:
            The assigned variant and the CSRF token for later submissions.

        Raises:
            ApiRequestError: If the server rejects the request.
        """
        async with self._client() as client:
            response = await client.get(CANCELLATION_PATH, params={"userId": user_id})
        body = self._parse(response)
        variant = body.get("variant")
        if variant not in VARIANTS:
            raise ApiRequestError(f"Unexpected variant in response: {variant!r}")
        csrf_token = body.get("csrfToken") or response.headers.get(CSRF_HEADER, "")
        return VariantAssignment(variant=variant, csrf_token=csrf_token)

    async def submit(
        self, data: CancellationData, csrf_token: str
    ) -> SubmissionResult:
        """Submit the outcome of the flow.

        Args:
            data: Payload to submit.
            csrf_token: Token issued with the variant.

        Returns:
            The server's confirmation.

        Raises:
            ApiRequestError: If the server rejects the submission.
        """
        async with self._client() as client:
            response = await client.post(
                CANCELLATION_PATH,
                json=data.to_payload(),
                headers={CSRF_HEADER: csrf_token},
            )
        body = self._parse(response)
        if not body.get("success"):
            raise ApiRequestError(body.get("error") or "Cancellation failed")
        return SubmissionResult(success=True, message=body.get("message", ""))

    @staticmethod
    def _parse(response: httpx.Response) -> dict[str, Any]:
        """Decode a JSON response, raising the matching error on failure."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if response.is_success:
            return body
        message = body.get("error") or f"HTTP error! status: {response.status_code}"
        logger.warning(
            "Cancellation API %s %s failed with %d: %s",
            response.request.method,
            response.request.url.path,
            response.status_code,
            message,
        )
        error_class = _ERRORS_BY_STATUS.get(response.status_code, ApiRequestError)
        raise error_class(message, status_code=response.status_code)
