"""Wizard engine for CancelFlow.

This module couples the pure wizard transitions to the cancellation API: it
fetches the variant on load, submits the outcome when the user accepts the
offer or completes the cancellation, and keeps the session log current.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx

from cancelflow.core import wizard
from cancelflow.core.protocols import (
    CancellationApiProtocol,
    Step,
    WizardResult,
    WizardSession,
)
from cancelflow.utils.exceptions import (
    ApiRequestError,
    UserAborted,
    WizardValidationError,
)
from cancelflow.utils.session import SessionLogger

logger = logging.getLogger(__name__)

_COMPLETION_MESSAGES = {
    Step.CANCELLATION_COMPLETE: "Subscription cancelled. Good luck with the new role!",
    Step.JOB_FOUND_NO_LAWYER_COMPLETION: (
        "Subscription cancelled. Our team will reach out about visa support."
    ),
    Step.DOWNSELL_CANCELLATION_COMPLETE: (
        "Subscription set to cancel at the end of the billing period."
    ),
    Step.DOWNSELL_SUCCESS: "Discount applied. You are still subscribed.",
}


class WizardEngine:
    """Drives one run of the cancellation wizard.

    The engine owns the current WizardSession. Answer edits go through
    ``update``; navigation goes through ``dispatch``. Both replace the session
    with a new snapshot and never mutate the old one.

    Attributes:
        api: Client for the cancellation API.
        session_log: Session logger recording transitions and submissions.
        user_id: The user going through the flow.
        subscription_id: The subscription being cancelled.
        monthly_price: Current monthly price in cents.
        output_callback: Callback for status messages.

    Example:
        >>> engine = WizardEngine(
        ...     api=CancellationApiClient("http://localhost:8000"),
        ...     session_log=session_log,
        ...     user_id=user_id,
        ...     subscription_id=subscription_id,
        ...     monthly_price=2500,
        ... )
        >>> await engine.load()
        >>> await engine.dispatch("still_looking")
    """

    def __init__(
        self,
        api: CancellationApiProtocol,
        session_log: SessionLogger,
        user_id: str,
        subscription_id: str,
        monthly_price: int,
        output_callback: Callable[[str, str], None] | None = None,
    ):
        """Initialize the WizardEngine.

        Args:
            api: Client for the cancellation API.
            session_log: Session logger for tracking progress.
            user_id: The user going through the flow.
            subscription_id: The subscription being cancelled.
            monthly_price: Current monthly price in cents.
            output_callback: Optional callback for status messages.
                Signature: (step_name: str, message: str) -> None
        """
        self.api = api
        self.session_log = session_log
        self.user_id = user_id
        self.subscription_id = subscription_id
        self.monthly_price = monthly_price
        self.output_callback = output_callback or (lambda step, msg: None)
        self._session = WizardSession()

    @property
    def session(self) -> WizardSession:
        """The current snapshot."""
        return self._session

    @property
    def offer_price(self) -> int:
        """Discounted monthly price in cents."""
        return wizard.discounted_price(self.monthly_price)

    async def load(self) -> WizardSession:
        """Fetch the variant and leave the loading screen.

        A failed fetch is logged and the wizard opens without a variant.
        """
        assignment = None
        try:
            assignment = await self.api.fetch_variant(self.user_id)
        except (ApiRequestError, httpx.HTTPError) as e:
            logger.error("Error initializing variant: %s", e)
            self.output_callback(Step.LOADING.name, f"Could not load variant: {e}")
        else:
            self.session_log.log_variant(assignment.variant)
        self._commit(wizard.load_variant(self._session, assignment), "variant_loaded")
        return self._session

    def update(self, edit: Callable[..., WizardSession], *args: Any, **kwargs: Any) -> WizardSession:
        """Apply an answer edit from ``cancelflow.core.wizard``.

        Invalid answers leave the answers unchanged and attach the inline
        error to the session.
        """
        try:
            self._session = edit(self._session, *args, **kwargs)
        except WizardValidationError as e:
            self._session = wizard.with_error(self._session, str(e))
        return self._session

    async def dispatch(self, event: str) -> WizardSession:
        """Apply a navigation event, submitting to the API where required.

        Accepting the offer and completing the reason step submit the outcome
        before the step changes. A blocked guard or a failed submission keeps
        the current step and attaches the error to the session.

        Args:
            event: One of ``cancelflow.core.wizard.EVENTS``.

        Returns:
            The new current snapshot.
        """
        current = self._session
        try:
            next_session = wizard.advance(current, event)
        except WizardValidationError as e:
            logger.info("Step %s blocked: %s", current.step.value, e)
            self._session = wizard.with_error(current, str(e))
            return self._session

        if self._submits(current, event):
            accepted = event == "accept_offer"
            try:
                await self._submit(accepted)
            except (ApiRequestError, httpx.HTTPError) as e:
                self._session = wizard.with_error(
                    wizard.set_processing(current, False), str(e)
                )
                return self._session

        self._commit(next_session, event)
        return self._session

    def abort(self) -> None:
        """Leave the flow from a non-terminal step.

        Raises:
            UserAborted: Always; the session log is closed first.
        """
        self.session_log.complete(self._session.step.value, error="User left the flow")
        raise UserAborted(f"User left the flow at {self._session.step.value}")

    def result(self) -> WizardResult:
        """Close the session log and summarize the run."""
        step = self._session.step
        completed = self._session.is_terminal
        self.session_log.complete(step.value)
        return WizardResult(
            completed=completed,
            step=step,
            message=_COMPLETION_MESSAGES.get(step, f"Stopped at {step.value}"),
            accepted_downsell=self._session.accepted_downsell,
            session_dir=self.session_log.session_dir,
        )

    @staticmethod
    def _submits(session: WizardSession, event: str) -> bool:
        return event == "accept_offer" or (
            event == "finish" and session.step is Step.REASON
        )

    async def _submit(self, accepted_downsell: bool) -> None:
        data = wizard.build_cancellation_data(
            self._session, self.user_id, self.subscription_id, accepted_downsell
        )
        self._session = wizard.set_processing(self._session, True)
        try:
            result = await self.api.submit(data, self._session.csrf_token)
        except (ApiRequestError, httpx.HTTPError) as e:
            logger.error("Error submitting cancellation: %s", e)
            self.session_log.log_submission(
                accepted_downsell, data.reason, success=False, error=str(e)
            )
            raise
        self.session_log.log_submission(accepted_downsell, data.reason, success=True)
        self.output_callback(self._session.step.name, result.message)

    def _commit(self, next_session: WizardSession, event: str) -> None:
        previous = self._session.step
        self._session = next_session
        self.session_log.log_transition(previous.value, next_session.step.value, event)
        self.output_callback(
            next_session.step.name, f"{previous.value} -> {next_session.step.value}"
        )
