"""Core protocols and data types for CancelFlow.

This module defines the foundational types that all other components depend
on. It includes:
- Step enum naming every screen of the cancellation wizard
- Frozen answer records and the immutable WizardSession
- Wire payloads exchanged with the cancellation API
- Protocol definition for the API client used by the wizard
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Literal, Protocol

Variant = Literal["A", "B"]
VARIANTS: tuple[Variant, ...] = ("A", "B")


class Step(Enum):
    """Screens of the cancellation wizard.

    Steps are organized into logical groups:
    - Entry: LOADING, JOB_QUESTION
    - Job found: JOB_FOUND_STEP1, JOB_FOUND_STEP2, JOB_FOUND_STEP3,
      JOB_FOUND_STEP3_FEEDBACK
    - Still looking: DOWNSELL, DOWNSELL_SUCCESS, USAGE_SURVEY, REASON
    - Terminal: CANCELLATION_COMPLETE, JOB_FOUND_NO_LAWYER_COMPLETION,
      DOWNSELL_CANCELLATION_COMPLETE
    """

    LOADING = "loading"
    JOB_QUESTION = "job-question"
    JOB_FOUND_STEP1 = "job-found-step1"
    JOB_FOUND_STEP2 = "job-found-step2"
    JOB_FOUND_STEP3 = "job-found-step3"
    JOB_FOUND_STEP3_FEEDBACK = "job-found-step3-feedback"
    DOWNSELL = "downsell"
    DOWNSELL_SUCCESS = "downsell-success"
    USAGE_SURVEY = "usage-survey"
    REASON = "reason"
    CANCELLATION_COMPLETE = "cancellation-complete"
    JOB_FOUND_NO_LAWYER_COMPLETION = "job-found-no-lawyer-completion"
    DOWNSELL_CANCELLATION_COMPLETE = "downsell-cancellation-complete"


TERMINAL_STEPS = frozenset(
    {
        Step.CANCELLATION_COMPLETE,
        Step.JOB_FOUND_NO_LAWYER_COMPLETION,
        Step.DOWNSELL_CANCELLATION_COMPLETE,
    }
)


class SubscriptionStatus(Enum):
    """Lifecycle of a subscription as stored in the database."""

    ACTIVE = "active"
    PENDING_CANCELLATION = "pending_cancellation"
    CANCELLED = "cancelled"


class CancellationReason(Enum):
    """Reasons a user can pick on the reason step."""

    TOO_EXPENSIVE = "Too expensive"
    PLATFORM_NOT_HELPFUL = "Platform not helpful"
    NOT_ENOUGH_RELEVANT_JOBS = "Not enough relevant jobs"
    DECIDED_NOT_TO_MOVE = "Decided not to move"
    OTHER = "Other"


class FollowUp(Enum):
    """Kind of follow-up input revealed by a reason."""

    MAX_PRICE = "max_price"
    PLATFORM_FEEDBACK = "platform_feedback"
    OTHER_FEEDBACK = "other_feedback"


@dataclass(frozen=True)
class JobFoundAnswers:
    """Answers on the first job-found step.

    Attributes:
        found_with_platform: "Yes" or "No".
        roles_applied: One of ROLES_APPLIED_OPTIONS.
        companies_emailed: One of COMPANIES_EMAILED_OPTIONS.
        companies_interviewed: One of COMPANIES_INTERVIEWED_OPTIONS.
    """

    found_with_platform: str | None = None
    roles_applied: str | None = None
    companies_emailed: str | None = None
    companies_interviewed: str | None = None


@dataclass(frozen=True)
class VisaAnswers:
    """Answers on the visa question shared by both step-3 screens."""

    company_providing_lawyer: str | None = None
    visa_type: str = ""


@dataclass(frozen=True)
class UsageSurveyAnswers:
    """Answers on the usage survey shown to users still looking for a job."""

    roles_applied: str | None = None
    companies_emailed: str | None = None
    companies_interviewed: str | None = None


@dataclass(frozen=True)
class ReasonAnswers:
    """Selected reason and its follow-up input.

    Attributes:
        reason: The selected reason, if any.
        max_price: Follow-up for "Too expensive".
        feedback: Free-text follow-up for every other reason.
    """

    reason: CancellationReason | None = None
    max_price: str = ""
    feedback: str = ""


@dataclass(frozen=True)
class WizardSession:
    """Immutable snapshot of one wizard run.

    Every user action produces a new snapshot; previous snapshots are never
    modified, so navigating back re-enters a step with its answers intact.

    Attributes:
        step: The screen currently shown.
        variant: Assigned A/B bucket, None until loaded.
        csrf_token: Token issued by the API alongside the variant.
        found_job: Answer to the opening question.
        job_found: Answers on job-found step 1.
        job_feedback: Free text on job-found step 2.
        visa: Answers on the visa question.
        usage_survey: Answers on the usage survey.
        survey_completed: Set when the survey was submitted.
        reason: Selected reason and follow-up.
        accepted_downsell: Whether the offer was accepted in this run.
        processing: True while a submission is in flight.
        reason_error_until: Monotonic deadline of the reason reminder.
        error: Inline error for the current step, if any.
    """

    step: Step = Step.LOADING
    variant: Variant | None = None
    csrf_token: str = ""
    found_job: bool | None = None
    job_found: JobFoundAnswers = field(default_factory=JobFoundAnswers)
    job_feedback: str = ""
    visa: VisaAnswers = field(default_factory=VisaAnswers)
    usage_survey: UsageSurveyAnswers = field(default_factory=UsageSurveyAnswers)
    survey_completed: bool = False
    reason: ReasonAnswers = field(default_factory=ReasonAnswers)
    accepted_downsell: bool = False
    processing: bool = False
    reason_error_until: float | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        """Whether the session reached one of the completion screens."""
        return self.step in TERMINAL_STEPS


@dataclass
class CancellationData:
    """Submission payload for the cancellation API.

    Field types are not enforced here: payloads decoded from JSON are checked
    by ``validate_cancellation_data`` before use.
    """

    user_id: Any
    subscription_id: Any
    downsell_variant: Any
    accepted_downsell: Any
    reason: Any = None

    def to_payload(self) -> dict[str, Any]:
        """Convert to the camelCase JSON body used on the wire.

        Returns:
            Dictionary ready to be serialized as the POST body.
        """
        payload: dict[str, Any] = {
            "userId": self.user_id,
            "subscriptionId": self.subscription_id,
            "downsellVariant": self.downsell_variant,
            "acceptedDownsell": self.accepted_downsell,
        }
        if self.reason is not None:
            payload["reason"] = self.reason
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CancellationData":
        """Build from a decoded JSON body without coercing any field."""
        return cls(
            user_id=payload.get("userId"),
            subscription_id=payload.get("subscriptionId"),
            downsell_variant=payload.get("downsellVariant"),
            accepted_downsell=payload.get("acceptedDownsell"),
            reason=payload.get("reason"),
        )


@dataclass(frozen=True)
class CancellationRecord:
    """A persisted cancellation row."""

    id: str
    user_id: str
    subscription_id: str | None
    downsell_variant: Variant
    reason: str | None
    accepted_downsell: bool
    created_at: datetime


@dataclass(frozen=True)
class VariantAssignment:
    """Response of the variant endpoint."""

    variant: Variant
    csrf_token: str


@dataclass(frozen=True)
class SubmissionResult:
    """Response of the submission endpoint."""

    success: bool
    message: str


@dataclass
class WizardResult:
    """Outcome of a complete wizard run.

    Attributes:
        completed: Whether a completion screen was reached.
        step: The final step.
        message: Human-readable description of the result.
        accepted_downsell: Whether the offer was accepted.
        session_dir: Path to the session log directory.
    """

    completed: bool
    step: Step
    message: str
    accepted_downsell: bool = False
    session_dir: Path | None = None


class CancellationApiProtocol(Protocol):
    """Protocol for the HTTP client the wizard talks to."""

    async def fetch_variant(self, user_id: str) -> VariantAssignment:
        """Get or create the user's variant and a CSRF token."""
        ...

    async def submit(
        self, data: CancellationData, csrf_token: str
    ) -> SubmissionResult:
        """Submit a cancellation outcome."""
        ...
