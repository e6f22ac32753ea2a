"""Pure step transitions for the cancellation wizard.

Every function here takes a WizardSession and returns a new one; nothing is
mutated and nothing talks to the network. Two kinds of operations exist:

- Answer edits (``answer_job_found``, ``select_reason`` ...) change the
  answers of the current step and never change the step.
- ``advance`` applies a navigation event. It checks the step's guard first,
  raising WizardValidationError with an inline message when the answers are
  not acceptable, then asks WizardStateMachine for the next step.
"""

from __future__ import annotations

import time
from dataclasses import replace

from cancelflow.core.protocols import (
    CancellationData,
    CancellationReason,
    FollowUp,
    JobFoundAnswers,
    ReasonAnswers,
    Step,
    UsageSurveyAnswers,
    VariantAssignment,
    VisaAnswers,
    WizardSession,
)
from cancelflow.core.states import WizardStateMachine
from cancelflow.security.sanitize import validate_price
from cancelflow.utils.exceptions import WizardValidationError

MIN_FEEDBACK_LENGTH = 25
REASON_REMINDER_SECONDS = 3.0
DISCOUNT_PERCENT = 50

YES_NO = ("Yes", "No")
ROLES_APPLIED_OPTIONS = ("0", "1-5", "6-20", "20+")
COMPANIES_EMAILED_OPTIONS = ("0", "1-5", "6-20", "20+")
COMPANIES_INTERVIEWED_OPTIONS = ("0", "1-2", "3-5", "5+")

PLATFORM_CONTRADICTION = (
    "If you found your job with CancelFlow, you must have applied for at "
    "least 1 role through our platform."
)

EVENTS = (
    "variant_loaded",
    "found_job",
    "still_looking",
    "accept_offer",
    "decline_offer",
    "proceed",
    "finish",
    "back",
)

_JOB_FOUND_OPTIONS: dict[str, tuple[str, ...]] = {
    "found_with_platform": YES_NO,
    "roles_applied": ROLES_APPLIED_OPTIONS,
    "companies_emailed": COMPANIES_EMAILED_OPTIONS,
    "companies_interviewed": COMPANIES_INTERVIEWED_OPTIONS,
}

_SURVEY_OPTIONS: dict[str, tuple[str, ...]] = {
    "roles_applied": ROLES_APPLIED_OPTIONS,
    "companies_emailed": COMPANIES_EMAILED_OPTIONS,
    "companies_interviewed": COMPANIES_INTERVIEWED_OPTIONS,
}


# ---------------------------------------------------------------------------
# Step rules
# ---------------------------------------------------------------------------


def follow_up_for(reason: CancellationReason) -> FollowUp:
    """Return the follow-up input revealed by a reason."""
    if reason is CancellationReason.TOO_EXPENSIVE:
        return FollowUp.MAX_PRICE
    if reason is CancellationReason.PLATFORM_NOT_HELPFUL:
        return FollowUp.PLATFORM_FEEDBACK
    return FollowUp.OTHER_FEEDBACK


def job_found_error(answers: JobFoundAnswers) -> str | None:
    """Return the inline error for contradictory step-1 answers, if any."""
    if answers.found_with_platform == "Yes" and answers.roles_applied == "0":
        return PLATFORM_CONTRADICTION
    return None


def is_job_found_complete(answers: JobFoundAnswers) -> bool:
    """All four step-1 questions answered and not contradictory."""
    answered = all(getattr(answers, name) is not None for name in _JOB_FOUND_OPTIONS)
    return answered and job_found_error(answers) is None


def is_feedback_complete(text: str) -> bool:
    """Free text meets the minimum length."""
    return len(text) >= MIN_FEEDBACK_LENGTH


def is_visa_complete(visa: VisaAnswers) -> bool:
    """A lawyer choice was made and the visa type is filled in."""
    return visa.company_providing_lawyer in YES_NO and visa.visa_type.strip() != ""


def is_survey_complete(survey: UsageSurveyAnswers) -> bool:
    """All three usage questions answered."""
    return all(getattr(survey, name) is not None for name in _SURVEY_OPTIONS)


def is_reason_complete(answers: ReasonAnswers) -> bool:
    """A reason is selected and its follow-up satisfies its rule."""
    if answers.reason is None:
        return False
    if follow_up_for(answers.reason) is FollowUp.MAX_PRICE:
        return validate_price(answers.max_price)
    return is_feedback_complete(answers.feedback)


def reason_reminder_visible(session: WizardSession, now: float | None = None) -> bool:
    """Whether the "reason required" reminder is still showing.

    The reminder appears when the survey is submitted and dismisses itself
    after REASON_REMINDER_SECONDS.
    """
    if session.reason_error_until is None:
        return False
    current = time.monotonic() if now is None else now
    return current < session.reason_error_until


def discounted_price(monthly_price: int) -> int:
    """Offer price in cents."""
    return monthly_price * (100 - DISCOUNT_PERCENT) // 100


def _feedback_message(text: str) -> str:
    return (
        f"Please enter at least {MIN_FEEDBACK_LENGTH} characters "
        f"({len(text)}/{MIN_FEEDBACK_LENGTH})."
    )


def _check_guard(session: WizardSession, event: str) -> None:
    """Raise WizardValidationError if the current answers block ``event``."""
    if session.processing:
        raise WizardValidationError("A request is already in progress.")

    step = session.step
    if event == "proceed":
        if step is Step.JOB_FOUND_STEP1:
            error = job_found_error(session.job_found)
            if error:
                raise WizardValidationError(error, field="roles_applied")
            if not is_job_found_complete(session.job_found):
                raise WizardValidationError("Please answer all questions to continue.")
        elif step is Step.JOB_FOUND_STEP2:
            if not is_feedback_complete(session.job_feedback):
                raise WizardValidationError(
                    _feedback_message(session.job_feedback), field="job_feedback"
                )
        elif step is Step.USAGE_SURVEY:
            if not is_survey_complete(session.usage_survey):
                raise WizardValidationError("Please answer all questions to continue.")
    elif event == "finish":
        if step is Step.REASON:
            _check_reason(session.reason)
        elif step in (Step.JOB_FOUND_STEP3, Step.JOB_FOUND_STEP3_FEEDBACK):
            if session.visa.company_providing_lawyer not in YES_NO:
                raise WizardValidationError(
                    "Please tell us whether your company is providing a lawyer.",
                    field="company_providing_lawyer",
                )
            if not is_visa_complete(session.visa):
                raise WizardValidationError(
                    "Please tell us which visa you will be applying for.",
                    field="visa_type",
                )


def _check_reason(answers: ReasonAnswers) -> None:
    if answers.reason is None:
        raise WizardValidationError(
            "To help us understand your experience, please select a reason for "
            "cancelling.",
            field="reason",
        )
    if follow_up_for(answers.reason) is FollowUp.MAX_PRICE:
        if not answers.max_price.strip():
            raise WizardValidationError(
                "Please tell us the maximum you would be willing to pay.",
                field="max_price",
            )
        if not validate_price(answers.max_price):
            raise WizardValidationError(
                "Please enter a valid amount, e.g. 12.50.", field="max_price"
            )
    elif not is_feedback_complete(answers.feedback):
        raise WizardValidationError(_feedback_message(answers.feedback), field="feedback")


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


def advance(
    session: WizardSession, event: str, now: float | None = None
) -> WizardSession:
    """Apply a navigation event and return the resulting session.

    Args:
        session: Current snapshot.
        event: One of EVENTS.
        now: Monotonic clock reading, used for the reason reminder deadline.

    Returns:
        A new snapshot positioned at the next step.

    Raises:
        WizardValidationError: If the current answers block the event.
        TransitionNotAllowed: If the event is not valid on the current step.
    """
    _check_guard(session, event)

    machine = WizardStateMachine(session)
    machine.send(event)
    updated = replace(session, step=machine.current_step, error=None)

    if event == "found_job":
        # Re-entering the job-found branch starts it fresh
        updated = replace(
            updated,
            found_job=True,
            job_found=JobFoundAnswers(),
            job_feedback="",
            visa=VisaAnswers(),
        )
    elif event == "still_looking":
        updated = replace(updated, found_job=False)
    elif event == "accept_offer":
        updated = replace(updated, accepted_downsell=True)
    elif event == "proceed" and session.step is Step.USAGE_SURVEY:
        current = time.monotonic() if now is None else now
        updated = replace(
            updated,
            survey_completed=True,
            reason_error_until=current + REASON_REMINDER_SECONDS,
        )
    elif event == "back" and session.step is Step.REASON:
        updated = replace(
            updated,
            survey_completed=False,
            reason=ReasonAnswers(),
            reason_error_until=None,
        )
    return updated


def load_variant(
    session: WizardSession, assignment: VariantAssignment | None
) -> WizardSession:
    """Store the assigned variant and leave the loading screen.

    A failed variant fetch still opens the wizard; without a variant the
    offer is never shown and the CSRF token stays empty.
    """
    if assignment is not None:
        session = replace(
            session, variant=assignment.variant, csrf_token=assignment.csrf_token
        )
    return advance(session, "variant_loaded")


# ---------------------------------------------------------------------------
# Answer edits
# ---------------------------------------------------------------------------


def _check_option(name: str, value: str, options: tuple[str, ...]) -> None:
    if value not in options:
        raise WizardValidationError(
            f"'{value}' is not a valid answer; choose one of {', '.join(options)}.",
            field=name,
        )


def answer_job_found(session: WizardSession, **answers: str) -> WizardSession:
    """Record step-1 answers; a contradiction is surfaced immediately."""
    for name, value in answers.items():
        if name not in _JOB_FOUND_OPTIONS:
            raise WizardValidationError(f"Unknown question '{name}'.", field=name)
        _check_option(name, value, _JOB_FOUND_OPTIONS[name])
    job_found = replace(session.job_found, **answers)
    return replace(session, job_found=job_found, error=job_found_error(job_found))


def set_job_feedback(session: WizardSession, text: str) -> WizardSession:
    """Record the free-text answer of job-found step 2."""
    return replace(session, job_feedback=text, error=None)


def answer_visa(
    session: WizardSession,
    company_providing_lawyer: str | None = None,
    visa_type: str | None = None,
) -> WizardSession:
    """Record the lawyer choice and/or the visa type."""
    visa = session.visa
    if company_providing_lawyer is not None:
        _check_option("company_providing_lawyer", company_providing_lawyer, YES_NO)
        visa = replace(visa, company_providing_lawyer=company_providing_lawyer)
    if visa_type is not None:
        visa = replace(visa, visa_type=visa_type)
    return replace(session, visa=visa, error=None)


def answer_usage_survey(session: WizardSession, **answers: str) -> WizardSession:
    """Record usage-survey answers."""
    for name, value in answers.items():
        if name not in _SURVEY_OPTIONS:
            raise WizardValidationError(f"Unknown question '{name}'.", field=name)
        _check_option(name, value, _SURVEY_OPTIONS[name])
    survey = replace(session.usage_survey, **answers)
    return replace(session, usage_survey=survey, error=None)


def select_reason(
    session: WizardSession, reason: CancellationReason | str
) -> WizardSession:
    """Select a reason; switching to a different reason clears the follow-up."""
    try:
        selected = CancellationReason(reason)
    except ValueError:
        raise WizardValidationError(
            f"'{reason}' is not a valid reason.", field="reason"
        ) from None
    if session.reason.reason is selected:
        return replace(session, error=None)
    return replace(session, reason=ReasonAnswers(reason=selected), error=None)


def set_follow_up(session: WizardSession, text: str) -> WizardSession:
    """Record the follow-up input of the selected reason."""
    if session.reason.reason is None:
        raise WizardValidationError("Select a reason first.", field="reason")
    if follow_up_for(session.reason.reason) is FollowUp.MAX_PRICE:
        answers = replace(session.reason, max_price=text)
    else:
        answers = replace(session.reason, feedback=text)
    return replace(session, reason=answers, error=None)


def set_processing(session: WizardSession, processing: bool) -> WizardSession:
    """Toggle the in-flight flag that disables submitting controls."""
    return replace(session, processing=processing)


def with_error(session: WizardSession, message: str | None) -> WizardSession:
    """Attach an inline error to the current step without moving."""
    return replace(session, error=message)


def build_cancellation_data(
    session: WizardSession,
    user_id: str,
    subscription_id: str,
    accepted_downsell: bool,
) -> CancellationData:
    """Build the submission payload for the current session.

    Accepting the offer sends no reason; completing the cancellation sends
    the selected reason label.
    """
    reason = None
    if not accepted_downsell and session.reason.reason is not None:
        reason = session.reason.reason.value
    return CancellationData(
        user_id=user_id,
        subscription_id=subscription_id,
        downsell_variant=session.variant,
        accepted_downsell=accepted_downsell,
        reason=reason,
    )
