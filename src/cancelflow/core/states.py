"""State machine for the cancellation wizard.

This module defines the WizardStateMachine, the explicit transition table of
the wizard. It uses python-statemachine to enforce which step may follow
which.

States are organized into logical groups:
- Entry: loading (initial), job_question
- Job found: job_found_step1, job_found_step2, job_found_step3,
  job_found_step3_feedback
- Still looking: downsell, downsell_success, usage_survey, reason
- Terminal: cancellation_complete, job_found_no_lawyer_completion,
  downsell_cancellation_complete (final states)

Branching transitions read the WizardSession the machine was built from, so a
machine instance answers one question: given this snapshot and this event,
which step comes next.
"""

from statemachine import State as SMState
from statemachine import StateMachine

from cancelflow.core.protocols import Step, WizardSession


class WizardStateMachine(StateMachine):
    """Transition table of the cancellation wizard.

    Attributes:
        session: Snapshot the branch conditions are evaluated against.

    States:
        loading: Waiting for the variant assignment.
        job_question: "Have you found a job yet?"
        job_found_step1: Platform usage questions for users who found a job.
        job_found_step2: Free-text feedback.
        job_found_step3: Visa question for users who found the job with us.
        job_found_step3_feedback: Visa question for everyone else.
        downsell: 50% off offer (variant B only).
        downsell_success: Offer accepted.
        usage_survey: Three usage questions.
        reason: Reason selection and follow-up.
        cancellation_complete: Done, lawyer provided (final).
        job_found_no_lawyer_completion: Done, no lawyer (final).
        downsell_cancellation_complete: Done, still looking (final).
    """

    # Entry states
    loading = SMState(value=Step.LOADING, initial=True)
    job_question = SMState(value=Step.JOB_QUESTION)

    # Job found branch
    job_found_step1 = SMState(value=Step.JOB_FOUND_STEP1)
    job_found_step2 = SMState(value=Step.JOB_FOUND_STEP2)
    job_found_step3 = SMState(value=Step.JOB_FOUND_STEP3)
    job_found_step3_feedback = SMState(value=Step.JOB_FOUND_STEP3_FEEDBACK)

    # Still looking branch
    downsell = SMState(value=Step.DOWNSELL)
    downsell_success = SMState(value=Step.DOWNSELL_SUCCESS)
    usage_survey = SMState(value=Step.USAGE_SURVEY)
    reason = SMState(value=Step.REASON)

    # Terminal states
    cancellation_complete = SMState(value=Step.CANCELLATION_COMPLETE, final=True)
    job_found_no_lawyer_completion = SMState(
        value=Step.JOB_FOUND_NO_LAWYER_COMPLETION, final=True
    )
    downsell_cancellation_complete = SMState(
        value=Step.DOWNSELL_CANCELLATION_COMPLETE, final=True
    )

    # Transitions

    variant_loaded = loading.to(job_question)

    found_job = job_question.to(job_found_step1)

    # Variant B sees the offer first, variant A goes straight to the survey
    still_looking = job_question.to(downsell, cond="shows_offer") | job_question.to(
        usage_survey, unless="shows_offer"
    )

    accept_offer = (
        downsell.to(downsell_success)
        | usage_survey.to(downsell_success)
        | reason.to(downsell_success)
    )

    decline_offer = downsell.to(usage_survey)

    proceed = (
        downsell_success.to(usage_survey)
        | usage_survey.to(reason)
        | job_found_step1.to(job_found_step2)
        | job_found_step2.to(job_found_step3, cond="found_with_platform")
        | job_found_step2.to(job_found_step3_feedback, unless="found_with_platform")
    )

    # Both visa screens share one branch rule
    finish = (
        reason.to(downsell_cancellation_complete)
        | job_found_step3.to(cancellation_complete, cond="has_lawyer")
        | job_found_step3.to(job_found_no_lawyer_completion, unless="has_lawyer")
        | job_found_step3_feedback.to(cancellation_complete, cond="has_lawyer")
        | job_found_step3_feedback.to(
            job_found_no_lawyer_completion, unless="has_lawyer"
        )
    )

    back = (
        downsell.to(job_question)
        | downsell_success.to(downsell, cond="shows_offer")
        | downsell_success.to(usage_survey, unless="shows_offer")
        | usage_survey.to(downsell, cond="shows_offer")
        | usage_survey.to(job_question, unless="shows_offer")
        | reason.to(usage_survey)
        | job_found_step1.to(job_question)
        | job_found_step2.to(job_found_step1)
        | job_found_step3.to(job_found_step2)
        | job_found_step3_feedback.to(job_found_step2)
    )

    def __init__(self, session: WizardSession | None = None) -> None:
        """Initialize the state machine positioned at the session's step.

        Args:
            session: Snapshot to start from. Defaults to a fresh session.
        """
        self.session = session or WizardSession()
        super().__init__(start_value=self.session.step)

    # Condition methods for branching transitions

    def shows_offer(self) -> bool:
        """Check if the session is in the variant that sees the offer."""
        return self.session.variant == "B"

    def found_with_platform(self) -> bool:
        """Check if the user found their job through the platform."""
        return self.session.job_found.found_with_platform == "Yes"

    def has_lawyer(self) -> bool:
        """Check if the new employer provides an immigration lawyer."""
        return self.session.visa.company_providing_lawyer == "Yes"

    @property
    def current_step(self) -> Step:
        """The wizard step of the current state."""
        return self.current_state.value
