"""Interactive prompts for the cancellation wizard.

Each wizard step is one screen of questionary prompts. A screen records the
answers through the engine and returns the navigation event the user chose,
or None when the user pressed Ctrl+C.
"""

import os
import sys
from collections.abc import Sequence

import questionary

from cancelflow.cli.output import wants_plain_output
from cancelflow.core import wizard
from cancelflow.core.engine import WizardEngine
from cancelflow.core.protocols import CancellationReason, FollowUp, Step


def is_interactive(no_input_flag: bool = False) -> bool:
    """Determine if the terminal is interactive.

    Args:
        no_input_flag: If True, forces non-interactive mode (highest precedence).

    Returns:
        True if the terminal is interactive and prompts should be shown,
        False otherwise.
    """
    if no_input_flag:
        return False

    if "CANCELFLOW_NO_PROMPTS" in os.environ:
        return False

    if "CI" in os.environ:
        return False

    return sys.stdin.isatty() and sys.stdout.isatty()


def format_price(cents: int) -> str:
    """Render cents as dollars, e.g. 1250 -> "$12.50"."""
    return f"${cents // 100}.{cents % 100:02d}"


BACK = ("Back", "back")
# Leaves the wizard without dispatching an event
EXIT = "exit"

PROMPT_STYLE = questionary.Style(
    [
        ("question", "fg:magenta bold"),
        ("answer", "fg:magenta"),
        ("pointer", "fg:green bold"),
        ("highlighted", "fg:green"),
    ]
)


class WizardPrompter:
    """Asks the questions of each wizard step.

    Attributes:
        style: questionary style, None for plain output.
    """

    def __init__(self, plain: bool = False) -> None:
        self.style = None if wants_plain_output(plain) else PROMPT_STYLE

    async def ask(self, engine: WizardEngine) -> str | None:
        """Show the screen for the engine's current step.

        Returns:
            The event to dispatch, or None if the user cancelled.
        """
        handlers = {
            Step.JOB_QUESTION: self._job_question,
            Step.JOB_FOUND_STEP1: self._job_found_step1,
            Step.JOB_FOUND_STEP2: self._job_found_step2,
            Step.JOB_FOUND_STEP3: self._visa,
            Step.JOB_FOUND_STEP3_FEEDBACK: self._visa,
            Step.DOWNSELL: self._downsell,
            Step.DOWNSELL_SUCCESS: self._downsell_success,
            Step.USAGE_SURVEY: self._usage_survey,
            Step.REASON: self._reason,
        }
        handler = handlers.get(engine.session.step)
        if handler is None:
            return None
        return await handler(engine)

    async def _select(
        self,
        message: str,
        choices: Sequence[tuple[str, str]],
        default: str | None = None,
    ) -> str | None:
        options = [questionary.Choice(title=title, value=value) for title, value in choices]
        selected = default if default in {value for _, value in choices} else None
        return await questionary.select(
            message, choices=options, default=selected, style=self.style
        ).ask_async()

    async def _text(self, message: str, default: str = "") -> str | None:
        return await questionary.text(
            message, default=default, style=self.style
        ).ask_async()

    async def _options(
        self, message: str, options: tuple[str, ...], default: str | None
    ) -> str | None:
        return await self._select(message, [(o, o) for o in options], default)

    def _offer_choice(self, engine: WizardEngine) -> tuple[str, str]:
        return (
            f"Get 50% off | {format_price(engine.offer_price)}/month "
            f"(was {format_price(engine.monthly_price)})",
            "accept_offer",
        )

    async def _job_question(self, engine: WizardEngine) -> str | None:
        return await self._select(
            "Have you found a job yet?",
            [
                ("Yes, I've found a job", "found_job"),
                ("Not yet - I'm still looking", "still_looking"),
            ],
        )

    async def _job_found_step1(self, engine: WizardEngine) -> str | None:
        current = engine.session.job_found
        questions = [
            ("found_with_platform", "Did you find this job with CancelFlow?", wizard.YES_NO),
            (
                "roles_applied",
                "How many roles did you apply for through CancelFlow?",
                wizard.ROLES_APPLIED_OPTIONS,
            ),
            (
                "companies_emailed",
                "How many companies did you email directly?",
                wizard.COMPANIES_EMAILED_OPTIONS,
            ),
            (
                "companies_interviewed",
                "How many different companies did you interview with?",
                wizard.COMPANIES_INTERVIEWED_OPTIONS,
            ),
        ]
        for name, message, options in questions:
            answer = await self._options(message, options, getattr(current, name))
            if answer is None:
                return None
            engine.update(wizard.answer_job_found, **{name: answer})
        return await self._select("", [("Continue", "proceed"), BACK])

    async def _job_found_step2(self, engine: WizardEngine) -> str | None:
        feedback = await self._text(
            "What's one thing we could have done to help you find a job sooner? "
            f"(min {wizard.MIN_FEEDBACK_LENGTH} characters)",
            default=engine.session.job_feedback,
        )
        if feedback is None:
            return None
        engine.update(wizard.set_job_feedback, feedback)
        return await self._select("", [("Continue", "proceed"), BACK])

    async def _visa(self, engine: WizardEngine) -> str | None:
        session = engine.session
        if session.step is Step.JOB_FOUND_STEP3:
            message = (
                "We helped you land the job, now let's help you secure your visa. "
                "Is your company providing an immigration lawyer?"
            )
        else:
            message = "Is your company providing an immigration lawyer to help with your visa?"
        lawyer = await self._options(
            message, wizard.YES_NO, session.visa.company_providing_lawyer
        )
        if lawyer is None:
            return None
        visa_question = (
            "What visa will you be applying for?"
            if lawyer == "Yes"
            else "We can connect you with one of our trusted partners. "
            "Which visa would you like to apply for?"
        )
        visa_type = await self._text(visa_question, default=session.visa.visa_type)
        if visa_type is None:
            return None
        engine.update(
            wizard.answer_visa, company_providing_lawyer=lawyer, visa_type=visa_type
        )
        return await self._select("", [("Complete cancellation", "finish"), BACK])

    async def _downsell(self, engine: WizardEngine) -> str | None:
        return await self._select(
            "We built this to help you land the job. Here's 50% off until you find one.",
            [self._offer_choice(engine), ("No thanks", "decline_offer"), BACK],
        )

    async def _downsell_success(self, engine: WizardEngine) -> str | None:
        return await self._select(
            "Great choice! Your discount is active.",
            [("Return to my account", EXIT), ("Continue", "proceed"), BACK],
        )

    async def _usage_survey(self, engine: WizardEngine) -> str | None:
        current = engine.session.usage_survey
        questions = [
            (
                "roles_applied",
                "How many roles did you apply for through CancelFlow?",
                wizard.ROLES_APPLIED_OPTIONS,
            ),
            (
                "companies_emailed",
                "How many companies did you email directly?",
                wizard.COMPANIES_EMAILED_OPTIONS,
            ),
            (
                "companies_interviewed",
                "How many different companies did you interview with?",
                wizard.COMPANIES_INTERVIEWED_OPTIONS,
            ),
        ]
        for name, message, options in questions:
            answer = await self._options(message, options, getattr(current, name))
            if answer is None:
                return None
            engine.update(wizard.answer_usage_survey, **{name: answer})
        return await self._select("", self._nav_choices(engine, "Continue", "proceed"))

    async def _reason(self, engine: WizardEngine) -> str | None:
        session = engine.session
        reason = await self._select(
            "What's the main reason for cancelling?",
            [(r.value, r.value) for r in CancellationReason],
            default=session.reason.reason.value if session.reason.reason else None,
        )
        if reason is None:
            return None
        engine.update(wizard.select_reason, reason)

        answers = engine.session.reason
        follow_up = wizard.follow_up_for(CancellationReason(reason))
        if follow_up is FollowUp.MAX_PRICE:
            text = await self._text(
                "What would be the maximum you would be willing to pay? ($)",
                default=answers.max_price,
            )
        elif follow_up is FollowUp.PLATFORM_FEEDBACK:
            text = await self._text(
                "What can we change to make the platform more helpful? "
                f"(min {wizard.MIN_FEEDBACK_LENGTH} characters)",
                default=answers.feedback,
            )
        else:
            text = await self._text(
                "In which ways can we make the jobs more relevant? "
                f"(min {wizard.MIN_FEEDBACK_LENGTH} characters)",
                default=answers.feedback,
            )
        if text is None:
            return None
        engine.update(wizard.set_follow_up, text)
        return await self._select(
            "", self._nav_choices(engine, "Complete cancellation", "finish")
        )

    def _nav_choices(
        self, engine: WizardEngine, title: str, event: str
    ) -> list[tuple[str, str]]:
        # The late offer is open to both variants
        return [self._offer_choice(engine), (title, event), BACK]
