"""CLI output formatting utilities for CancelFlow.

This module provides the OutputFormatter class for displaying wizard
progress, inline errors, and the final result of a run.
"""

import os
from contextlib import AbstractContextManager, nullcontext

from rich.console import Console

from cancelflow.core import wizard
from cancelflow.core.protocols import Step, WizardResult, WizardSession

STEP_TITLES = {
    Step.LOADING: "Loading",
    Step.JOB_QUESTION: "Subscription Cancellation",
    Step.JOB_FOUND_STEP1: "Congrats on the new role! (Step 1 of 3)",
    Step.JOB_FOUND_STEP2: "What's one thing we could have done better? (Step 2 of 3)",
    Step.JOB_FOUND_STEP3: "Visa support (Step 3 of 3)",
    Step.JOB_FOUND_STEP3_FEEDBACK: "Visa support (Step 3 of 3)",
    Step.DOWNSELL: "Before you go (Step 1 of 3)",
    Step.DOWNSELL_SUCCESS: "Subscription continued",
    Step.USAGE_SURVEY: "Help us understand how you used CancelFlow (Step 2 of 3)",
    Step.REASON: "What's the main reason for cancelling? (Step 3 of 3)",
    Step.CANCELLATION_COMPLETE: "All done, your cancellation's been processed",
    Step.JOB_FOUND_NO_LAWYER_COMPLETION: "Your cancellation's all sorted",
    Step.DOWNSELL_CANCELLATION_COMPLETE: "Sorry to see you go",
}

_STEP_STYLES = {
    Step.DOWNSELL: "yellow",
    Step.DOWNSELL_SUCCESS: "green",
    Step.CANCELLATION_COMPLETE: "green",
    Step.JOB_FOUND_NO_LAWYER_COMPLETION: "green",
    Step.DOWNSELL_CANCELLATION_COMPLETE: "green",
}


def wants_plain_output(plain: bool = False) -> bool:
    """Whether to drop colors and spinners.

    True for --plain, and when NO_COLOR (any value), TERM=dumb or
    CANCELFLOW_PLAIN is set in the environment.
    """
    return (
        plain
        or "NO_COLOR" in os.environ
        or "CANCELFLOW_PLAIN" in os.environ
        or os.environ.get("TERM") == "dumb"
    )


class OutputFormatter:
    """Formats and displays CLI output.

    Attributes:
        verbose: Whether to show every step transition.
        console: Rich console output is written to.
    """

    def __init__(self, verbose: bool = False, plain: bool = False):
        """Initialize the output formatter.

        Args:
            verbose: Enable verbose output mode. Defaults to False.
            plain: Disable colors and spinners. The environment can also
                force plain output, see wants_plain_output.
        """
        self.verbose = verbose
        self.plain = wants_plain_output(plain)
        self.console = Console(no_color=self.plain, highlight=False)
        self._step = 0

    def show_progress(self, state: str, message: str) -> None:
        """Show a numbered progress line; only in verbose mode.

        Args:
            state: The step name, e.g. "USAGE_SURVEY".
            message: A descriptive message for the transition.
        """
        if not self.verbose:
            return
        self._step += 1
        self.console.print(f"[dim][{self._step}][/dim] [cyan]{state}[/cyan]: {message}")

    def waiting(self, message: str) -> AbstractContextManager:
        """Spinner shown while waiting on the API, except in plain output."""
        if self.plain:
            return nullcontext()
        return self.console.status(message)

    def show_step(self, session: WizardSession) -> None:
        """Show the title of the current step and any inline messages."""
        style = _STEP_STYLES.get(session.step, "bold")
        self.console.rule(f"[{style}]{STEP_TITLES[session.step]}[/{style}]")
        if session.step is Step.REASON and wizard.reason_reminder_visible(session):
            self.console.print(
                "[yellow]To help us understand your experience, please select a "
                "reason for cancelling.[/yellow]"
            )
        if session.error:
            self.show_error(session.error)

    def show_error(self, message: str) -> None:
        """Show an inline error in red."""
        self.console.print(f"[red]{message}[/red]")

    def show_success(self, result: WizardResult) -> None:
        """Show the completion screen of a finished run."""
        self.console.print()
        self.console.rule(f"[green]{STEP_TITLES[result.step]}[/green]")
        self.console.print(result.message)
        if result.accepted_downsell:
            self.console.print("You're still subscribed at the discounted price.")
        if result.session_dir:
            self.console.print(f"[dim]Session log: {result.session_dir}[/dim]")
        self.console.print()

    def show_failure(self, result: WizardResult) -> None:
        """Show why a run did not reach a completion screen."""
        self.console.print()
        self.console.rule("[red]Cancellation not completed[/red]")
        self.console.print(f"Status: {result.message}")
        self.console.print(f"Last step: {result.step.value}")
        if result.session_dir:
            self.console.print(f"\nSession log for debugging: {result.session_dir}")
        self.console.print()

    def show_warning(self, message: str) -> None:
        """Show a warning in yellow."""
        self.console.print(f"\n[yellow]WARNING: {message}[/yellow]\n")
