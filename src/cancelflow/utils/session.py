"""Session logging utilities for CancelFlow.

This module records one wizard run as a JSON document. It includes:
- StepTransition dataclass for recording step changes
- Submission dataclass for recording calls to the cancellation API
- SessionLogger class for managing session data and persistence
"""

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any


@dataclass
class StepTransition:
    """Records a step change in the wizard.

    Attributes:
        timestamp: ISO format timestamp of when the transition occurred.
        from_step: The step before the transition.
        to_step: The step after the transition.
        event: The user action that triggered the transition.
    """

    timestamp: str
    from_step: str
    to_step: str
    event: str


@dataclass
class Submission:
    """Records a cancellation submission.

    Attributes:
        timestamp: ISO format timestamp of when the request was sent.
        accepted_downsell: Whether the user accepted the discount offer.
        reason: Cancellation reason that was submitted, if any.
        success: Whether the server accepted the submission.
        error: Error message when the submission failed.
    """

    timestamp: str
    accepted_downsell: bool
    reason: str | None
    success: bool
    error: str | None = None


class SessionLogger:
    """Logs wizard session data to a JSON file.

    The file is rewritten after each operation, so a crashed run still leaves
    a readable trail.

    Attributes:
        session_id: Unique identifier for this session.
        session_dir: Directory where session data is stored.
        data: Dictionary containing all session data.
    """

    def __init__(self, output_dir: Path, user_id: str, api_url: str) -> None:
        """Initialize a new session logger.

        Args:
            output_dir: Parent directory where session folder will be created.
            user_id: The user going through the flow.
            api_url: Base URL of the cancellation API.
        """
        self.session_id = f"cancel_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}"
        self.session_dir = output_dir / self.session_id
        self.session_dir.mkdir(parents=True, exist_ok=True)

        self.data: dict[str, Any] = {
            "session_id": self.session_id,
            "user_id": user_id,
            "api_url": api_url,
            "variant": None,
            "started_at": datetime.now().isoformat(),
            "completed_at": None,
            "final_step": None,
            "transitions": [],
            "submissions": [],
            "error": None,
        }

    def log_variant(self, variant: str) -> None:
        """Record the A/B variant assigned to this session."""
        self.data["variant"] = variant
        self._save()

    def log_transition(self, from_step: str, to_step: str, event: str) -> None:
        """Log a step transition.

        Args:
            from_step: The step before the transition.
            to_step: The step after the transition.
            event: The event that triggered the transition.
        """
        transition = StepTransition(
            timestamp=datetime.now().isoformat(),
            from_step=from_step,
            to_step=to_step,
            event=event,
        )
        self.data["transitions"].append(asdict(transition))
        self._save()

    def log_submission(
        self,
        accepted_downsell: bool,
        reason: str | None,
        success: bool,
        error: str | None = None,
    ) -> None:
        """Log a submission to the cancellation API.

        Args:
            accepted_downsell: Whether the discount offer was accepted.
            reason: The submitted reason, if any.
            success: Whether the server accepted the submission.
            error: Error message when the submission failed.
        """
        submission = Submission(
            timestamp=datetime.now().isoformat(),
            accepted_downsell=accepted_downsell,
            reason=reason,
            success=success,
            error=error,
        )
        self.data["submissions"].append(asdict(submission))
        self._save()

    def complete(self, final_step: str, error: str | None = None) -> None:
        """Mark session complete.

        Args:
            final_step: The step the wizard ended on.
            error: Optional error message if the session ended abnormally.
        """
        self.data["completed_at"] = datetime.now().isoformat()
        self.data["final_step"] = final_step
        self.data["error"] = error
        self._save()

    def _save(self) -> None:
        """Write session data to JSON file."""
        log_path = self.session_dir / "session.json"
        with open(log_path, "w") as f:
            json.dump(self.data, f, indent=2)
