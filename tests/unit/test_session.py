"""Unit tests for session logging utilities.

Tests cover:
- StepTransition and Submission dataclass creation
- SessionLogger directory creation
- SessionLogger log_variant, log_transition and log_submission
- SessionLogger complete functionality
- SessionLogger _save writes valid JSON
"""

import json
from pathlib import Path

from cancelflow.utils.session import SessionLogger, StepTransition, Submission

USER_ID = "550e8400-e29b-41d4-a716-446655440001"


def read_log(logger: SessionLogger) -> dict:
    return json.loads((logger.session_dir / "session.json").read_text())


class TestStepTransition:
    """Tests for the StepTransition dataclass."""

    def test_create_step_transition(self) -> None:
        transition = StepTransition(
            timestamp="2026-02-03T10:30:00",
            from_step="job-question",
            to_step="downsell",
            event="still_looking",
        )
        assert transition.from_step == "job-question"
        assert transition.to_step == "downsell"
        assert transition.event == "still_looking"


class TestSubmission:
    """Tests for the Submission dataclass."""

    def test_error_defaults_to_none(self) -> None:
        submission = Submission(
            timestamp="2026-02-03T10:30:00",
            accepted_downsell=False,
            reason="Too expensive",
            success=True,
        )
        assert submission.error is None


class TestSessionLogger:
    """Tests for SessionLogger."""

    def test_creates_session_directory(self, tmp_path: Path) -> None:
        logger = SessionLogger(tmp_path, USER_ID, "http://localhost:8000")

        assert logger.session_id.startswith("cancel_")
        assert logger.session_dir == tmp_path / logger.session_id
        assert logger.session_dir.is_dir()

    def test_initial_data(self, tmp_path: Path) -> None:
        logger = SessionLogger(tmp_path, USER_ID, "http://localhost:8000")

        assert logger.data["user_id"] == USER_ID
        assert logger.data["api_url"] == "http://localhost:8000"
        assert logger.data["variant"] is None
        assert logger.data["transitions"] == []
        assert logger.data["submissions"] == []

    def test_log_variant(self, tmp_path: Path) -> None:
        logger = SessionLogger(tmp_path, USER_ID, "http://api")
        logger.log_variant("B")
        assert read_log(logger)["variant"] == "B"

    def test_log_transition(self, tmp_path: Path) -> None:
        logger = SessionLogger(tmp_path, USER_ID, "http://api")

        logger.log_transition("job-question", "downsell", "still_looking")
        logger.log_transition("downsell", "usage-survey", "decline_offer")

        transitions = read_log(logger)["transitions"]
        assert [t["event"] for t in transitions] == ["still_looking", "decline_offer"]
        assert transitions[1]["from_step"] == "downsell"
        assert transitions[1]["to_step"] == "usage-survey"

    def test_log_submission(self, tmp_path: Path) -> None:
        logger = SessionLogger(tmp_path, USER_ID, "http://api")

        logger.log_submission(False, "Too expensive", success=False, error="Rate limit exceeded")

        submission = read_log(logger)["submissions"][0]
        assert submission["accepted_downsell"] is False
        assert submission["reason"] == "Too expensive"
        assert submission["success"] is False
        assert submission["error"] == "Rate limit exceeded"

    def test_complete(self, tmp_path: Path) -> None:
        logger = SessionLogger(tmp_path, USER_ID, "http://api")

        logger.complete("cancellation-complete")

        data = read_log(logger)
        assert data["final_step"] == "cancellation-complete"
        assert data["completed_at"] is not None
        assert data["error"] is None

    def test_complete_with_error(self, tmp_path: Path) -> None:
        logger = SessionLogger(tmp_path, USER_ID, "http://api")
        logger.complete("reason", error="User left the flow")
        assert read_log(logger)["error"] == "User left the flow"
