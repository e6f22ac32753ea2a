"""Tests for core data types."""

import dataclasses

import pytest

from cancelflow.core.protocols import (
    TERMINAL_STEPS,
    CancellationData,
    CancellationReason,
    Step,
    WizardSession,
)


class TestStep:
    """Tests for the Step enum."""

    def test_values_are_kebab_case(self) -> None:
        for step in Step:
            assert step.value == step.name.lower().replace("_", "-")

    def test_terminal_steps(self) -> None:
        assert TERMINAL_STEPS == {
            Step.CANCELLATION_COMPLETE,
            Step.JOB_FOUND_NO_LAWYER_COMPLETION,
            Step.DOWNSELL_CANCELLATION_COMPLETE,
        }

    def test_downsell_success_is_not_terminal(self) -> None:
        assert WizardSession(step=Step.DOWNSELL_SUCCESS).is_terminal is False


class TestCancellationReason:
    def test_labels(self) -> None:
        assert [r.value for r in CancellationReason] == [
            "Too expensive",
            "Platform not helpful",
            "Not enough relevant jobs",
            "Decided not to move",
            "Other",
        ]


class TestWizardSession:
    """Tests for the immutable session snapshot."""

    def test_defaults(self) -> None:
        session = WizardSession()
        assert session.step is Step.LOADING
        assert session.variant is None
        assert session.csrf_token == ""
        assert session.processing is False

    def test_is_frozen(self) -> None:
        session = WizardSession()
        with pytest.raises(dataclasses.FrozenInstanceError):
            session.step = Step.REASON  # type: ignore[misc]


class TestCancellationData:
    """Tests for the wire payload."""

    def test_to_payload_omits_missing_reason(self) -> None:
        data = CancellationData("u", "s", "B", True)
        assert data.to_payload() == {
            "userId": "u",
            "subscriptionId": "s",
            "downsellVariant": "B",
            "acceptedDownsell": True,
        }

    def test_to_payload_with_reason(self) -> None:
        data = CancellationData("u", "s", "A", False, reason="Other")
        assert data.to_payload()["reason"] == "Other"

    def test_from_payload_does_not_coerce(self) -> None:
        data = CancellationData.from_payload(
            {"userId": 5, "acceptedDownsell": "false"}
        )
        assert data.user_id == 5
        assert data.accepted_downsell == "false"
        assert data.subscription_id is None
        assert data.reason is None
