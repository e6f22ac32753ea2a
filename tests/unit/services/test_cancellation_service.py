"""Tests for the server-side cancellation service."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from cancelflow.core.protocols import CancellationData
from cancelflow.db.models import Cancellation, Subscription
from cancelflow.services.cancellation import (
    CancellationService,
    random_variant,
    validate_cancellation_data,
)
from cancelflow.utils.exceptions import PersistenceError
from tests.conftest import SUBSCRIPTION_ID, USER_ID

OTHER_USER_ID = "550e8400-e29b-41d4-a716-446655440002"


def data(**overrides) -> CancellationData:
    fields = {
        "user_id": USER_ID,
        "subscription_id": SUBSCRIPTION_ID,
        "downsell_variant": "A",
        "accepted_downsell": False,
        "reason": "Too expensive",
    }
    fields.update(overrides)
    return CancellationData(**fields)


class TestValidateCancellationData:
    """Tests for validate_cancellation_data."""

    def test_valid_declined(self) -> None:
        assert validate_cancellation_data(data()) is True

    def test_valid_accepted_without_reason(self) -> None:
        assert validate_cancellation_data(data(accepted_downsell=True, reason=None)) is True

    @pytest.mark.parametrize(
        "overrides",
        [
            {"user_id": ""},
            {"user_id": "not-a-uuid"},
            {"subscription_id": None},
            {"subscription_id": "550e8400-e29b-71d4-a716-446655440011"},
            {"downsell_variant": "C"},
            {"downsell_variant": "a"},
            {"accepted_downsell": "false"},
            {"accepted_downsell": 0},
            {"reason": None},
            {"reason": "ab"},
            {"reason": "<<>>"},
            {"reason": "x" * 501},
        ],
    )
    def test_rejects(self, overrides: dict) -> None:
        assert validate_cancellation_data(data(**overrides)) is False


class TestRandomVariant:
    """Tests for random_variant."""

    def test_roughly_uniform(self) -> None:
        draws = [random_variant() for _ in range(4000)]
        share_b = draws.count("B") / len(draws)
        assert set(draws) == {"A", "B"}
        assert 0.45 < share_b < 0.55


class TestGetOrCreateDownsellVariant:
    """Tests for CancellationService.get_or_create_downsell_variant."""

    def test_creates_record_with_active_subscription(self, db_session: Session) -> None:
        service = CancellationService(db_session, draw_variant=lambda: "B")

        assert service.get_or_create_downsell_variant(USER_ID) == "B"

        row = db_session.scalars(select(Cancellation)).one()
        assert row.user_id == USER_ID
        assert row.subscription_id == SUBSCRIPTION_ID
        assert row.downsell_variant == "B"
        assert row.accepted_downsell is False

    def test_idempotent(self, db_session: Session) -> None:
        draws = iter(["B", "A", "A"])
        service = CancellationService(db_session, draw_variant=lambda: next(draws))

        variants = {service.get_or_create_downsell_variant(USER_ID) for _ in range(3)}

        assert variants == {"B"}
        assert len(db_session.scalars(select(Cancellation)).all()) == 1

    def test_no_active_subscription_falls_back_to_a(self, db_session: Session) -> None:
        service = CancellationService(db_session, draw_variant=lambda: "B")
        unknown = "550e8400-e29b-41d4-a716-446655449999"

        assert service.get_or_create_downsell_variant(unknown) == "A"
        assert db_session.scalars(select(Cancellation)).all() == []

    def test_database_error_falls_back_to_a(self) -> None:
        db = MagicMock()
        db.scalars.side_effect = OperationalError("SELECT", {}, Exception("down"))
        service = CancellationService(db, draw_variant=lambda: "B")

        assert service.get_or_create_downsell_variant(USER_ID) == "A"
        db.rollback.assert_called_once()

    def test_concurrent_insert_returns_winner(self, db_session: Session) -> None:
        """A conflicting insert should roll back and return the stored variant."""
        service = CancellationService(db_session, draw_variant=lambda: "A")
        original = service._stored_variant
        calls = {"n": 0}

        def racing_lookup(user_id: str):
            calls["n"] += 1
            if calls["n"] == 1:
                # Another request commits between our read and our insert
                db_session.add(
                    Cancellation(
                        user_id=user_id,
                        subscription_id=SUBSCRIPTION_ID,
                        downsell_variant="B",
                        accepted_downsell=False,
                    )
                )
                db_session.commit()
                return None
            return original(user_id)

        service._stored_variant = racing_lookup

        assert service.get_or_create_downsell_variant(USER_ID) == "B"
        assert len(db_session.scalars(select(Cancellation)).all()) == 1


class TestCompleteCancellation:
    """Tests for CancellationService.complete_cancellation."""

    def test_declined_marks_subscription_pending(self, db_session: Session) -> None:
        service = CancellationService(db_session, draw_variant=lambda: "A")
        service.get_or_create_downsell_variant(USER_ID)

        service.complete_cancellation(data(reason="  <Too expensive>  "))

        record = service.get_cancellation_record(USER_ID)
        assert record.reason == "Too expensive"
        assert record.accepted_downsell is False
        status = db_session.scalars(
            select(Subscription.status).where(Subscription.id == SUBSCRIPTION_ID)
        ).one()
        assert status == "pending_cancellation"

    def test_accepted_keeps_subscription_active(self, db_session: Session) -> None:
        service = CancellationService(db_session, draw_variant=lambda: "B")
        service.get_or_create_downsell_variant(USER_ID)

        service.complete_cancellation(
            data(downsell_variant="B", accepted_downsell=True, reason=None)
        )

        record = service.get_cancellation_record(USER_ID)
        assert record.accepted_downsell is True
        assert record.reason is None
        status = db_session.scalars(
            select(Subscription.status).where(Subscription.id == SUBSCRIPTION_ID)
        ).one()
        assert status == "active"

    def test_other_users_untouched(self, db_session: Session) -> None:
        service = CancellationService(db_session, draw_variant=lambda: "A")
        service.get_or_create_downsell_variant(USER_ID)
        service.complete_cancellation(data())

        status = db_session.scalars(
            select(Subscription.status).where(Subscription.user_id == OTHER_USER_ID)
        ).one()
        assert status == "active"

    def test_database_error_raises_persistence_error(self) -> None:
        db = MagicMock()
        db.execute.side_effect = OperationalError("UPDATE", {}, Exception("down"))
        service = CancellationService(db)

        with pytest.raises(PersistenceError):
            service.complete_cancellation(data())
        db.rollback.assert_called_once()


class TestGetCancellationRecord:
    """Tests for CancellationService.get_cancellation_record."""

    def test_missing_record(self, db_session: Session) -> None:
        assert CancellationService(db_session).get_cancellation_record(USER_ID) is None

    def test_existing_record(self, db_session: Session) -> None:
        service = CancellationService(db_session, draw_variant=lambda: "B")
        service.get_or_create_downsell_variant(USER_ID)

        record = service.get_cancellation_record(USER_ID)

        assert record.user_id == USER_ID
        assert record.downsell_variant == "B"
        assert record.created_at is not None
