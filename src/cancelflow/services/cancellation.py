"""Server-side cancellation service.

This module owns the database side of the flow. It includes:
- Variant assignment with a stable per-user bucket
- Recording the outcome and flagging the subscription for cancellation
- validate_cancellation_data, the all-or-nothing payload check
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from cancelflow.core.protocols import (
    VARIANTS,
    CancellationData,
    CancellationRecord,
    SubscriptionStatus,
    Variant,
)
from cancelflow.db.models import Cancellation, Subscription
from cancelflow.security.sanitize import (
    is_valid_uuid,
    sanitize_input,
    validate_cancellation_reason,
)
from cancelflow.utils.exceptions import PersistenceError

logger = logging.getLogger(__name__)

FALLBACK_VARIANT: Variant = "A"


def random_variant() -> Variant:
    """Draw one unbiased bit: 0 is A, 1 is B."""
    return VARIANTS[secrets.randbits(1)]


def validate_cancellation_data(data: CancellationData) -> bool:
    """Check a submission payload.

    Both ids must be RFC 4122 UUIDs, the variant A or B, the accepted flag a
    real bool, and a declined offer needs a reason of 3 to 500 characters
    after sanitization.
    """
    if not data.user_id or not data.subscription_id:
        return False
    if not is_valid_uuid(data.user_id) or not is_valid_uuid(data.subscription_id):
        return False
    if data.downsell_variant not in VARIANTS:
        return False
    if not isinstance(data.accepted_downsell, bool):
        return False
    if not data.accepted_downsell:
        if not data.reason:
            return False
        if validate_cancellation_reason(data.reason) is None:
            return False
    return True


class CancellationService:
    """Reads and writes cancellation state for the API.

    Attributes:
        db: Open SQLAlchemy session; the caller owns its lifetime.
        draw_variant: Source of new variants.
    """

    def __init__(
        self, db: Session, draw_variant: Callable[[], Variant] = random_variant
    ) -> None:
        self.db = db
        self.draw_variant = draw_variant

    def get_or_create_downsell_variant(self, user_id: str) -> Variant:
        """Return the user's variant, assigning one on the first request.

        Any failure is logged and answered with variant A so the flow can
        still open.
        """
        try:
            existing = self._stored_variant(user_id)
            if existing is not None:
                return existing

            variant = self.draw_variant()
            self.db.add(
                Cancellation(
                    user_id=user_id,
                    subscription_id=self._active_subscription_id(user_id),
                    downsell_variant=variant,
                    accepted_downsell=False,
                )
            )
            try:
                self.db.commit()
            except IntegrityError:
                # A concurrent first request inserted the row already
                self.db.rollback()
                winner = self._stored_variant(user_id)
                if winner is None:
                    raise
                logger.info("Variant for %s assigned concurrently, using %s", user_id, winner)
                return winner
            logger.info("Assigned variant %s to %s", variant, user_id)
            return variant
        except (SQLAlchemyError, LookupError) as e:
            self.db.rollback()
            logger.error("Error in get_or_create_downsell_variant: %s", e)
            return FALLBACK_VARIANT

    def complete_cancellation(self, data: CancellationData) -> None:
        """Record the outcome of the flow.

        Stores the sanitized reason and the accepted flag on the user's
        record. A declined offer also moves the active subscription to
        pending_cancellation.

        Raises:
            PersistenceError: If the database rejects either write.
        """
        values: dict[str, object] = {"accepted_downsell": data.accepted_downsell}
        if data.reason:
            values["reason"] = sanitize_input(data.reason)

        try:
            self.db.execute(
                update(Cancellation)
                .where(Cancellation.user_id == data.user_id)
                .values(**values)
            )
            if not data.accepted_downsell:
                self.db.execute(
                    update(Subscription)
                    .where(
                        Subscription.user_id == data.user_id,
                        Subscription.status == SubscriptionStatus.ACTIVE.value,
                    )
                    .values(status=SubscriptionStatus.PENDING_CANCELLATION.value)
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error completing cancellation: %s", e)
            raise PersistenceError(f"Could not complete cancellation: {e}") from e

        logger.info(
            "Cancellation completed for %s (accepted_downsell=%s)",
            data.user_id,
            data.accepted_downsell,
        )

    def get_cancellation_record(self, user_id: str) -> CancellationRecord | None:
        """Return the user's cancellation record, or None if absent or unreadable."""
        try:
            row = self.db.scalars(
                select(Cancellation).where(Cancellation.user_id == user_id)
            ).first()
        except SQLAlchemyError as e:
            logger.error("Error fetching cancellation record: %s", e)
            return None
        if row is None:
            return None
        return CancellationRecord(
            id=row.id,
            user_id=row.user_id,
            subscription_id=row.subscription_id,
            downsell_variant=row.downsell_variant,
            reason=row.reason,
            accepted_downsell=row.accepted_downsell,
            created_at=row.created_at,
        )

    def _stored_variant(self, user_id: str) -> Variant | None:
        return self.db.scalars(
            select(Cancellation.downsell_variant).where(Cancellation.user_id == user_id)
        ).first()

    def _active_subscription_id(self, user_id: str) -> str:
        subscription_id = self.db.scalars(
            select(Subscription.id).where(
                Subscription.user_id == user_id,
                Subscription.status == SubscriptionStatus.ACTIVE.value,
            )
        ).first()
        if subscription_id is None:
            raise LookupError(f"No active subscription for user {user_id}")
        return subscription_id
