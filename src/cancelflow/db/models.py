"""Database models for users, subscriptions and cancellations."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from cancelflow.db.database import Base

SUBSCRIPTION_STATUS = Enum(
    "active",
    "pending_cancellation",
    "cancelled",
    name="subscription_status",
)

DOWNSELL_VARIANT = Enum("A", "B", name="downsell_variant")


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    """An account that can hold subscriptions."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Subscription(Base):
    """A paid plan; monthly_price is in cents."""

    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    monthly_price = Column(Integer, nullable=False)
    status = Column(SUBSCRIPTION_STATUS, nullable=False, default="active", index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class Cancellation(Base):
    """A user's pass through the cancellation flow.

    Created with the variant on the first visit; at most one per user.
    """

    __tablename__ = "cancellations"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    subscription_id = Column(
        String(36), ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=True
    )
    downsell_variant = Column(DOWNSELL_VARIANT, nullable=False)
    reason = Column(Text, nullable=True)
    accepted_downsell = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


__all__ = ["Cancellation", "Subscription", "User"]
