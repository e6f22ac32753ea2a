"""Sample users and subscriptions for local development."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from cancelflow.db.models import Subscription, User

logger = logging.getLogger(__name__)

MOCK_USER_ID = "550e8400-e29b-41d4-a716-446655440001"

SAMPLE_USERS = [
    ("550e8400-e29b-41d4-a716-446655440001", "user1@example.com"),
    ("550e8400-e29b-41d4-a716-446655440002", "user2@example.com"),
    ("550e8400-e29b-41d4-a716-446655440003", "user3@example.com"),
]

# (subscription id, user id, monthly price in cents)
SAMPLE_SUBSCRIPTIONS = [
    ("550e8400-e29b-41d4-a716-446655440011", "550e8400-e29b-41d4-a716-446655440001", 2500),
    ("550e8400-e29b-41d4-a716-446655440012", "550e8400-e29b-41d4-a716-446655440002", 2900),
    ("550e8400-e29b-41d4-a716-446655440013", "550e8400-e29b-41d4-a716-446655440003", 2500),
]


def seed_sample_data(db: Session) -> int:
    """Insert the sample rows that are missing.

    Returns:
        Number of rows inserted.
    """
    inserted = 0
    for user_id, email in SAMPLE_USERS:
        if db.get(User, user_id) is None:
            db.add(User(id=user_id, email=email))
            inserted += 1
    db.flush()
    for subscription_id, user_id, price in SAMPLE_SUBSCRIPTIONS:
        if db.get(Subscription, subscription_id) is None:
            db.add(
                Subscription(
                    id=subscription_id,
                    user_id=user_id,
                    monthly_price=price,
                    status="active",
                )
            )
            inserted += 1
    db.commit()
    logger.info("Seeded %d sample rows", inserted)
    return inserted
