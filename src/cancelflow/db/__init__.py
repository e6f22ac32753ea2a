"""Persistence for users, subscriptions and cancellation records."""

from cancelflow.db.database import (
    Base,
    create_db_engine,
    create_session_factory,
    get_db,
    init_db,
)
from cancelflow.db.models import Cancellation, Subscription, User

__all__ = [
    "Base",
    "Cancellation",
    "Subscription",
    "User",
    "create_db_engine",
    "create_session_factory",
    "get_db",
    "init_db",
]
