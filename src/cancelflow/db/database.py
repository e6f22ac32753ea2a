"""SQLAlchemy engine, session factory and declarative base."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""


def create_db_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine for database_url.

    SQLite connections are shared with the threadpool FastAPI runs sync
    handlers in, so the same-thread check is disabled for them.
    """
    connect_args = kwargs.pop("connect_args", {})
    if database_url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
    return create_engine(database_url, connect_args=connect_args, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create every table that does not exist yet."""
    from cancelflow.db import models  # noqa: F401  registers the tables

    Base.metadata.create_all(bind=engine)


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency yielding a session from the app's factory."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
