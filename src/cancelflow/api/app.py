"""FastAPI application factory for the cancellation API."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from cancelflow import __version__
from cancelflow.api.routes import router
from cancelflow.core.protocols import Variant
from cancelflow.db.database import create_db_engine, create_session_factory, init_db
from cancelflow.security.csrf import CsrfProtector
from cancelflow.security.rate_limit import RateLimiter
from cancelflow.security.store import ExpiringStore, InMemoryStore
from cancelflow.services.cancellation import random_variant
from cancelflow.utils.config import AppConfig

logger = logging.getLogger(__name__)


async def _sweep_periodically(name: str, sweep: Callable[[], int], interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            sweep()
        except Exception:
            logger.exception("%s sweep failed", name)


def create_app(
    config: AppConfig,
    engine: Engine | None = None,
    rate_limit_store: ExpiringStore | None = None,
    csrf_store: ExpiringStore | None = None,
    draw_variant: Callable[[], Variant] = random_variant,
) -> FastAPI:
    """Build the API.

    Args:
        config: Loaded application configuration.
        engine: Database engine; created from ``config.database_url`` if
            omitted.
        rate_limit_store: Store for rate-limit windows. Defaults to a new
            InMemoryStore.
        csrf_store: Store for CSRF tokens. Defaults to a new InMemoryStore.
        draw_variant: Source of variants for first-time visitors.

    Returns:
        The configured application. Expired entries are swept while it runs.
    """
    engine = engine or create_db_engine(config.database_url)
    rate_limiter = RateLimiter(rate_limit_store or InMemoryStore())
    csrf = CsrfProtector(csrf_store or InMemoryStore(), ttl=config.csrf_ttl)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        init_db(engine)
        tasks = [
            asyncio.create_task(
                _sweep_periodically("rate limit", rate_limiter.sweep, config.rate_sweep_interval)
            ),
            asyncio.create_task(
                _sweep_periodically("CSRF", csrf.sweep, config.csrf_sweep_interval)
            ),
        ]
        logger.info("Cancellation API started (database: %s)", engine.url)
        try:
            yield
        finally:
            for task in tasks:
                task.cancel()
            for task in tasks:
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    app = FastAPI(title="CancelFlow", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.rate_limiter = rate_limiter
    app.state.csrf = csrf
    app.state.draw_variant = draw_variant

    app.include_router(router)

    @app.get("/healthz", include_in_schema=False)
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
