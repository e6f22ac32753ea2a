"""Cancellation endpoints: variant assignment and outcome submission."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from cancelflow.core.protocols import CancellationData
from cancelflow.db.database import get_db
from cancelflow.security.csrf import CSRF_HEADER, CsrfProtector, session_key
from cancelflow.security.rate_limit import RateLimiter, RateLimitResult
from cancelflow.services.cancellation import (
    CancellationService,
    validate_cancellation_data,
)
from cancelflow.utils.config import AppConfig

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Cancellation"])


def _error(status_code: int, message: str, limit: RateLimitResult | None = None) -> JSONResponse:
    headers = limit.headers() if limit else None
    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


def _check_rate_limit(request: Request, scope: str) -> RateLimitResult:
    config: AppConfig = request.app.state.config
    limiter: RateLimiter = request.app.state.rate_limiter
    if scope == "get":
        max_requests, window = config.get_rate_limit, config.get_rate_window
    else:
        max_requests, window = config.post_rate_limit, config.post_rate_window
    return limiter.check(f"{scope}:{session_key(request)}", max_requests, window)


@router.get("/cancellation")
def get_variant(request: Request, db: Session = Depends(get_db)) -> JSONResponse:
    """Return the user's A/B variant and a CSRF token for this session."""
    try:
        limit = _check_rate_limit(request, "get")
        if not limit.allowed:
            return _error(status.HTTP_429_TOO_MANY_REQUESTS, "Rate limit exceeded", limit)

        user_id = request.query_params.get("userId")
        if not user_id:
            return _error(status.HTTP_400_BAD_REQUEST, "User ID is required", limit)

        service = CancellationService(db, draw_variant=request.app.state.draw_variant)
        variant = service.get_or_create_downsell_variant(user_id)

        csrf: CsrfProtector = request.app.state.csrf
        csrf_token = csrf.issue(session_key(request))
        headers = {**limit.headers(), "X-CSRF-Token": csrf_token}
        return JSONResponse({"variant": variant, "csrfToken": csrf_token}, headers=headers)
    except Exception:
        logger.exception("Error in GET /api/cancellation")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@router.post("/cancellation")
async def submit_cancellation(
    request: Request, db: Session = Depends(get_db)
) -> JSONResponse:
    """Record the outcome of the flow.

    Checks run in order: rate limit, CSRF token, required fields, payload
    validation. Nothing is written unless every check passes.
    """
    try:
        limit = _check_rate_limit(request, "post")
        if not limit.allowed:
            return _error(status.HTTP_429_TOO_MANY_REQUESTS, "Rate limit exceeded", limit)

        csrf: CsrfProtector = request.app.state.csrf
        if not csrf.validate(session_key(request), request.headers.get(CSRF_HEADER)):
            return _error(status.HTTP_403_FORBIDDEN, "Invalid CSRF token", limit)

        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return _error(status.HTTP_400_BAD_REQUEST, "Missing required fields", limit)

        data = CancellationData.from_payload(body)
        if (
            not data.user_id
            or not data.subscription_id
            or not data.downsell_variant
            or not isinstance(data.accepted_downsell, bool)
        ):
            return _error(status.HTTP_400_BAD_REQUEST, "Missing required fields", limit)

        if not validate_cancellation_data(data):
            return _error(status.HTTP_400_BAD_REQUEST, "Invalid cancellation data", limit)

        await run_in_threadpool(CancellationService(db).complete_cancellation, data)

        message = "Downsell accepted" if data.accepted_downsell else "Cancellation completed"
        return JSONResponse({"success": True, "message": message}, headers=limit.headers())
    except Exception:
        logger.exception("Error in POST /api/cancellation")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
