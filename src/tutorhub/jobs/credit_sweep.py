"""Background scheduler applying approved credits."""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from ..core.config import get_settings
from ..core.database import SessionLocal
from ..services.credit_sweep_service import run_credit_sweep

logger = logging.getLogger(__name__)

_scheduler = AsyncIOScheduler(timezone="UTC")


async def _execute_credit_sweep() -> None:
    session = SessionLocal()
    try:
        summary = run_credit_sweep(session)
        logger.info("credit sweep completed: %s", summary)
    except Exception:  # pragma: no cover - safeguard for background job
        session.rollback()
        logger.exception("credit sweep job failed")
        raise
    finally:
        session.close()


def register_scheduler(app: FastAPI) -> None:
    """Attach APScheduler lifecycle hooks to the FastAPI app."""

    settings = get_settings()
    if not settings.credit_sweep_enabled:
        return

    @app.on_event("startup")
    async def start_scheduler() -> None:
        if not _scheduler.running:
            _scheduler.add_job(
                _execute_credit_sweep,
                "interval",
                minutes=settings.credit_sweep_interval_minutes,
                id="credit_sweep",
                replace_existing=True,
                coalesce=True,
                max_instances=1,
            )
            _scheduler.start()
            logger.info(
                "credit sweep scheduler started (every %s min)",
                settings.credit_sweep_interval_minutes,
            )

    @app.on_event("shutdown")
    async def shutdown_scheduler() -> None:
        if _scheduler.running:
            _scheduler.shutdown(wait=False)
            logger.info("credit sweep scheduler stopped")


def run_sweep_once() -> dict[str, int]:
    """Convenience helper to run the sweep synchronously for manual runs."""

    session = SessionLocal()
    try:
        return run_credit_sweep(session)
    finally:
        session.close()
