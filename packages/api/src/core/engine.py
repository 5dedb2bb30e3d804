# This project was developed with assistance from AI tools.
"""Wiring for the reminder engine.

``build_engine`` constructs the store, emitter, pipeline, and scheduler once
per process; the FastAPI lifespan keeps the result on ``app.state`` and
routes reach it through ``get_engine``.
"""

from dataclasses import dataclass
from zoneinfo import ZoneInfo

from db import SessionLocal
from fastapi import Request

from ..services.jobs import register_standard_jobs
from ..services.notification import NotificationEmitter
from ..services.reminders import ReminderPipeline
from ..services.scheduler import Scheduler
from ..services.store import RequirementStore
from .config import Settings


@dataclass
class ComplianceEngine:
    store: RequirementStore
    emitter: NotificationEmitter
    pipeline: ReminderPipeline
    scheduler: Scheduler
    tz: ZoneInfo


def build_engine(settings: Settings, session_factory=SessionLocal) -> ComplianceEngine:
    tz = ZoneInfo(settings.SCHEDULER_TIMEZONE)
    store = RequirementStore(session_factory, timeout=settings.STORE_TIMEOUT_SECONDS)
    emitter = NotificationEmitter(session_factory, timeout=settings.STORE_TIMEOUT_SECONDS)
    pipeline = ReminderPipeline(
        store,
        emitter,
        tz=tz,
        renewal_window_days=settings.RENEWAL_WINDOW_DAYS,
    )
    scheduler = Scheduler(emitter, timezone=settings.SCHEDULER_TIMEZONE)
    register_standard_jobs(
        scheduler,
        store=store,
        emitter=emitter,
        pipeline=pipeline,
        settings=settings,
    )
    return ComplianceEngine(
        store=store,
        emitter=emitter,
        pipeline=pipeline,
        scheduler=scheduler,
        tz=tz,
    )


def get_engine(request: Request) -> ComplianceEngine:
    """FastAPI dependency: the engine built at startup."""
    return request.app.state.engine
