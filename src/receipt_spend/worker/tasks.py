from __future__ import annotations

# Ensure all models are registered before any task runs
# isort: off
import receipt_spend.models  # noqa: F401
# isort: on

import time

from receipt_spend.core.db import SessionLocal
from receipt_spend.core.logging import (
    get_logger,
    log_event,
    log_exception,
    monotonic_ms,
    reset_task_context,
    set_task_context,
)
from receipt_spend.worker.celery_app import celery_app

logger = get_logger(__name__)


@celery_app.task(name="cleanup_stale_sessions", bind=True)
def cleanup_stale_sessions_task(self) -> int:
    from receipt_spend.modules.sessions.service import cleanup_stale_sessions

    task_id = getattr(self.request, "id", None)
    token = set_task_context(task_id)
    start = time.monotonic()
    log_event(
        logger,
        "celery.task.start",
        task_name="cleanup_stale_sessions",
        celery_task_id=task_id,
    )
    try:
        with SessionLocal() as session:
            removed = cleanup_stale_sessions(session)
        log_event(
            logger,
            "celery.task.finish",
            task_name="cleanup_stale_sessions",
            celery_task_id=task_id,
            removed_sessions=removed,
            duration_ms=monotonic_ms(start),
        )
        return removed
    except Exception:
        log_exception(
            logger,
            "celery.task.error",
            task_name="cleanup_stale_sessions",
            celery_task_id=task_id,
            duration_ms=monotonic_ms(start),
        )
        raise
    finally:
        reset_task_context(token)
