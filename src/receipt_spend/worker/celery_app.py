from __future__ import annotations

from celery import Celery

from receipt_spend.core.config import settings


def make_celery() -> Celery:
    app = Celery("receipt_spend", broker=settings.redis_url, backend=settings.redis_url)
    app.conf.update(
        task_always_eager=settings.environment == "dev",
        task_eager_propagates=True,
        task_track_started=True,
        beat_schedule={
            "cleanup-stale-sessions": {
                "task": "cleanup_stale_sessions",
                "schedule": float(settings.session_cleanup_interval_seconds),
            }
        },
    )
    app.autodiscover_tasks(["receipt_spend.worker.tasks"])
    return app


celery_app = make_celery()
