"""Celery app configuration for the NHL scores pipeline."""

from __future__ import annotations

from celery import Celery, signals
from celery.schedules import crontab

from .config import settings
from .logging import logger

QUEUE = "nhl-scores"

celery_config = {
    "task_serializer": "json",
    "accept_content": ["json"],
    "result_serializer": "json",
    "timezone": "UTC",
    "enable_utc": True,
    "task_track_started": True,
    "worker_prefetch_multiplier": 1,
    "task_time_limit": 7200,        # 2 hours hard limit (full backfill)
    "task_soft_time_limit": 7000,
    "task_default_queue": QUEUE,
}

app = Celery(
    "nhl-scores",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["nhl_scores.jobs.tasks"],
)
app.conf.update(**celery_config)
app.conf.task_routes = {
    "run_ingestion": {"queue": QUEUE, "routing_key": QUEUE},
    "refresh_active_games": {"queue": QUEUE, "routing_key": QUEUE},
}
# Daily ingestion is cheap (one schedule call plus one scores call), so it
# runs often enough to pick up reschedules and final scores within minutes.
app.conf.beat_schedule = {
    "daily-ingestion-every-10-minutes": {
        "task": "run_ingestion",
        "schedule": crontab(minute="*/10"),
        "options": {"queue": QUEUE, "routing_key": QUEUE},
    },
    "refresh-active-games-every-minute": {
        "task": "refresh_active_games",
        "schedule": crontab(minute="*"),
        "options": {"queue": QUEUE, "routing_key": QUEUE},
    },
}


@signals.worker_ready.connect
def on_worker_ready(sender=None, **kwargs):
    worker_name = getattr(sender, "hostname", None) or (str(sender) if sender else "unknown")
    logger.info("celery_worker_ready", worker=worker_name)
