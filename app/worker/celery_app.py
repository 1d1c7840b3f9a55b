"""Celery application configuration."""

from celery import Celery

from app.core.config import settings

celery_app = Celery("dealer_photo_feed")

broker_url = settings.celery_broker_url or settings.redis_url
result_backend = settings.celery_result_backend or settings.redis_url

celery_app.conf.update(
    broker_url=broker_url,
    result_backend=result_backend,
    task_default_queue="image_processing",
    # Transformation calls are slow; one job per worker slot, acknowledged only when done.
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_soft_time_limit=600,
    task_time_limit=660,
    worker_max_tasks_per_child=100,
    task_track_started=True,
    task_always_eager=settings.debug,
)

celery_app.autodiscover_tasks(["app.tasks"])
