"""Celery tasks for vehicle image processing."""

from __future__ import annotations

from typing import Optional

from app.core.exceptions import InvalidState
from app.core.logging import get_logger
from app.services.image_optimizer import image_optimizer
from app.worker.celery_app import celery_app

logger = get_logger(__name__)


@celery_app.task(name="image.process_vehicle_job")
def process_vehicle_job(job_id: str, force: Optional[bool] = None) -> dict:
    """Run a queued processing job to completion."""

    logger.info("image_job_task_started", job_id=job_id)
    try:
        outcome = image_optimizer.run_job(job_id, force=force)
    except InvalidState as exc:
        # Another worker already picked the job up, or it already finished.
        logger.warning("image_job_task_skipped", job_id=job_id, reason=exc.message)
        return {"job_id": job_id, "skipped": True}

    logger.info("image_job_task_finished", job_id=job_id, outcome=outcome.kind)
    return {"job_id": job_id, "skipped": False, "outcome": outcome.model_dump(mode="json")}
