"""Runs processing jobs: transforms each key image and writes the result back."""

from __future__ import annotations

from typing import List, Optional

from app.core.clock import Clock, utcnow
from app.core.config import settings
from app.core.exceptions import NotFound, TransformationFailure, TransformationUnreachable
from app.core.logging import get_logger, job_log_context
from app.models.image import VehicleImage
from app.models.job import Fatal, FullSuccess, JobOutcome, PartialSuccess, ProcessingJob
from app.services.job_lifecycle import JobLifecycleManager, job_manager
from app.services.transformation import TransformationClient, build_transformation_client
from app.services.vehicle_store import VehicleImageStore, vehicle_store

logger = get_logger(__name__)

ALL_FAILED_REASON = "All images failed to process"


class ImageOptimizer:
    """Optimizes the key images referenced by a job, one at a time in job order."""

    def __init__(
        self,
        store: VehicleImageStore,
        transformer: TransformationClient,
        manager: JobLifecycleManager,
        clock: Clock = utcnow,
        path_prefix: Optional[str] = None,
    ) -> None:
        self._store = store
        self.transformer = transformer
        self._manager = manager
        self._clock = clock
        self._path_prefix = (path_prefix or settings.optimized_path_prefix).strip("/")

    def target_name(self, image: VehicleImage) -> str:
        """Deterministic asset name, so reprocessing overwrites instead of orphaning."""

        return f"{self._path_prefix}/{image.vehicle_id}/{image.image_type.value.lower()}.jpg"

    def process_job(self, job: ProcessingJob, force: Optional[bool] = None) -> JobOutcome:
        """Optimize every key image in ``job`` and report how it went.

        Gallery images and images already optimized (unless forced) are skipped
        without calling the transformer. A single image failing is recorded and
        the loop moves on; an unreachable transformer stops the job and leaves
        the remaining images untouched.
        """

        force = job.force if force is None else force
        optimized: List[str] = []
        skipped: List[str] = []
        failed: List[str] = []
        up_to_date = 0

        for image_id in job.image_ids:
            try:
                image = self._store.get_image(image_id)
            except NotFound:
                logger.warning("image_missing", job_id=job.id, image_id=image_id)
                failed.append(image_id)
                continue

            if not image.image_type.is_key:
                logger.debug("gallery_image_skipped", image_id=image_id, image_type=image.image_type.value)
                skipped.append(image_id)
                continue

            if image.is_optimized and not force:
                skipped.append(image_id)
                up_to_date += 1
                continue

            target = self.target_name(image)
            try:
                optimized_url = self.transformer.transform(image.original_url, target)
            except TransformationUnreachable as exc:
                logger.error("transformation_unreachable", job_id=job.id, image_id=image_id, error=exc.message)
                return Fatal(
                    reason=exc.message,
                    failed_image_ids=failed,
                    optimized_image_ids=optimized,
                    skipped_image_ids=skipped,
                )
            except TransformationFailure as exc:
                logger.warning("image_transformation_failed", job_id=job.id, image_id=image_id, error=exc.message)
                failed.append(image_id)
                continue

            self._store.update_image_optimized(image_id, optimized_url, self._clock())
            logger.info("image_optimized", job_id=job.id, image_id=image_id, target=target)
            optimized.append(image_id)

        if failed and not optimized and not up_to_date:
            return Fatal(reason=ALL_FAILED_REASON, failed_image_ids=failed, skipped_image_ids=skipped)
        if failed:
            return PartialSuccess(failed_image_ids=failed, optimized_image_ids=optimized, skipped_image_ids=skipped)
        return FullSuccess(optimized_image_ids=optimized, skipped_image_ids=skipped)

    def run_job(self, job_id: str, force: Optional[bool] = None) -> JobOutcome:
        """Take a QUEUED job through to a terminal state."""

        with job_log_context(job_id=job_id):
            job = self._manager.start_job(job_id)
            try:
                outcome = self.process_job(job, force=force)
            except Exception as exc:
                logger.exception("job_processing_crashed", error=str(exc))
                self._manager.fail_job(job_id, str(exc))
                raise

            if isinstance(outcome, Fatal):
                self._manager.fail_job(job_id, outcome.reason)
            else:
                if isinstance(outcome, PartialSuccess):
                    logger.warning("job_partially_failed", failed_image_ids=outcome.failed_image_ids)
                self._manager.complete_job(job_id)
            return outcome


image_optimizer = ImageOptimizer(vehicle_store, build_transformation_client(), job_manager)
