"""
Deferred execution of uploads. Each (file version, record) pair gets an
upload_jobs row and runs later on its own DB session; the caller never
waits for it and never sees its outcome.
"""
import logging
import time
from typing import Optional

from sqlalchemy.orm import Session

import models
from database import SessionLocal
from services.upload_handler import DriveUploadHandler, get_drive_service
from utils.prometheus import UPLOADS_TOTAL, UPLOAD_DURATION_SECONDS
from utils.structured_logging import upload_logger

logger = logging.getLogger("crm_drive.upload_dispatcher")


def run_upload_job(job_id: int, drive_service=None) -> None:
    """
    Standalone function to be run in background tasks or scheduler jobs.
    Creates its own DB session and Drive Service. Failures are recorded on
    the job and logged, never raised.
    """
    db = SessionLocal()
    try:
        job = db.query(models.UploadJob).filter_by(id=job_id).first()
        if not job:
            logger.warning(f"Upload job {job_id} not found")
            return

        job.status = "running"
        job.attempts = (job.attempts or 0) + 1
        db.commit()

        started = time.perf_counter()
        try:
            handler = DriveUploadHandler(db, drive_service or get_drive_service())
            record = handler.handle(job.content_version_id, job.record_id)
        except Exception as e:
            db.rollback()
            job.status = "failed"
            job.last_error = f"{type(e).__name__}: {e}"
            db.commit()
            UPLOADS_TOTAL.labels(status="failed").inc()
            upload_logger.error(
                action="upload",
                message=f"Upload job {job_id} failed",
                error=e,
                content_version_id=job.content_version_id,
                record_id=job.record_id,
                job_id=job_id,
                attempts=job.attempts,
            )
            return
        finally:
            UPLOAD_DURATION_SECONDS.observe(time.perf_counter() - started)

        job.status = "succeeded"
        job.last_error = None
        job.drive_file_record_id = record.id
        db.commit()
        UPLOADS_TOTAL.labels(status="succeeded").inc()
    finally:
        db.close()


class UploadDispatcher:
    """
    Queues uploads. With background_tasks (FastAPI BackgroundTasks) the job
    runs after the response is sent; without, it runs inline, which is what
    scheduler jobs want since they are already off the request path.
    """

    def __init__(self, db: Session, background_tasks=None):
        self.db = db
        self.background_tasks = background_tasks

    def dispatch(self, content_version_id: str, record_id: str) -> models.UploadJob:
        job = models.UploadJob(
            content_version_id=content_version_id,
            record_id=record_id,
            status="pending",
            attempts=0,
        )
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)

        upload_logger.info(
            action="dispatch",
            status="queued",
            message=f"Queued upload job {job.id}",
            content_version_id=content_version_id,
            record_id=record_id,
            job_id=job.id,
        )
        self.schedule(job.id)
        return job

    def schedule(self, job_id: int) -> None:
        if self.background_tasks is not None:
            self.background_tasks.add_task(run_upload_job, job_id)
        else:
            run_upload_job(job_id)

    def redispatch(self, job: models.UploadJob) -> models.UploadJob:
        """Puts an existing job back in the queue (manual or scheduled retry)."""
        job.status = "pending"
        self.db.commit()
        upload_logger.info(
            action="redispatch",
            status="queued",
            message=f"Re-queued upload job {job.id}",
            content_version_id=job.content_version_id,
            record_id=job.record_id,
            job_id=job.id,
            attempts=job.attempts,
        )
        self.schedule(job.id)
        return job


def count_upload_jobs(db: Session, status: Optional[str] = None) -> int:
    query = db.query(models.UploadJob)
    if status:
        query = query.filter(models.UploadJob.status == status)
    return query.count()
