from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import or_, and_
from sqlalchemy.orm import Session
from datetime import datetime, timedelta, timezone
from database import SessionLocal
import models
from services.upload_dispatcher import UploadDispatcher
import logging
from config import config

logger = logging.getLogger("crm_drive.scheduler")

class SchedulerService:
    def __init__(self):
        self.scheduler = AsyncIOScheduler()

    def start(self):
        """
        Start the scheduler and add jobs.
        """
        if not self.scheduler.running:
            if config.UPLOAD_RETRY_ENABLED:
                self.scheduler.add_job(
                    self.retry_uploads_job,
                    IntervalTrigger(minutes=config.UPLOAD_RETRY_INTERVAL_MINUTES),
                    id="retry_uploads",
                    replace_existing=True,
                    max_instances=1,
                )
            else:
                logger.info("Upload retries disabled (UPLOAD_RETRY_ENABLED=false)")

            self.scheduler.start()
            logger.info("Scheduler started.")

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped.")

    def retry_uploads_job(self):
        """
        Job wrapper to handle database session.
        """
        logger.info("Running upload retry job...")
        db = SessionLocal()
        try:
            count = self.retry_uploads(db)
            logger.info(f"Upload retry job re-ran {count} job(s)")
        except Exception as e:
            logger.error(f"Error in upload retry job: {e}", exc_info=True)
        finally:
            db.close()

    def retry_uploads(self, db: Session, now: datetime = None) -> int:
        """
        Re-runs failed jobs that still have attempts left, pending jobs that
        never started (process restarted before the background task ran) and
        running jobs that stopped reporting (worker died mid-upload). A stale
        running job with no attempts left is marked failed instead.
        """
        now = now or datetime.now(timezone.utc)
        stale_before = now - timedelta(minutes=config.UPLOAD_STALE_MINUTES)
        max_attempts = config.UPLOAD_RETRY_MAX_ATTEMPTS

        jobs = db.query(models.UploadJob).filter(
            or_(
                and_(
                    models.UploadJob.status == "failed",
                    models.UploadJob.attempts < max_attempts,
                ),
                and_(
                    models.UploadJob.status == "pending",
                    models.UploadJob.created_at <= stale_before,
                ),
                and_(
                    models.UploadJob.status == "running",
                    models.UploadJob.updated_at <= stale_before,
                ),
            )
        ).order_by(models.UploadJob.id).all()

        logger.info(f"Found {len(jobs)} upload job(s) to retry.")

        dispatcher = UploadDispatcher(db)
        retried = 0
        for job in jobs:
            if job.status == "running" and (job.attempts or 0) >= max_attempts:
                job.status = "failed"
                job.last_error = "Interrupted while running; no attempts left"
                db.commit()
                logger.warning(f"Upload job {job.id} was interrupted with no attempts left, marked failed")
                continue
            dispatcher.redispatch(job)
            retried += 1
        return retried

scheduler_service = SchedulerService()
