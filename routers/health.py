"""
Health check endpoint for monitoring the database, Drive client and upload queue.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import datetime, timezone

from cache import cache_service
from config import config
from database import get_db
from services.upload_dispatcher import count_upload_jobs
from utils.structured_logging import StructuredLogger

router = APIRouter(tags=["health"])

health_logger = StructuredLogger(service="health", logger_name="crm_drive.health")


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Returns:
        - database_ok: Whether a trivial query succeeds
        - drive_mode: "mock" or "real"
        - drive_configured: Whether Drive credentials are present (always true in mock mode)
        - cache_enabled: Whether Redis caching is active
        - failed_uploads / pending_uploads: Upload job counts
        - status: healthy or degraded
    """
    now = datetime.now(timezone.utc)
    issues = []

    database_ok = True
    failed_uploads = None
    pending_uploads = None
    try:
        db.execute(text("SELECT 1"))
        failed_uploads = count_upload_jobs(db, "failed")
        pending_uploads = count_upload_jobs(db, "pending")
    except SQLAlchemyError as e:
        database_ok = False
        issues.append("Database unreachable")
        health_logger.error(action="health_check", message="Database check failed", error=e)

    drive_configured = config.USE_MOCK_DRIVE or bool(config.GOOGLE_SERVICE_ACCOUNT_JSON)
    if not drive_configured:
        issues.append("Drive credentials not configured (GOOGLE_SERVICE_ACCOUNT_JSON missing)")

    if failed_uploads:
        issues.append(f"{failed_uploads} failed upload job(s)")

    status = "healthy" if not issues else "degraded"
    if issues:
        health_logger.warning(action="health_check", status=status, message="; ".join(issues))

    response = {
        "service": "crm-drive-bridge",
        "status": status,
        "timestamp": now.isoformat(),
        "database_ok": database_ok,
        "drive_mode": "mock" if config.USE_MOCK_DRIVE else "real",
        "drive_configured": drive_configured,
        "cache_enabled": cache_service.enabled,
        "failed_uploads": failed_uploads,
        "pending_uploads": pending_uploads,
    }
    if issues:
        response["issues"] = issues
    return response
