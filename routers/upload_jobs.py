from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Literal, Optional

import models
from auth.dependencies import require_admin, require_manager_or_above
from auth.jwt import UserContext
from database import get_db
from schemas.drive_files import UploadJobList, UploadJobOut
from services.upload_dispatcher import UploadDispatcher

router = APIRouter()


@router.get("/api/upload-jobs", response_model=UploadJobList)
def list_upload_jobs(
    status: Optional[Literal["pending", "running", "succeeded", "failed"]] = Query(None),
    record_id: Optional[str] = Query(None),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_manager_or_above),
):
    query = db.query(models.UploadJob)
    if status:
        query = query.filter(models.UploadJob.status == status)
    if record_id:
        query = query.filter(models.UploadJob.record_id == record_id)

    total = query.count()
    jobs = query.order_by(models.UploadJob.id.desc()).limit(limit).all()
    return UploadJobList(jobs=[UploadJobOut.model_validate(j) for j in jobs], total=total)


@router.post("/api/upload-jobs/{job_id}/retry", response_model=UploadJobOut, status_code=202)
def retry_upload_job(
    job_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_admin),
):
    """Re-queue a failed upload. A retry after a partial failure may leave duplicate rows."""
    job = db.query(models.UploadJob).filter_by(id=job_id).first()
    if not job:
        raise HTTPException(status_code=404, detail="Upload job not found")
    if job.status != "failed":
        raise HTTPException(status_code=409, detail=f"Only failed jobs can be retried (status: {job.status})")

    UploadDispatcher(db, background_tasks=background_tasks).redispatch(job)
    db.refresh(job)
    return UploadJobOut.model_validate(job)
