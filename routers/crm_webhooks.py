"""
Router for CRM change notifications.
The CRM calls it after file versions are created; uploads to Drive happen
after the response is sent.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException
from sqlalchemy.orm import Session
from typing import Optional
import hmac
import logging

from config import config
from database import get_db
from schemas.crm_events import FileVersionsAccepted, FileVersionsCreatedEvent
from services.upload_dispatcher import UploadDispatcher
from services.upload_trigger import (
    handle_file_versions_created,
    upsert_content_version,
    upsert_crm_record,
    upsert_document_link,
)

router = APIRouter()
logger = logging.getLogger("crm_drive.webhooks")


def verify_webhook_token(x_webhook_token: Optional[str] = Header(None, alias="X-Webhook-Token")) -> None:
    if not config.WEBHOOK_SECRET:
        return
    if not x_webhook_token or not hmac.compare_digest(x_webhook_token, config.WEBHOOK_SECRET):
        logger.warning("Invalid CRM webhook token")
        raise HTTPException(status_code=403, detail="Invalid webhook token")


@router.post(
    "/webhooks/crm/file-versions",
    status_code=202,
    response_model=FileVersionsAccepted,
    dependencies=[Depends(verify_webhook_token)],
)
def receive_file_versions(
    event: FileVersionsCreatedEvent,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """
    Mirrors the announced versions, and the links with their record types
    when sent, then queues one Drive upload per (version, non-user record) pair.
    """
    logger.info(f"Received file_version.created for {len(event.versions)} version(s)")

    versions = [
        upsert_content_version(
            db,
            version_id=payload.id,
            content_document_id=payload.content_document_id,
            title=payload.title,
            path_on_client=payload.path_on_client,
            file_extension=payload.file_extension,
            version_data=payload.decoded_data(),
        )
        for payload in event.versions
    ]
    for link in event.links:
        if link.linked_entity_type:
            upsert_crm_record(db, link.linked_entity_id, link.linked_entity_type, link.linked_entity_name)
        upsert_document_link(db, link.content_document_id, link.linked_entity_id)
    db.commit()

    dispatcher = UploadDispatcher(db, background_tasks=background_tasks)
    result = handle_file_versions_created(db, versions, dispatcher)

    return FileVersionsAccepted(dispatched=len(result.dispatched), skipped=result.skipped)
