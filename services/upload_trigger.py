"""
Entry point for file-version-created notifications: find the business
records each new version is shared with and queue one upload per pair.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

import models
from services.crm_service import CrmService

logger = logging.getLogger("crm_drive.upload_trigger")


@dataclass
class TriggerResult:
    dispatched: List[Tuple[str, str]] = field(default_factory=list)  # (content_version_id, record_id)
    skipped: List[str] = field(default_factory=list)  # versions without a non-user link


def handle_file_versions_created(db: Session, versions: Iterable[models.ContentVersion], dispatcher) -> TriggerResult:
    """
    For every version, dispatches one deferred upload per linked record that
    is not a user. Versions linked only to users (or not linked at all) are
    skipped without error. Links to records whose object type was never
    mirrored cannot be placed in a folder and are skipped with a warning.
    """
    versions = list(versions)
    crm = CrmService(db)
    links = crm.links_by_document(v.content_document_id for v in versions)
    types = crm.record_types(
        record_id for linked in links.values() for record_id in linked
    )

    result = TriggerResult()
    for version in versions:
        owners = []
        for record_id in links.get(version.content_document_id, []):
            object_type = types.get(record_id)
            if crm.is_user(record_id, object_type):
                continue
            if object_type is None:
                logger.warning(
                    "Linked record has no known object type, skipping",
                    extra={"content_version_id": version.id, "record_id": record_id},
                )
                continue
            owners.append(record_id)
        if not owners:
            logger.info(
                "No owning record for file version, skipping",
                extra={"content_version_id": version.id, "content_document_id": version.content_document_id},
            )
            result.skipped.append(version.id)
            continue

        for record_id in owners:
            dispatcher.dispatch(version.id, record_id)
            result.dispatched.append((version.id, record_id))

    return result


def upsert_content_version(
    db: Session,
    version_id: str,
    content_document_id: str,
    title: str,
    path_on_client: Optional[str] = None,
    file_extension: Optional[str] = None,
    version_data: Optional[bytes] = None,
) -> models.ContentVersion:
    """
    Mirrors a version announced by the CRM. Versions are immutable, so an
    existing row only gains content it did not have yet.
    """
    version = db.query(models.ContentVersion).filter_by(id=version_id).first()
    if version is None:
        version = models.ContentVersion(
            id=version_id,
            content_document_id=content_document_id,
            title=title,
            path_on_client=path_on_client,
            file_extension=file_extension,
            version_data=version_data,
        )
        db.add(version)
        db.flush()
    elif version.version_data is None and version_data is not None:
        version.version_data = version_data
    return version


def upsert_document_link(db: Session, content_document_id: str, linked_entity_id: str) -> models.ContentDocumentLink:
    link = db.query(models.ContentDocumentLink).filter_by(
        content_document_id=content_document_id,
        linked_entity_id=linked_entity_id,
    ).first()
    if link is None:
        link = models.ContentDocumentLink(
            content_document_id=content_document_id,
            linked_entity_id=linked_entity_id,
        )
        db.add(link)
        db.flush()
    return link


def upsert_crm_record(db: Session, record_id: str, object_type: str, name: Optional[str] = None) -> models.CrmRecord:
    """Mirrors a linked record announced alongside the file versions."""
    record = db.query(models.CrmRecord).filter_by(id=record_id).first()
    if record is None:
        record = models.CrmRecord(id=record_id, object_type=object_type, name=name)
        db.add(record)
        db.flush()
    else:
        record.object_type = object_type
        if name:
            record.name = name
    return record
