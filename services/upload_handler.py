import os
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

import models
from config import config
from services.crm_service import CrmService
from services.drive_file_service import DriveFileService
from services.folder_service import FolderResolver
from services.google_drive_mock import GoogleDriveService
from services.google_drive_real import GoogleDriveRealService
from utils.mime_types import extension_of, mime_type_for
from utils.structured_logging import upload_logger

logger = logging.getLogger("crm_drive.upload_handler")


# Factory for Drive Service
def get_drive_service():
    if config.USE_MOCK_DRIVE:
        return GoogleDriveService()
    else:
        return GoogleDriveRealService()


class DriveUploadError(Exception):
    """Drive accepted the upload but did not return an id and link."""


def upload_file_name(version: models.ContentVersion) -> str:
    """
    Name the file keeps in Drive: the client path's base name, else the title
    with the version's extension appended when it is missing.
    """
    if version.path_on_client:
        base = os.path.basename(version.path_on_client.replace("\\", "/"))
        if base:
            return base
    title = version.title
    ext = version.file_extension
    if ext and extension_of(title) != ext.lower().lstrip("."):
        return f"{title}.{ext.lstrip('.')}"
    return title


class DriveUploadHandler:
    """
    Pushes one CRM file version into '<root>/<ObjectType>/<RecordId>/' and
    records the resulting pointer. Drive errors propagate to the caller.
    """

    def __init__(self, db: Session, drive_service=None, folder_resolver: Optional[FolderResolver] = None):
        self.db = db
        self.drive_service = drive_service or get_drive_service()
        self.crm = CrmService(db)
        self.folders = folder_resolver or FolderResolver(db, self.drive_service)
        self.files = DriveFileService(db)

    def handle(self, content_version_id: str, record_id: str) -> models.DriveFileRecord:
        # 1. File metadata and content
        version = self.crm.get_content_version(content_version_id)
        if not version:
            raise ValueError(f"Content version {content_version_id} not found")
        if version.version_data is None:
            raise ValueError(f"Content version {content_version_id} has no content")

        file_name = upload_file_name(version)

        # 2. Content type from the extension
        mime_type = mime_type_for(version.file_extension or extension_of(file_name))

        # 3-4. '<ObjectType>/<RecordId>' folder path
        object_type = self.crm.resolve_object_type(record_id)
        record_folder = self.folders.ensure_record_folder(object_type, record_id)

        # 5. Multipart upload into the record folder
        uploaded = self.drive_service.upload_file(
            file_content=version.version_data,
            name=file_name,
            mime_type=mime_type,
            parent_id=record_folder["id"],
        )
        drive_file_id = uploaded.get("id")
        drive_link = uploaded.get("webViewLink")
        if not drive_file_id or not drive_link:
            raise DriveUploadError(f"Drive returned no id/link for {file_name}")

        upload_logger.info(
            action="upload",
            message=f"Uploaded {file_name} to {object_type}/{record_id}",
            content_version_id=content_version_id,
            record_id=record_id,
            drive_file_id=drive_file_id,
            mime_type=mime_type,
        )

        # 6. Metadata pointer
        record = models.DriveFileRecord(
            file_name=file_name,
            drive_file_id=drive_file_id,
            drive_link=drive_link,
            mime_type=mime_type,
            record_id=record_id,
            content_version_id=content_version_id,
            uploaded_on=datetime.now(timezone.utc),
        )
        self.files.insert(record)
        return record
