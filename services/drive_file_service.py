from typing import List

from sqlalchemy.orm import Session

import models
from cache import cache_service

DISPLAY_NAME_PREFIX = "GDF-"


def drive_files_cache_key(record_id: str) -> str:
    return f"drive_files:{record_id}"


def display_name_for(record_id: int) -> str:
    return f"{DISPLAY_NAME_PREFIX}{record_id:06d}"


class DriveFileService:
    """Persistence for DriveFileRecord rows: find, insert, per-record listing."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, **filters) -> List[models.DriveFileRecord]:
        return self.db.query(models.DriveFileRecord).filter_by(**filters).all()

    def insert(self, record: models.DriveFileRecord) -> int:
        """
        Stores a new pointer, assigns its generated display name and drops
        the cached listing of the owning record.
        """
        self.db.add(record)
        self.db.flush()
        record.name = display_name_for(record.id)
        self.db.commit()
        self.db.refresh(record)

        cache_service.delete_key(drive_files_cache_key(record.record_id))
        return record.id

    def list_for_record(self, record_id: str) -> List[models.DriveFileRecord]:
        """All pointers for a record, newest upload first."""
        return (
            self.db.query(models.DriveFileRecord)
            .filter(models.DriveFileRecord.record_id == record_id)
            .order_by(models.DriveFileRecord.uploaded_on.desc(), models.DriveFileRecord.id.desc())
            .all()
        )
