import logging
import time
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models
from config import config
from utils.prometheus import FOLDERS_CREATED_TOTAL

logger = logging.getLogger("crm_drive.folders")

POLL_INTERVAL_SECONDS = 0.2


class FolderResolver:
    """
    Resolve-or-create for Drive folders keyed by (parent_id, name).

    The drive_folder_reservations row is claimed before the folder is created
    in Drive, so concurrent workers sharing this database create each folder
    once. Folders created outside the service are picked up by the Drive
    search and recorded on first use.
    """

    def __init__(self, db: Session, drive_service, wait_seconds: Optional[float] = None):
        self.db = db
        self.drive_service = drive_service
        self.wait_seconds = config.FOLDER_RESERVATION_WAIT_SECONDS if wait_seconds is None else wait_seconds

    def _reservation(self, name: str, parent_id: str) -> Optional[models.DriveFolderReservation]:
        return self.db.query(models.DriveFolderReservation).filter_by(parent_id=parent_id, name=name).first()

    def _as_folder(self, reservation: models.DriveFolderReservation) -> Dict[str, Any]:
        return {
            "id": reservation.folder_id,
            "name": reservation.name,
            "parents": [reservation.parent_id],
            "webViewLink": reservation.folder_url,
        }

    def _claim(self, name: str, parent_id: str) -> Optional[models.DriveFolderReservation]:
        """Insert the reservation row; None if another worker already holds it."""
        reservation = models.DriveFolderReservation(parent_id=parent_id, name=name)
        try:
            self.db.add(reservation)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return None
        return reservation

    def _fill(self, reservation: models.DriveFolderReservation, folder: Dict[str, Any]) -> None:
        reservation.folder_id = folder["id"]
        reservation.folder_url = folder.get("webViewLink")
        self.db.commit()

    def _wait_for_owner(self, name: str, parent_id: str) -> Optional[models.DriveFolderReservation]:
        deadline = time.monotonic() + self.wait_seconds
        while True:
            # End the current transaction so the next read sees the owner's commit
            self.db.rollback()
            reservation = self._reservation(name, parent_id)
            if reservation is None or reservation.folder_id:
                return reservation
            if time.monotonic() >= deadline:
                return reservation
            time.sleep(POLL_INTERVAL_SECONDS)

    def resolve_or_create(self, name: str, parent_id: Optional[str] = None) -> Tuple[Dict[str, Any], bool]:
        """
        Returns (folder, created). created is True only when this call made
        the folder in Drive.
        """
        name = name.strip()
        parent_id = parent_id or "root"

        # 1. Already resolved by an earlier upload
        reservation = self._reservation(name, parent_id)
        if reservation and reservation.folder_id:
            return self._as_folder(reservation), False

        # 2. Folder exists in Drive but not in the reservation table
        if reservation is None:
            existing = self.drive_service.find_folder(name, parent_id)
            if existing:
                claimed = self._claim(name, parent_id)
                if claimed:
                    self._fill(claimed, existing)
                return existing, False

            # 3. Claim the creation
            claimed = self._claim(name, parent_id)
            if claimed:
                return self._create(claimed, name, parent_id), True

        # 4. Another worker holds the reservation
        logger.info("Waiting for concurrent folder creation", extra={"folder_name": name, "parent_id": parent_id})
        reservation = self._wait_for_owner(name, parent_id)
        if reservation and reservation.folder_id:
            return self._as_folder(reservation), False

        # Owner gave up or is too slow: fall back to plain search-then-create
        existing = self.drive_service.find_folder(name, parent_id)
        if existing:
            if reservation is not None:
                self._fill(reservation, existing)
            return existing, False

        logger.warning(
            "Folder reservation not fulfilled, creating folder without it",
            extra={"folder_name": name, "parent_id": parent_id},
        )
        folder = self.drive_service.create_folder(name, parent_id)
        FOLDERS_CREATED_TOTAL.inc()
        if reservation is not None:
            self._fill(reservation, folder)
        return folder, True

    def _create(self, reservation: models.DriveFolderReservation, name: str, parent_id: str) -> Dict[str, Any]:
        try:
            folder = self.drive_service.create_folder(name, parent_id)
        except Exception:
            # Release the claim so the next upload can try again
            self.db.delete(reservation)
            self.db.commit()
            raise
        FOLDERS_CREATED_TOTAL.inc()
        self._fill(reservation, folder)
        logger.info("Created folder", extra={"folder_name": name, "parent_id": parent_id, "folder_id": folder["id"]})
        return folder

    def ensure_record_folder(self, object_type: str, record_id: str, root_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Ensures '<root>/<object_type>/<record_id>' exists and returns the
        record folder.
        """
        root_id = root_id or config.DRIVE_ROOT_FOLDER_ID or "root"
        type_folder, _ = self.resolve_or_create(object_type, root_id)
        record_folder, _ = self.resolve_or_create(record_id, type_folder["id"])
        return record_folder
