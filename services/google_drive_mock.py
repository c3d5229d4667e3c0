import json
import os
import threading
import uuid
import datetime
from typing import List, Optional, Dict, Any

from config import config

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BASE_DIR)
DB_FILE = os.path.join(PROJECT_ROOT, "mock_drive_db.json")

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# Shared by every instance: background uploads run on threadpool workers
_DB_LOCK = threading.RLock()


class GoogleDriveService:
    """
    Drive stand-in persisted to a JSON file. Mirrors the subset of
    GoogleDriveRealService the upload path uses. list_files and get_file
    exist only here so tests can inspect what was written.
    """

    def __init__(self, db_file: Optional[str] = None):
        self.db_file = db_file or config.MOCK_DRIVE_DB_FILE or DB_FILE
        with _DB_LOCK:
            self._load_db()

    def _empty_db(self) -> Dict[str, Any]:
        return {
            "files": {},
            "folders": {
                "root": {"id": "root", "name": "My Drive", "mimeType": FOLDER_MIME_TYPE, "parents": []}
            },
        }

    def _load_db(self):
        if os.path.exists(self.db_file):
            with open(self.db_file, "r") as f:
                try:
                    self.db = json.load(f)
                except json.JSONDecodeError:
                    self.db = self._empty_db()
        else:
            self.db = self._empty_db()
            self._save_db()

    def _save_db(self):
        with open(self.db_file, "w") as f:
            json.dump(self.db, f, indent=2)

    def find_folder(self, name: str, parent_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        parent_id = parent_id or "root"
        with _DB_LOCK:
            self._load_db()
            matches = [
                f for f in self.db["folders"].values()
                if f.get("name") == name and parent_id in f.get("parents", [])
            ]
        matches.sort(key=lambda f: f.get("createdTime", ""))
        return matches[0] if matches else None

    def create_folder(self, name: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        parent_id = parent_id or "root"
        folder_id = str(uuid.uuid4())
        folder = {
            "id": folder_id,
            "name": name,
            "mimeType": FOLDER_MIME_TYPE,
            "parents": [parent_id],
            "createdTime": datetime.datetime.now().isoformat(),
            "webViewLink": f"https://mock-drive.google.com/drive/folders/{folder_id}"
        }
        with _DB_LOCK:
            self._load_db()
            self.db["folders"][folder_id] = folder
            self._save_db()
        return folder

    def upload_file(self, file_content: bytes, name: str, mime_type: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        parent_id = parent_id or "root"
        file_id = str(uuid.uuid4())
        file_meta = {
            "id": file_id,
            "name": name,
            "mimeType": mime_type,
            "parents": [parent_id],
            "size": len(file_content),
            "createdTime": datetime.datetime.now().isoformat(),
            "webViewLink": f"https://mock-drive.google.com/file/d/{file_id}/view"
        }
        with _DB_LOCK:
            self._load_db()
            self.db["files"][file_id] = file_meta
            self._save_db()
        return file_meta

    # Inspection helpers, not part of the Drive client interface.
    def list_files(self, folder_id: str = "root") -> List[Dict[str, Any]]:
        with _DB_LOCK:
            self._load_db()
            items = [f for f in self.db["folders"].values() if folder_id in f.get("parents", [])]
            items.extend(f for f in self.db["files"].values() if folder_id in f.get("parents", []))
        return items

    def get_file(self, file_id: str) -> Dict[str, Any]:
        with _DB_LOCK:
            self._load_db()
            item = self.db["folders"].get(file_id) or self.db["files"].get(file_id)
        if not item:
            raise LookupError(f"File {file_id} not found")
        return item
