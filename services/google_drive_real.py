import io
import logging
from typing import Dict, Any, Optional
from googleapiclient.http import MediaIoBaseUpload
from config import config
from services.google_auth import GoogleAuthService
from utils.retry import retry_on_transient_errors

SCOPES = ['https://www.googleapis.com/auth/drive']
FOLDER_MIME_TYPE = 'application/vnd.google-apps.folder'
FILE_FIELDS = 'id, name, mimeType, parents, size, createdTime, webViewLink'

logger = logging.getLogger("crm_drive.drive")


def _escape_query_value(value: str) -> str:
    # Drive query strings are single-quoted; backslash and quote must be escaped
    return value.replace("\\", "\\\\").replace("'", "\\'")


def default_file_link(file_id: str) -> str:
    return f"https://drive.google.com/file/d/{file_id}/view"


class GoogleDriveRealService:
    """
    Google Drive v3 client. Folder lookups and creation go through the API
    endpoint; file bytes go through the upload endpoint. Each endpoint has
    its own authenticated client.
    """

    def __init__(self):
        self.auth_service = GoogleAuthService(scopes=SCOPES, api_endpoint=config.DRIVE_API_ENDPOINT)
        self.upload_auth_service = GoogleAuthService(scopes=SCOPES, api_endpoint=config.DRIVE_UPLOAD_ENDPOINT)
        self.service = self.auth_service.get_service('drive', 'v3')
        self.upload_service = self.upload_auth_service.get_service('drive', 'v3')

    def _check_auth(self):
        if not self.service or not self.upload_service:
            raise RuntimeError("Drive Service configuration error: GOOGLE_SERVICE_ACCOUNT_JSON is missing or invalid.")

    def _execute(self, request):
        return retry_on_transient_errors(request.execute, max_retries=config.DRIVE_API_MAX_RETRIES)

    def find_folder(self, name: str, parent_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Looks up a non-trashed folder by exact name under parent_id.
        Returns the oldest match (duplicates may exist from earlier races) or None.
        """
        self._check_auth()

        target_parent = parent_id or 'root'
        query = (
            f"name = '{_escape_query_value(name)}' "
            f"and '{_escape_query_value(target_parent)}' in parents "
            f"and mimeType = '{FOLDER_MIME_TYPE}' "
            "and trashed = false"
        )

        results = self._execute(self.service.files().list(
            q=query,
            pageSize=10,
            orderBy='createdTime',
            fields="files(id, name, mimeType, parents, webViewLink, createdTime)",
            supportsAllDrives=True,
            includeItemsFromAllDrives=True
        ))
        files = results.get('files', [])
        return files[0] if files else None

    def create_folder(self, name: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        self._check_auth()

        file_metadata = {
            'name': name,
            'mimeType': FOLDER_MIME_TYPE
        }
        if parent_id:
            file_metadata['parents'] = [parent_id]

        folder = self._execute(self.service.files().create(
            body=file_metadata,
            fields='id, name, mimeType, parents, createdTime, webViewLink',
            supportsAllDrives=True
        ))
        logger.info("Created Drive folder", extra={"folder_id": folder.get("id"), "parent_id": parent_id})
        return folder

    def upload_file(self, file_content: bytes, name: str, mime_type: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Multipart upload: a JSON metadata part (name, parents) followed by the
        media part sent with mime_type as its content type.
        """
        self._check_auth()

        file_metadata = {'name': name}
        if parent_id:
            file_metadata['parents'] = [parent_id]

        media = MediaIoBaseUpload(io.BytesIO(file_content), mimetype=mime_type, resumable=False)

        uploaded = self._execute(self.upload_service.files().create(
            body=file_metadata,
            media_body=media,
            fields=FILE_FIELDS,
            supportsAllDrives=True
        ))
        if uploaded.get('id') and not uploaded.get('webViewLink'):
            uploaded['webViewLink'] = default_file_link(uploaded['id'])
        return uploaded
