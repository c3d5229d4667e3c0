"""
GoogleDriveRealService against a mocked googleapiclient resource, plus
optional integration tests against the real Drive API.

To run the integration tests:
1. Set GOOGLE_SERVICE_ACCOUNT_JSON (and optionally DRIVE_ROOT_FOLDER_ID)
2. Run pytest with the integration marker: pytest -v -m integration
"""

import datetime
from unittest.mock import MagicMock, patch

import pytest

from config import config
from services.google_drive_real import FOLDER_MIME_TYPE, GoogleDriveRealService


@pytest.fixture
def clients():
    """One mocked discovery client per endpoint: metadata API and upload."""
    api, upload = MagicMock(name="api"), MagicMock(name="upload")
    by_endpoint = {"https://api.test": api, "https://upload.test": upload}

    def fake_auth(scopes, api_endpoint=None):
        auth = MagicMock()
        auth.get_service.return_value = by_endpoint[api_endpoint]
        return auth

    with patch("services.google_drive_real.GoogleAuthService", side_effect=fake_auth), \
            patch.object(config, "DRIVE_API_ENDPOINT", "https://api.test"), \
            patch.object(config, "DRIVE_UPLOAD_ENDPOINT", "https://upload.test"):
        yield api, upload


def test_find_folder_query(clients):
    api, _ = clients
    api.files.return_value.list.return_value.execute.return_value = {
        "files": [{"id": "f-1", "name": "Account"}, {"id": "f-2", "name": "Account"}]
    }

    folder = GoogleDriveRealService().find_folder("Account", "root-1")

    assert folder["id"] == "f-1"
    kwargs = api.files.return_value.list.call_args.kwargs
    assert kwargs["q"] == (
        "name = 'Account' and 'root-1' in parents "
        f"and mimeType = '{FOLDER_MIME_TYPE}' and trashed = false"
    )
    assert kwargs["orderBy"] == "createdTime"


def test_find_folder_escapes_quotes(clients):
    api, _ = clients
    api.files.return_value.list.return_value.execute.return_value = {"files": []}

    assert GoogleDriveRealService().find_folder("O'Brien", "root-1") is None
    assert "name = 'O\\'Brien'" in api.files.return_value.list.call_args.kwargs["q"]


def test_create_folder(clients):
    api, _ = clients
    api.files.return_value.create.return_value.execute.return_value = {"id": "f-3", "name": "ACC-001"}

    folder = GoogleDriveRealService().create_folder("ACC-001", "f-1")

    assert folder["id"] == "f-3"
    body = api.files.return_value.create.call_args.kwargs["body"]
    assert body == {"name": "ACC-001", "mimeType": FOLDER_MIME_TYPE, "parents": ["f-1"]}


def test_upload_goes_through_upload_client(clients):
    api, upload = clients
    upload.files.return_value.create.return_value.execute.return_value = {
        "id": "file-1", "name": "invoice.pdf", "webViewLink": "https://drive.google.com/file/d/file-1/view?usp=drivesdk"
    }

    with patch("services.google_drive_real.MediaIoBaseUpload") as media_cls:
        uploaded = GoogleDriveRealService().upload_file(b"%PDF", "invoice.pdf", "application/pdf", "f-3")

    assert uploaded["webViewLink"].startswith("https://drive.google.com/file/d/file-1/view")
    assert media_cls.call_args.kwargs == {"mimetype": "application/pdf", "resumable": False}
    create_kwargs = upload.files.return_value.create.call_args.kwargs
    assert create_kwargs["body"] == {"name": "invoice.pdf", "parents": ["f-3"]}
    assert create_kwargs["media_body"] is media_cls.return_value
    api.files.return_value.create.assert_not_called()


def test_upload_fills_missing_link(clients):
    _, upload = clients
    upload.files.return_value.create.return_value.execute.return_value = {"id": "file-2", "name": "a.txt"}

    with patch("services.google_drive_real.MediaIoBaseUpload"):
        uploaded = GoogleDriveRealService().upload_file(b"a", "a.txt", "text/plain", "f-3")

    assert uploaded["webViewLink"] == "https://drive.google.com/file/d/file-2/view"


def test_errors_propagate(clients):
    api, _ = clients
    api.files.return_value.create.return_value.execute.side_effect = RuntimeError("HttpError 403 when requesting")

    with pytest.raises(RuntimeError):
        GoogleDriveRealService().create_folder("Account", "root-1")


def test_missing_credentials():
    with patch("services.google_drive_real.GoogleAuthService") as auth_cls:
        auth_cls.return_value.get_service.return_value = None
        service = GoogleDriveRealService()

    with pytest.raises(RuntimeError, match="GOOGLE_SERVICE_ACCOUNT_JSON"):
        service.find_folder("Account", "root-1")


def test_client_interface_matches_mock():
    """Both clients expose exactly the calls the upload path makes."""
    from services.google_drive_mock import GoogleDriveService

    def public(cls):
        return {name for name in vars(cls) if not name.startswith("_") and callable(getattr(cls, name))}

    assert public(GoogleDriveRealService) == {"find_folder", "create_folder", "upload_file"}
    assert public(GoogleDriveRealService) <= public(GoogleDriveService)
    assert public(GoogleDriveService) - public(GoogleDriveRealService) == {"list_files", "get_file"}


@pytest.mark.integration
class TestRealDriveIntegration:
    """Runs against the actual Google Drive API; skipped without credentials."""

    @pytest.fixture(autouse=True)
    def setup(self):
        if not config.GOOGLE_SERVICE_ACCOUNT_JSON:
            pytest.skip("GOOGLE_SERVICE_ACCOUNT_JSON not configured - skipping real Drive integration test")
        self.service = GoogleDriveRealService()

    def test_create_find_and_upload(self):
        parent_id = config.DRIVE_ROOT_FOLDER_ID
        folder_name = f"Test Folder {datetime.datetime.now().isoformat()}"

        folder = self.service.create_folder(folder_name, parent_id)
        assert folder["mimeType"] == FOLDER_MIME_TYPE
        assert self.service.find_folder(folder_name, parent_id)["id"] == folder["id"]

        uploaded = self.service.upload_file(b"integration test", "test.txt", "text/plain", folder["id"])
        assert uploaded["id"]
        assert uploaded["webViewLink"]
