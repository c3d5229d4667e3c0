"""
Admin endpoints over upload jobs and the health check.
"""

import os

os.environ["USE_MOCK_DRIVE"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import models
from database import Base, get_db
from main import app
from services import upload_dispatcher
from services.google_drive_mock import GoogleDriveService

DB_PATH = "./test_upload_jobs_api.db"
MOCK_JSON = "./test_upload_jobs_api_drive.json"
engine = create_engine(f"sqlite:///{DB_PATH}", connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN = {"x-user-id": "admin-1", "x-user-role": "admin"}
MANAGER = {"x-user-id": "manager-1", "x-user-role": "manager"}
VIEWER = {"x-user-id": "user-1", "x-user-role": "authenticated"}


def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


def setup_module(module):
    for path in (DB_PATH, MOCK_JSON):
        if os.path.exists(path):
            os.remove(path)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    db.add(models.CrmRecord(id="ACC-001", object_type="Account"))
    db.add(models.ContentVersion(
        id="068-1", content_document_id="069-1", title="invoice",
        file_extension="pdf", path_on_client="invoice.pdf", version_data=b"%PDF",
    ))
    db.add_all([
        models.UploadJob(id=1, content_version_id="068-1", record_id="ACC-001", status="failed",
                         attempts=1, last_error="RuntimeError: HttpError 503"),
        models.UploadJob(id=2, content_version_id="068-1", record_id="ACC-001", status="succeeded", attempts=1),
        models.UploadJob(id=3, content_version_id="068-1", record_id="OPP-001", status="pending", attempts=0),
    ])
    db.commit()
    db.close()


def teardown_module(module):
    app.dependency_overrides.clear()
    engine.dispose()
    for path in (DB_PATH, MOCK_JSON):
        if os.path.exists(path):
            os.remove(path)


@pytest.fixture
def client(monkeypatch):
    drive = GoogleDriveService(db_file=MOCK_JSON)
    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(upload_dispatcher, "SessionLocal", TestingSessionLocal)
    monkeypatch.setattr(upload_dispatcher, "get_drive_service", lambda: drive)
    monkeypatch.setattr("config.config.DRIVE_ROOT_FOLDER_ID", "root-folder")
    return TestClient(app)


def test_list_jobs_requires_manager(client):
    assert client.get("/api/upload-jobs").status_code == 401
    response = client.get("/api/upload-jobs", headers=VIEWER)
    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"


def test_list_jobs_with_filters(client):
    response = client.get("/api/upload-jobs", headers=MANAGER)
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert [j["id"] for j in body["jobs"]] == [3, 2, 1]

    body = client.get("/api/upload-jobs?status=failed", headers=MANAGER).json()
    assert body["total"] == 1
    assert body["jobs"][0]["last_error"] == "RuntimeError: HttpError 503"

    body = client.get("/api/upload-jobs?record_id=OPP-001", headers=MANAGER).json()
    assert [j["id"] for j in body["jobs"]] == [3]


def test_list_jobs_rejects_unknown_status(client):
    response = client.get("/api/upload-jobs?status=lost", headers=MANAGER)
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_health_reports_failed_jobs(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "degraded"
    assert body["database_ok"] is True
    assert body["drive_mode"] == "mock"
    assert body["failed_uploads"] == 1
    assert body["pending_uploads"] == 1
    assert "1 failed upload job(s)" in body["issues"]


def test_retry_requires_admin(client):
    assert client.post("/api/upload-jobs/1/retry", headers=MANAGER).status_code == 403


def test_retry_unknown_job(client):
    response = client.post("/api/upload-jobs/999/retry", headers=ADMIN)
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_retry_only_failed_jobs(client):
    response = client.post("/api/upload-jobs/2/retry", headers=ADMIN)
    assert response.status_code == 409
    assert response.json()["code"] == "conflict"


def test_retry_failed_job(client):
    response = client.post("/api/upload-jobs/1/retry", headers=ADMIN)

    assert response.status_code == 202
    assert response.json()["id"] == 1

    db = TestingSessionLocal()
    try:
        job = db.query(models.UploadJob).filter_by(id=1).one()
        assert job.status == "succeeded"
        assert job.attempts == 2
        record = db.query(models.DriveFileRecord).filter_by(id=job.drive_file_record_id).one()
        assert record.file_name == "invoice.pdf"
        assert record.record_id == "ACC-001"
    finally:
        db.close()


def test_health_after_retry(client):
    body = client.get("/health").json()
    assert body["failed_uploads"] == 0
    assert body["status"] == "healthy"


def test_metrics_endpoint(client):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "crm_drive_uploads_total" in response.text
