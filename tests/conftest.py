import os

# Before any project import: config is read once at import time
os.environ.setdefault("USE_MOCK_DRIVE", "true")
os.environ.setdefault("REDIS_CACHE_ENABLED", "false")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from services.google_drive_mock import GoogleDriveService
import models


@pytest.fixture
def session_factory(tmp_path):
    """File-backed SQLite so several sessions (and threads) see each other's commits."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def drive(tmp_path):
    return GoogleDriveService(db_file=str(tmp_path / "mock_drive_db.json"))


def add_content_version(db, version_id, document_id, title, extension=None, data=b"file-bytes", path=None):
    version = models.ContentVersion(
        id=version_id,
        content_document_id=document_id,
        title=title,
        file_extension=extension,
        path_on_client=path,
        version_data=data,
    )
    db.add(version)
    db.commit()
    return version


def add_link(db, document_id, entity_id):
    db.add(models.ContentDocumentLink(content_document_id=document_id, linked_entity_id=entity_id))
    db.commit()


def add_record(db, record_id, object_type, name=None):
    db.add(models.CrmRecord(id=record_id, object_type=object_type, name=name))
    db.commit()
