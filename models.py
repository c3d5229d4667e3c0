from sqlalchemy import Column, Integer, String, DateTime, LargeBinary, Text, UniqueConstraint
from sqlalchemy.sql import func
from database import Base


# --- CRM MIRROR MODELS ---
# These models map the CRM tables the bridge reads from. The CRM owns the
# rows; the webhook ingest upserts versions and links it is told about.


class CrmRecord(Base):
    """
    Any CRM business record (Account, Opportunity, Case...) or user.
    Users carry object_type "User".
    """
    __tablename__ = "crm_records"

    id = Column(String, primary_key=True)
    object_type = Column(String, index=True, nullable=False)
    name = Column(String, nullable=True)


class ContentVersion(Base):
    __tablename__ = "content_versions"

    id = Column(String, primary_key=True)
    content_document_id = Column(String, index=True, nullable=False)
    title = Column(String, nullable=False)
    path_on_client = Column(String, nullable=True)
    file_extension = Column(String, nullable=True)
    version_data = Column(LargeBinary, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ContentDocumentLink(Base):
    """Shares a document with a record (business record or user)."""
    __tablename__ = "content_document_links"

    id = Column(Integer, primary_key=True, index=True)
    content_document_id = Column(String, index=True, nullable=False)
    linked_entity_id = Column(String, index=True, nullable=False)


# --- BRIDGE MODELS ---


class DriveFileRecord(Base):
    """
    Pointer to a file pushed to Google Drive, displayed on the owning record.
    Created once after a successful upload, never updated. record_id is a
    plain reference so deleting the CRM record leaves these rows orphaned.
    """
    __tablename__ = "drive_file_records"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True)  # generated display name, e.g. GDF-000042
    file_name = Column(String, nullable=False)
    drive_file_id = Column(String, index=True, nullable=False)
    drive_link = Column(String, nullable=False)
    mime_type = Column(String, nullable=True)
    record_id = Column(String, index=True, nullable=False)
    content_version_id = Column(String, index=True, nullable=True)
    uploaded_on = Column(DateTime(timezone=True), server_default=func.now(), index=True)


class DriveFolderReservation(Base):
    """
    Create-if-absent guard for Drive folders. The worker that inserts the
    (parent_id, name) row owns the folder creation; folder_id stays NULL
    until that worker fills it in.
    """
    __tablename__ = "drive_folder_reservations"
    __table_args__ = (
        UniqueConstraint("parent_id", "name", name="uq_drive_folder_reservation_parent_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    parent_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    folder_id = Column(String, nullable=True)
    folder_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class UploadJob(Base):
    """One deferred upload of a file version to a record's Drive folder."""
    __tablename__ = "upload_jobs"

    id = Column(Integer, primary_key=True, index=True)
    content_version_id = Column(String, index=True, nullable=False)
    record_id = Column(String, index=True, nullable=False)
    status = Column(String, index=True, default="pending", nullable=False)  # pending, running, succeeded, failed
    attempts = Column(Integer, default=0, nullable=False)
    last_error = Column(Text, nullable=True)
    drive_file_record_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
