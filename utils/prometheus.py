"""Prometheus metrics for the upload path."""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

UPLOADS_TOTAL = Counter(
    "crm_drive_uploads_total",
    "Deferred uploads by outcome",
    ["status"],
)

UPLOAD_DURATION_SECONDS = Histogram(
    "crm_drive_upload_duration_seconds",
    "Wall time of one deferred upload, folder resolution included",
)

FOLDERS_CREATED_TOTAL = Counter(
    "crm_drive_folders_created_total",
    "Folders created in Google Drive",
)

__all__ = [
    "CONTENT_TYPE_LATEST",
    "REGISTRY",
    "generate_latest",
    "UPLOADS_TOTAL",
    "UPLOAD_DURATION_SECONDS",
    "FOLDERS_CREATED_TOTAL",
]
