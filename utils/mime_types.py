"""Fixed extension -> content type table used for Drive uploads."""

import os
from typing import Optional

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "txt": "text/plain",
    "csv": "text/csv",
    "html": "text/html",
    "xml": "application/xml",
    "json": "application/json",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "zip": "application/zip",
    "mp3": "audio/mpeg",
    "mp4": "video/mp4",
}


def extension_of(file_name: Optional[str]) -> Optional[str]:
    if not file_name:
        return None
    ext = os.path.splitext(file_name)[1]
    return ext[1:].lower() if ext else None


def mime_type_for(extension: Optional[str]) -> str:
    """Content type for an extension ("pdf", ".PDF"); unknown or empty -> octet-stream."""
    if not extension:
        return DEFAULT_MIME_TYPE
    return MIME_TYPES.get(extension.lower().lstrip("."), DEFAULT_MIME_TYPE)
