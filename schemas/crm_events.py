import base64
import binascii
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class FileVersionPayload(BaseModel):
    id: str = Field(..., min_length=1)
    content_document_id: str = Field(..., min_length=1)
    title: str
    path_on_client: Optional[str] = None
    file_extension: Optional[str] = None
    # base64-encoded file bytes; omitted when the version is already mirrored
    version_data: Optional[str] = None

    @field_validator("version_data")
    @classmethod
    def _check_base64(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("version_data must be base64 encoded")
        return value

    def decoded_data(self) -> Optional[bytes]:
        return base64.b64decode(self.version_data) if self.version_data is not None else None


class DocumentLinkPayload(BaseModel):
    content_document_id: str = Field(..., min_length=1)
    linked_entity_id: str = Field(..., min_length=1)
    # Object type of the linked record ("Account", "User"...), mirrored into crm_records
    linked_entity_type: Optional[str] = Field(None, min_length=1)
    linked_entity_name: Optional[str] = None


class FileVersionsCreatedEvent(BaseModel):
    event: Literal["file_version.created"] = "file_version.created"
    versions: List[FileVersionPayload] = Field(..., min_length=1)
    links: List[DocumentLinkPayload] = Field(default_factory=list)


class FileVersionsAccepted(BaseModel):
    status: Literal["accepted"] = "accepted"
    dispatched: int
    skipped: List[str] = []
