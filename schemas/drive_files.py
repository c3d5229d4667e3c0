from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict


class DriveFileRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None
    file_name: str
    drive_link: str
    uploaded_on: Optional[datetime] = None


class UploadJobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content_version_id: str
    record_id: str
    status: Literal["pending", "running", "succeeded", "failed"]
    attempts: int
    last_error: Optional[str] = None
    drive_file_record_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UploadJobList(BaseModel):
    jobs: List[UploadJobOut]
    total: int
