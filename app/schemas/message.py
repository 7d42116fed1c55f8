from pydantic import BaseModel, computed_field
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.services.validators import format_file_size


class MessageCreate(BaseModel):
    content: str


class MessageRead(BaseModel):
    id: UUID
    application_id: UUID
    sender_id: UUID
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


# ------------------------------------------------------------
# FILES
# ------------------------------------------------------------
class FileRead(BaseModel):
    id: UUID
    application_id: UUID
    message_id: Optional[UUID] = None
    uploader_id: UUID
    file_name: str
    file_path: str
    file_size: int
    created_at: datetime

    @computed_field
    @property
    def size_label(self) -> str:
        return format_file_size(self.file_size)

    class Config:
        from_attributes = True


class FileLanes(BaseModel):
    student: list[FileRead]
    major_head: list[FileRead]
    international: list[FileRead]


class DownloadLink(BaseModel):
    url: str
    expires_in: int
