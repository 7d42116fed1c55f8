# app/models/document.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy import BigInteger, DateTime, ForeignKey, String
from datetime import datetime
import uuid
from typing import Optional


class ApplicationFile(SQLModel, table=True):
    """Metadata row for a PDF stored in the documents bucket."""

    __tablename__ = "files"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(PG_UUID(as_uuid=True), primary_key=True)
    )

    application_id: uuid.UUID = Field(
        sa_column=Column(PG_UUID(as_uuid=True), ForeignKey("applications.id"), nullable=False)
    )

    message_id: Optional[uuid.UUID] = Field(
        default=None,
        sa_column=Column(PG_UUID(as_uuid=True), ForeignKey("messages.id"), nullable=True)
    )

    uploader_id: uuid.UUID = Field(
        sa_column=Column(PG_UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    )

    file_name: str = Field(sa_column=Column(String, nullable=False))

    # storage key inside the bucket: "<application_id>/<millis>_<file_name>"
    file_path: str = Field(sa_column=Column(String, nullable=False))

    file_size: int = Field(sa_column=Column(BigInteger, nullable=False))

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
