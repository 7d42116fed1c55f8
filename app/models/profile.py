# app/models/profile.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy import Enum as PGEnum
from datetime import datetime
import uuid
from typing import Optional

from app.models.enums import ProfileRole


class Major(SQLModel, table=True):
    __tablename__ = "majors"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(PG_UUID(as_uuid=True), primary_key=True)
    )

    name: str = Field(sa_column=Column(String, nullable=False))
    code: str = Field(sa_column=Column(String, nullable=False, unique=True))


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(PG_UUID(as_uuid=True), primary_key=True)
    )

    email: str = Field(sa_column=Column(String, nullable=False, unique=True, index=True))
    full_name: str = Field(sa_column=Column(String, nullable=False))

    # Stored with the enum values ("student", "major_head", ...) like the UI sends them
    role: ProfileRole = Field(
        sa_column=Column(
            PGEnum(ProfileRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
            nullable=False,
        )
    )

    major_id: Optional[uuid.UUID] = Field(
        default=None,
        sa_column=Column(PG_UUID(as_uuid=True), ForeignKey("majors.id"), nullable=True)
    )

    password_hash: Optional[str] = Field(
        default=None,
        sa_column=Column(String, nullable=True)
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
