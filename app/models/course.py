# app/models/course.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy import Enum as PGEnum
from datetime import date, datetime
import uuid
from typing import Optional

from app.models.enums import CourseLevel


class Course(SQLModel, table=True):
    __tablename__ = "courses"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(PG_UUID(as_uuid=True), primary_key=True)
    )

    application_id: uuid.UUID = Field(
        sa_column=Column(PG_UUID(as_uuid=True), ForeignKey("applications.id"), nullable=False)
    )

    title: str = Field(sa_column=Column(String, nullable=False))
    language: str = Field(sa_column=Column(String, nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    web_link: str = Field(sa_column=Column(String, nullable=False))

    level: CourseLevel = Field(
        sa_column=Column(PGEnum(CourseLevel, name="course_level"), nullable=False)
    )

    start_date: date = Field(sa_column=Column(Date, nullable=False))
    end_date: date = Field(sa_column=Column(Date, nullable=False))

    local_credits: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, nullable=True)
    )
    ects: int = Field(sa_column=Column(Integer, nullable=False))

    choice_reason: str = Field(sa_column=Column(Text, nullable=False))

    # None = pending review
    is_validated: Optional[bool] = Field(
        default=None,
        sa_column=Column(Boolean, nullable=True)
    )
    rejection_reason: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True)
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
