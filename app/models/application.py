# app/models/application.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy import Enum as PGEnum
from datetime import datetime
import uuid

from app.models.enums import ApplicationStatus


class Application(SQLModel, table=True):
    __tablename__ = "applications"
    __table_args__ = (
        # One dossier per student and academic year
        UniqueConstraint("student_id", "academic_year_id", name="applications_student_year_key"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(PG_UUID(as_uuid=True), primary_key=True)
    )

    student_id: uuid.UUID = Field(
        sa_column=Column(PG_UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    )

    major_head_id: uuid.UUID = Field(
        sa_column=Column(PG_UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    )

    academic_year_id: uuid.UUID = Field(
        sa_column=Column(PG_UUID(as_uuid=True), ForeignKey("academic_years.id"), nullable=False)
    )

    status: ApplicationStatus = Field(
        default=ApplicationStatus.Draft,
        sa_column=Column(
            PGEnum(
                ApplicationStatus,
                name="application_status",
                values_callable=lambda e: [m.value for m in e],
            ),
            nullable=False,
        )
    )

    university_name: str = Field(sa_column=Column(String, nullable=False))
    university_city: str = Field(sa_column=Column(String, nullable=False))
    university_country: str = Field(sa_column=Column(String, nullable=False))

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
