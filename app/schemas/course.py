from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import date, datetime

from app.models.enums import CourseLevel


# ============================================================
# STUDENT → course proposed for the host university
# ============================================================
class CourseCreate(BaseModel):
    title: str = Field(min_length=1)
    language: str
    description: str
    web_link: str
    level: CourseLevel
    start_date: date
    end_date: date
    local_credits: Optional[int] = Field(default=None, ge=0)
    ects: int = Field(ge=1, le=30)
    choice_reason: str


# ============================================================
# MAJOR HEAD → per-course review
# ============================================================
class CourseValidationUpdate(BaseModel):
    # True = validated, False = rejected, None = pending
    is_validated: Optional[bool] = None
    rejection_reason: Optional[str] = None


class CourseRead(BaseModel):
    id: UUID
    application_id: UUID
    title: str
    language: str
    description: str
    web_link: str
    level: CourseLevel
    start_date: date
    end_date: date
    local_credits: Optional[int]
    ects: int
    choice_reason: str
    is_validated: Optional[bool]
    rejection_reason: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
