from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.models.enums import ApplicationStatus
from app.schemas.auth import ProfileSummary
from app.schemas.course import CourseRead
from app.schemas.message import FileLanes, MessageRead


# ============================================================
# STUDENT → new dossier for the current academic year
# ============================================================
class ApplicationCreate(BaseModel):
    major_head_id: UUID
    university_name: str
    university_city: str
    university_country: str


# ============================================================
# REVIEWER → revision request / rejection
# ============================================================
class ReasonRequest(BaseModel):
    reason: str


# ============================================================
# APPLICATION READ
# ============================================================
class ApplicationRead(BaseModel):
    id: UUID
    student_id: UUID
    major_head_id: UUID
    academic_year_id: UUID
    status: ApplicationStatus
    university_name: str
    university_city: str
    university_country: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StatusBadge(BaseModel):
    status: ApplicationStatus
    label: str
    color: str


class TransitionResponse(BaseModel):
    application: ApplicationRead
    previous_status: ApplicationStatus
    event: Optional[str] = None
    message: Optional[MessageRead] = None


# ============================================================
# DETAIL VIEW
# ============================================================
class TimelineStep(BaseModel):
    status: ApplicationStatus
    label: str
    completed: bool
    current: bool


class Timeline(BaseModel):
    status: ApplicationStatus
    rank: int
    is_rejected: bool
    is_revision: bool
    steps: list[TimelineStep]


class EctsSummary(BaseModel):
    total: int
    required: int
    percent: float
    progress: float
    tier: str


class ApplicationDetail(BaseModel):
    application: ApplicationRead
    student: Optional[ProfileSummary] = None
    major_head: Optional[ProfileSummary] = None
    courses: list[CourseRead]
    messages: list[MessageRead]
    files: FileLanes
    ects: EctsSummary
    timeline: Timeline
    badge: StatusBadge
    allowed_actions: list[str]
    can_edit: bool
    can_submit: bool


# ============================================================
# DASHBOARD LIST
# ============================================================
class DashboardItem(BaseModel):
    application: ApplicationRead
    student: Optional[ProfileSummary] = None
    major_head: Optional[ProfileSummary] = None
    badge: StatusBadge


class DashboardResponse(BaseModel):
    total: int
    counts: dict[str, int]
    items: list[DashboardItem]


# ============================================================
# INTERNATIONAL STATISTICS
# ============================================================
class StatusCount(BaseModel):
    status: ApplicationStatus
    count: int


class MajorCount(BaseModel):
    major: str
    count: int


class UniversityCount(BaseModel):
    university: str
    count: int


class ApplicationStats(BaseModel):
    total_applications: int
    total_students: int
    validation_rate: int
    status_distribution: list[StatusCount]
    major_distribution: list[MajorCount]
    top_universities: list[UniversityCount]
