# app/services/validators.py

from dataclasses import dataclass
from typing import Iterable, Optional

from app.core.config import settings
from app.core.constants import ALLOWED_FILE_TYPES, MAX_FILE_SIZE, REQUIRED_ECTS


# ------------------------------------------------------------
# REGISTRATION EMAIL
# ------------------------------------------------------------
def is_allowed_email(email: str, domains: Optional[Iterable[str]] = None) -> bool:
    email = (email or "").strip().lower()
    allowed = domains if domains is not None else settings.ALLOWED_EMAIL_DOMAINS
    return any(email.endswith(domain.lower()) for domain in allowed)


# ------------------------------------------------------------
# UPLOADS
# ------------------------------------------------------------
@dataclass(frozen=True)
class FileCheck:
    valid: bool
    error: Optional[str] = None


def check_pdf_file(content_type: Optional[str], size: int) -> FileCheck:
    """Local check run before any storage or database call."""
    if content_type not in ALLOWED_FILE_TYPES:
        return FileCheck(False, "Only PDF files are accepted.")
    if size > MAX_FILE_SIZE:
        return FileCheck(False, f"File must not exceed {MAX_FILE_SIZE // (1024 * 1024)} MB.")
    return FileCheck(True)


def format_file_size(size: int) -> str:
    if size == 0:
        return "0 B"
    units = ["B", "Ko", "Mo", "Go"]
    index = 0
    value = float(size)
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    value = round(value, 2)
    return f"{value:g} {units[index]}"


# ------------------------------------------------------------
# ECTS
# ------------------------------------------------------------
def ects_summary(courses: Iterable, required: int = REQUIRED_ECTS) -> dict:
    """Informational only: never blocks a submission."""
    total = sum(course.ects for course in courses)
    percent = round(total / required * 100, 1) if required else 0.0

    if total >= required:
        tier = "complete"
    elif total > 0:
        tier = "partial"
    else:
        tier = "empty"

    return {
        "total": total,
        "required": required,
        "percent": percent,
        "progress": min(percent, 100.0),
        "tier": tier,
    }


# ------------------------------------------------------------
# FILE LANES
# ------------------------------------------------------------
def file_lane(file, application) -> str:
    """Derived owner lane; anyone who is neither student nor major head is 'international'."""
    if file.uploader_id == application.student_id:
        return "student"
    if file.uploader_id == application.major_head_id:
        return "major_head"
    return "international"


def group_files_by_lane(files: Iterable, application) -> dict:
    lanes = {"student": [], "major_head": [], "international": []}
    for f in files:
        lanes[file_lane(f, application)].append(f)
    return lanes
