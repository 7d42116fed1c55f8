# app/services/course_service.py

from typing import Optional
from uuid import UUID

from loguru import logger

from app.core.exceptions import NotFoundError, PermissionDeniedError, PreconditionError
from app.models.course import Course
from app.models.enums import ApplicationStatus, CourseLevel, ProfileRole
from app.services import workflow
from app.services.application_service import load_application


def _ensure_student_owner(actor, application) -> None:
    workflow.ensure_access(actor, application)
    if ProfileRole(actor.role) != ProfileRole.Student:
        raise PermissionDeniedError("Only the student can edit the course list.")


def _ensure_editable(application) -> None:
    if not workflow.is_editable(application.status):
        raise PreconditionError(
            f"Courses cannot be changed while the application is '{ApplicationStatus(application.status).value}'."
        )


async def _load_course(gateway, application, course_id: UUID) -> Course:
    course = await gateway.get_course(course_id)
    if not course or course.application_id != application.id:
        raise NotFoundError("Course not found")
    return course


# ============================================================================
# STUDENT: ADD / DELETE
# ============================================================================
async def add_course(gateway, actor, application_id: UUID, data: dict) -> Course:
    application = await load_application(gateway, application_id)
    _ensure_student_owner(actor, application)
    _ensure_editable(application)

    if data["end_date"] < data["start_date"]:
        raise PreconditionError("End date cannot be before start date.")

    course = Course(
        application_id=application.id,
        title=data["title"].strip(),
        language=data["language"],
        description=data["description"],
        web_link=data["web_link"],
        level=CourseLevel(data["level"]),
        start_date=data["start_date"],
        end_date=data["end_date"],
        local_credits=data.get("local_credits"),
        ects=data["ects"],
        choice_reason=data["choice_reason"],
    )
    course = await gateway.insert_course(course)
    logger.info(f"Course {course.id} ({course.ects} ECTS) added to {application.id}")
    return course


async def delete_course(gateway, actor, application_id: UUID, course_id: UUID) -> None:
    application = await load_application(gateway, application_id)
    _ensure_student_owner(actor, application)
    _ensure_editable(application)

    course = await _load_course(gateway, application, course_id)
    if course.is_validated is True:
        raise PreconditionError("A validated course cannot be deleted.")

    await gateway.delete_course(course.id)
    logger.info(f"Course {course.id} removed from {application.id}")


# ============================================================================
# MAJOR HEAD: PER-COURSE REVIEW
# ============================================================================
async def set_course_validation(
    gateway,
    actor,
    application_id: UUID,
    course_id: UUID,
    is_validated: Optional[bool],
    rejection_reason: Optional[str] = None,
) -> Course:
    """
    True = validated, False = rejected (reason required), None = back to pending.
    """
    application = await load_application(gateway, application_id)
    workflow.ensure_access(actor, application)
    if ProfileRole(actor.role) != ProfileRole.MajorHead:
        raise PermissionDeniedError("Only the assigned major head can review courses.")
    if ApplicationStatus(application.status) != ApplicationStatus.Submitted:
        raise PreconditionError("Courses can only be reviewed while the application is submitted.")

    course = await _load_course(gateway, application, course_id)

    reason = (rejection_reason or "").strip() or None
    if is_validated is False and not reason:
        raise PreconditionError("A reason is required to reject a course.")
    if is_validated is not False:
        reason = None

    return await gateway.update_course_validation(course.id, is_validated, reason)
