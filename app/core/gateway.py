# app/core/gateway.py

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import (
    DuplicateDossierError,
    DuplicateEmailError,
    PersistenceError,
)
from app.models.academic import AcademicYear
from app.models.application import Application
from app.models.course import Course
from app.models.document import ApplicationFile
from app.models.enums import ApplicationStatus, ProfileRole
from app.models.message import Message
from app.models.notification import Notification
from app.models.profile import Major, Profile


class PersistenceGateway:
    """
    CRUD handle over one AsyncSession.

    Every write is committed on its own: multi-step operations in the
    services layer are sequences of independent round trips, not one
    transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------
    # internals
    # ------------------------------------------------------------
    async def _commit(self, obj, what: str):
        self.session.add(obj)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to write {what}: {e}")
            raise PersistenceError(f"Failed to save {what}.") from e
        await self.session.refresh(obj)
        return obj

    async def _delete(self, model, obj_id: UUID, what: str) -> None:
        obj = await self.session.get(model, obj_id)
        if obj is None:
            return
        try:
            await self.session.delete(obj)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to delete {what} {obj_id}: {e}")
            raise PersistenceError(f"Failed to delete {what}.") from e

    # ------------------------------------------------------------
    # PROFILES / REFERENCE DATA
    # ------------------------------------------------------------
    async def get_profile(self, profile_id: UUID) -> Optional[Profile]:
        return await self.session.get(Profile, profile_id)

    async def get_profile_by_email(self, email: str) -> Optional[Profile]:
        result = await self.session.execute(select(Profile).where(Profile.email == email.lower()))
        return result.scalar_one_or_none()

    async def list_profiles(
        self,
        role: Optional[ProfileRole] = None,
        major_id: Optional[UUID] = None,
    ) -> Sequence[Profile]:
        query = select(Profile).order_by(Profile.full_name)
        if role is not None:
            query = query.where(Profile.role == role)
        if major_id is not None:
            query = query.where(Profile.major_id == major_id)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def insert_profile(self, profile: Profile) -> Profile:
        self.session.add(profile)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateEmailError() from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("Failed to save profile.") from e
        await self.session.refresh(profile)
        return profile

    async def list_majors(self) -> Sequence[Major]:
        result = await self.session.execute(select(Major).order_by(Major.name))
        return result.scalars().all()

    async def get_major(self, major_id: UUID) -> Optional[Major]:
        return await self.session.get(Major, major_id)

    async def get_major_by_code(self, code: str) -> Optional[Major]:
        result = await self.session.execute(select(Major).where(Major.code == code))
        return result.scalar_one_or_none()

    async def insert_major(self, major: Major) -> Major:
        return await self._commit(major, "major")

    async def get_current_academic_year(self) -> Optional[AcademicYear]:
        result = await self.session.execute(
            select(AcademicYear)
            .where(AcademicYear.is_current == True)  # noqa: E712
            .order_by(AcademicYear.created_at.desc())
        )
        return result.scalars().first()

    async def get_academic_year(self, year: str) -> Optional[AcademicYear]:
        result = await self.session.execute(select(AcademicYear).where(AcademicYear.year == year))
        return result.scalar_one_or_none()

    async def set_current_academic_year(self, year_id: UUID) -> AcademicYear:
        result = await self.session.execute(select(AcademicYear))
        target = None
        for year in result.scalars().all():
            year.is_current = year.id == year_id
            self.session.add(year)
            if year.is_current:
                target = year
        if target is None:
            raise PersistenceError("Academic year not found.")
        return await self._commit(target, "academic year")

    async def insert_academic_year(self, year: AcademicYear) -> AcademicYear:
        return await self._commit(year, "academic year")

    # ------------------------------------------------------------
    # APPLICATIONS
    # ------------------------------------------------------------
    async def get_application(self, application_id: UUID) -> Optional[Application]:
        return await self.session.get(Application, application_id)

    async def find_application(self, student_id: UUID, academic_year_id: UUID) -> Optional[Application]:
        result = await self.session.execute(
            select(Application).where(
                (Application.student_id == student_id)
                & (Application.academic_year_id == academic_year_id)
            )
        )
        return result.scalar_one_or_none()

    async def list_applications(
        self,
        student_id: Optional[UUID] = None,
        major_head_id: Optional[UUID] = None,
        status: Optional[ApplicationStatus] = None,
    ) -> Sequence[Application]:
        query = select(Application).order_by(Application.updated_at.desc())
        if student_id is not None:
            query = query.where(Application.student_id == student_id)
        if major_head_id is not None:
            query = query.where(Application.major_head_id == major_head_id)
        if status is not None:
            query = query.where(Application.status == status)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def insert_application(self, application: Application) -> Application:
        self.session.add(application)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            # (student_id, academic_year_id) unique constraint
            raise DuplicateDossierError() from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("Failed to create the application.") from e
        await self.session.refresh(application)
        return application

    async def update_application_status(self, application_id: UUID, status: ApplicationStatus) -> Application:
        application = await self.session.get(Application, application_id)
        if application is None:
            raise PersistenceError("Application disappeared before its status could be updated.")
        application.status = status
        application.updated_at = datetime.utcnow()
        return await self._commit(application, "application status")

    # ------------------------------------------------------------
    # COURSES
    # ------------------------------------------------------------
    async def list_courses(self, application_id: UUID) -> Sequence[Course]:
        result = await self.session.execute(
            select(Course)
            .where(Course.application_id == application_id)
            .order_by(Course.created_at.asc())
        )
        return result.scalars().all()

    async def get_course(self, course_id: UUID) -> Optional[Course]:
        return await self.session.get(Course, course_id)

    async def insert_course(self, course: Course) -> Course:
        return await self._commit(course, "course")

    async def update_course_validation(
        self,
        course_id: UUID,
        is_validated: Optional[bool],
        rejection_reason: Optional[str],
    ) -> Course:
        course = await self.session.get(Course, course_id)
        if course is None:
            raise PersistenceError("Course disappeared before it could be updated.")
        course.is_validated = is_validated
        course.rejection_reason = rejection_reason
        return await self._commit(course, "course")

    async def delete_course(self, course_id: UUID) -> None:
        await self._delete(Course, course_id, "course")

    # ------------------------------------------------------------
    # MESSAGES
    # ------------------------------------------------------------
    async def list_messages(self, application_id: UUID) -> Sequence[Message]:
        result = await self.session.execute(
            select(Message)
            .where(Message.application_id == application_id)
            .order_by(Message.created_at.asc())
        )
        return result.scalars().all()

    async def insert_message(self, message: Message) -> Message:
        return await self._commit(message, "message")

    # ------------------------------------------------------------
    # FILES
    # ------------------------------------------------------------
    async def list_files(self, application_id: UUID) -> Sequence[ApplicationFile]:
        result = await self.session.execute(
            select(ApplicationFile)
            .where(ApplicationFile.application_id == application_id)
            .order_by(ApplicationFile.created_at.desc())
        )
        return result.scalars().all()

    async def get_file(self, file_id: UUID) -> Optional[ApplicationFile]:
        return await self.session.get(ApplicationFile, file_id)

    async def insert_file(self, file: ApplicationFile) -> ApplicationFile:
        return await self._commit(file, "file metadata")

    async def delete_file(self, file_id: UUID) -> None:
        await self._delete(ApplicationFile, file_id, "file metadata")

    # ------------------------------------------------------------
    # NOTIFICATIONS
    # ------------------------------------------------------------
    async def insert_notification(self, notification: Notification) -> Notification:
        return await self._commit(notification, "notification")

    async def list_notifications(self, user_id: UUID) -> Sequence[Notification]:
        result = await self.session.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
        )
        return result.scalars().all()

    async def get_notification(self, notification_id: UUID) -> Optional[Notification]:
        return await self.session.get(Notification, notification_id)

    async def mark_notification_read(self, notification_id: UUID) -> Notification:
        notification = await self.session.get(Notification, notification_id)
        if notification is None:
            raise PersistenceError("Notification not found.")
        notification.is_read = True
        return await self._commit(notification, "notification")

    async def delete_notification(self, notification_id: UUID) -> None:
        await self._delete(Notification, notification_id, "notification")
