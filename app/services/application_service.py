# app/services/application_service.py

import time
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from loguru import logger

from app.core.constants import SIGNED_URL_TTL_SECONDS
from app.core.exceptions import (
    DuplicateDossierError,
    NotFoundError,
    PartialFailureError,
    PermissionDeniedError,
    PersistenceError,
    PreconditionError,
)
from app.models.application import Application
from app.models.document import ApplicationFile
from app.models.enums import ApplicationStatus, ProfileRole
from app.models.message import Message
from app.services import workflow
from app.services.validators import check_pdf_file, ects_summary, group_files_by_lane
from app.services.workflow import WebhookEvent, WorkflowAction

REQUIRED_CREATE_FIELDS = ("major_head_id", "university_name", "university_city", "university_country")


@dataclass
class TransitionResult:
    application: Application
    previous_status: ApplicationStatus
    event: Optional[WebhookEvent] = None
    message: Optional[Message] = None
    payload: Optional[dict] = None
    completed_steps: list = field(default_factory=list)


# ============================================================================
# LOOKUPS
# ============================================================================
async def load_application(gateway, application_id: UUID) -> Application:
    application = await gateway.get_application(application_id)
    if not application:
        raise NotFoundError("Application not found")
    return application


async def get_application_for(gateway, actor, application_id: UUID) -> Application:
    application = await load_application(gateway, application_id)
    workflow.ensure_access(actor, application)
    return application


async def list_visible_applications(gateway, actor, status: Optional[ApplicationStatus] = None):
    """Student: own dossiers. Major head: assigned dossiers. International: all."""
    role = ProfileRole(actor.role)

    if role == ProfileRole.Student:
        return await gateway.list_applications(student_id=actor.id, status=status)
    if role == ProfileRole.MajorHead:
        return await gateway.list_applications(major_head_id=actor.id, status=status)
    return await gateway.list_applications(status=status)


# ============================================================================
# CREATE DOSSIER
# ============================================================================
async def create_application(gateway, actor, payload: dict) -> Application:
    workflow.ensure_can_create(actor)

    missing = [name for name in REQUIRED_CREATE_FIELDS if not str(payload.get(name) or "").strip()]
    if missing:
        raise PreconditionError(f"Missing required fields: {', '.join(missing)}")

    year = await gateway.get_current_academic_year()
    if not year:
        raise PreconditionError("No active academic year.")

    major_head_id = UUID(str(payload["major_head_id"]))
    major_head = await gateway.get_profile(major_head_id)
    if not major_head or ProfileRole(major_head.role) != ProfileRole.MajorHead:
        raise PreconditionError("Selected reviewer is not a major head.")

    # Fast path; the unique constraint still guards concurrent creations
    if await gateway.find_application(actor.id, year.id):
        raise DuplicateDossierError()

    application = Application(
        student_id=actor.id,
        major_head_id=major_head.id,
        academic_year_id=year.id,
        status=ApplicationStatus.Draft,
        university_name=payload["university_name"].strip(),
        university_city=payload["university_city"].strip(),
        university_country=payload["university_country"].strip(),
    )
    application = await gateway.insert_application(application)

    logger.info(f"Dossier {application.id} created by student {actor.id} for year {year.year}")
    return application


# ============================================================================
# STATUS TRANSITIONS
# ============================================================================
async def _pending_reason_message(gateway, application: Application, actor, content: str) -> Optional[Message]:
    """
    Message left behind by an earlier attempt whose status update failed:
    same sender, same text, written after the last status change.
    """
    messages = await gateway.list_messages(application.id)
    if not messages:
        return None
    last = messages[-1]
    if last.sender_id == actor.id and last.content == content and last.created_at >= application.updated_at:
        return last
    return None


async def apply_transition(
    gateway,
    actor,
    application_id: UUID,
    action: WorkflowAction,
    reason: Optional[str] = None,
    notifier=None,
) -> TransitionResult:
    application = await load_application(gateway, application_id)
    transition = workflow.resolve_transition(actor, application, action, reason)
    previous = ApplicationStatus(application.status)

    if transition.action == WorkflowAction.Submit:
        files = await gateway.list_files(application.id)
        if not files:
            raise PreconditionError("Upload at least one document before submitting.")

    completed: list[str] = []
    message = None

    # Step 1 (revision / rejection): reason goes on the thread first
    if transition.requires_reason:
        content = workflow.reason_message(transition.action, reason)
        message = await _pending_reason_message(gateway, application, actor, content)
        if message is None:
            message = await gateway.insert_message(
                Message(application_id=application.id, sender_id=actor.id, content=content)
            )
        completed.append("message_insert")

    # Step 2: the status itself. No rollback of step 1 on failure.
    try:
        updated = await gateway.update_application_status(application.id, transition.target)
    except Exception as e:
        if completed:
            logger.error(f"{transition.action.value} on {application.id} failed after {completed}: {e}")
            raise PartialFailureError("status_update", completed) from e
        raise
    completed.append("status_update")

    logger.info(
        f"Application {application.id}: {previous.value} -> {ApplicationStatus(updated.status).value} "
        f"({transition.action.value} by {ProfileRole(actor.role).value} {actor.id})"
    )

    payload = None
    if notifier is not None and transition.event is not None:
        payload = await notifier.emit(
            transition.event,
            updated,
            sender_id=actor.id,
            message_preview=reason.strip() if message is not None else None,
        )

    return TransitionResult(
        application=updated,
        previous_status=previous,
        event=transition.event,
        message=message,
        payload=payload,
        completed_steps=completed,
    )


async def submit_application(gateway, actor, application_id: UUID, notifier=None) -> TransitionResult:
    return await apply_transition(gateway, actor, application_id, WorkflowAction.Submit, notifier=notifier)


async def validate_major(gateway, actor, application_id: UUID, notifier=None) -> TransitionResult:
    return await apply_transition(gateway, actor, application_id, WorkflowAction.ValidateMajor, notifier=notifier)


async def request_revision(gateway, actor, application_id: UUID, reason: str, notifier=None) -> TransitionResult:
    return await apply_transition(
        gateway, actor, application_id, WorkflowAction.RequestRevision, reason=reason, notifier=notifier
    )


async def validate_final(gateway, actor, application_id: UUID, notifier=None) -> TransitionResult:
    return await apply_transition(gateway, actor, application_id, WorkflowAction.ValidateFinal, notifier=notifier)


async def reject_application(gateway, actor, application_id: UUID, reason: str, notifier=None) -> TransitionResult:
    return await apply_transition(
        gateway, actor, application_id, WorkflowAction.Reject, reason=reason, notifier=notifier
    )


# ============================================================================
# FILES
# ============================================================================
def build_storage_path(application_id: UUID, file_name: str) -> str:
    return f"{application_id}/{int(time.time() * 1000)}_{file_name}"


async def upload_file(
    gateway,
    storage,
    actor,
    application_id: UUID,
    file_name: str,
    content_type: Optional[str],
    content: bytes,
) -> ApplicationFile:
    # Local check first: nothing is fetched or written for an invalid file
    check = check_pdf_file(content_type, len(content))
    if not check.valid:
        raise PreconditionError(check.error)

    application = await load_application(gateway, application_id)
    workflow.resolve_transition(actor, application, WorkflowAction.UploadFile)

    path = build_storage_path(application.id, file_name)
    try:
        await storage.upload(path, content, content_type)
    except Exception as e:
        logger.error(f"Storage upload failed for {path}: {e}")
        raise PersistenceError("Failed to upload document to storage.") from e

    try:
        record = await gateway.insert_file(
            ApplicationFile(
                application_id=application.id,
                uploader_id=actor.id,
                file_name=file_name,
                file_path=path,
                file_size=len(content),
            )
        )
    except Exception as e:
        # Blob stays in the bucket; no compensation
        logger.error(f"File row insert failed after upload of {path}: {e}")
        raise PartialFailureError("metadata_insert", ["storage_upload"]) from e

    logger.info(f"File {record.id} ({record.file_size} bytes) attached to {application.id}")
    return record


async def _load_file(gateway, application: Application, file_id: UUID) -> ApplicationFile:
    record = await gateway.get_file(file_id)
    if not record or record.application_id != application.id:
        raise NotFoundError("File not found")
    return record


async def delete_file(gateway, storage, actor, application_id: UUID, file_id: UUID) -> None:
    application = await load_application(gateway, application_id)
    workflow.resolve_transition(actor, application, WorkflowAction.DeleteFile)

    record = await _load_file(gateway, application, file_id)
    if record.uploader_id != actor.id:
        raise PermissionDeniedError("Only the uploader can delete this file.")

    try:
        await storage.remove(record.file_path)
    except Exception as e:
        logger.error(f"Storage removal failed for {record.file_path}: {e}")
        raise PersistenceError("Failed to delete the file from storage.") from e

    try:
        await gateway.delete_file(record.id)
    except Exception as e:
        logger.error(f"File row delete failed after storage removal of {record.file_path}: {e}")
        raise PartialFailureError("metadata_delete", ["storage_remove"]) from e

    logger.info(f"File {record.id} removed from {application.id}")


async def file_download_url(gateway, storage, actor, application_id: UUID, file_id: UUID) -> str:
    application = await get_application_for(gateway, actor, application_id)
    record = await _load_file(gateway, application, file_id)

    try:
        url = await storage.create_signed_url(record.file_path, SIGNED_URL_TTL_SECONDS)
    except Exception as e:
        logger.error(f"Could not sign {record.file_path}: {e}")
        raise PersistenceError("Could not create a download link.") from e
    if not url:
        raise PersistenceError("Could not create a download link.")
    return url


# ============================================================================
# MESSAGES
# ============================================================================
async def post_message(gateway, actor, application_id: UUID, content: str, notifier=None) -> Message:
    application = await get_application_for(gateway, actor, application_id)

    content = (content or "").strip()
    if not content:
        raise PreconditionError("Message cannot be empty.")

    message = await gateway.insert_message(
        Message(application_id=application.id, sender_id=actor.id, content=content)
    )

    if notifier is not None:
        await notifier.emit(WebhookEvent.NewMessage, application, sender_id=actor.id, message_preview=content[:200])

    return message


# ============================================================================
# DETAIL VIEW
# ============================================================================
async def get_application_detail(gateway, actor, application_id: UUID) -> dict:
    application = await get_application_for(gateway, actor, application_id)

    # Sequential on purpose: one round trip at a time
    student = await gateway.get_profile(application.student_id)
    major_head = await gateway.get_profile(application.major_head_id)
    courses = await gateway.list_courses(application.id)
    messages = await gateway.list_messages(application.id)
    files = await gateway.list_files(application.id)

    display = workflow.default_status_display()
    editable = workflow.is_editable(application.status)

    return {
        "application": application,
        "student": student,
        "major_head": major_head,
        "courses": list(courses),
        "messages": list(messages),
        "files": group_files_by_lane(files, application),
        "ects": ects_summary(courses),
        "timeline": workflow.build_timeline(application.status),
        "badge": display.badge(application.status),
        "allowed_actions": [a.value for a in workflow.allowed_actions(actor, application)],
        "can_edit": editable and ProfileRole(actor.role) == ProfileRole.Student,
        "can_submit": editable and ProfileRole(actor.role) == ProfileRole.Student and len(files) > 0,
    }
