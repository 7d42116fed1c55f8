from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Request, Response, UploadFile, status

from app.api.deps import get_current_user, get_gateway, get_notifier, get_storage
from app.core.constants import MAX_FILE_SIZE, SIGNED_URL_TTL_SECONDS
from app.core.gateway import PersistenceGateway
from app.core.rate_limiter import limiter
from app.core.rbac import require_international, require_major_head, require_student
from app.core.storage import DocumentStorage
from app.models.enums import ApplicationStatus
from app.models.profile import Profile
from app.schemas.application import (
    ApplicationCreate,
    ApplicationDetail,
    ApplicationRead,
    ApplicationStats,
    DashboardItem,
    DashboardResponse,
    ReasonRequest,
    TransitionResponse,
)
from app.schemas.course import CourseCreate, CourseRead, CourseValidationUpdate
from app.schemas.message import DownloadLink, FileRead, MessageCreate, MessageRead
from app.services import application_service, course_service, stats_service
from app.services.notification_service import Notifier
from app.services.workflow import default_status_display

router = APIRouter(
    prefix="/api/applications",
    tags=["Applications"]
)


def _transition_response(result) -> TransitionResponse:
    return TransitionResponse(
        application=ApplicationRead.model_validate(result.application),
        previous_status=result.previous_status,
        event=result.event.value if result.event else None,
        message=MessageRead.model_validate(result.message) if result.message else None,
    )


# ------------------------------------------------------------
# CREATE DOSSIER
# ------------------------------------------------------------
@router.post("", response_model=ApplicationRead, status_code=status.HTTP_201_CREATED)
async def create_application(
    payload: ApplicationCreate,
    current_user: Profile = Depends(require_student),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    return await application_service.create_application(gateway, current_user, payload.model_dump())


# ------------------------------------------------------------
# ROLE-SCOPED DASHBOARD
# ------------------------------------------------------------
@router.get("", response_model=DashboardResponse)
async def list_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    sort: str = "updated_desc",
    current_user: Profile = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    data = await stats_service.dashboard(gateway, current_user, status=status_filter, search=search, sort_by=sort)
    display = default_status_display()

    return DashboardResponse(
        total=data["total"],
        counts=data["counts"],
        items=[
            DashboardItem.model_validate(
                {
                    "application": row.application,
                    "student": row.student,
                    "major_head": row.major_head,
                    "badge": display.badge(row.application.status),
                },
                from_attributes=True,
            )
            for row in data["items"]
        ],
    )


# ------------------------------------------------------------
# INTERNATIONAL STATISTICS
# ------------------------------------------------------------
@router.get("/stats", response_model=ApplicationStats)
async def application_stats(
    current_user: Profile = Depends(require_international),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    return await stats_service.international_statistics(gateway, current_user)


# ------------------------------------------------------------
# DETAIL
# ------------------------------------------------------------
@router.get("/{application_id}", response_model=ApplicationDetail)
async def get_application(
    application_id: UUID,
    current_user: Profile = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    detail = await application_service.get_application_detail(gateway, current_user, application_id)
    return ApplicationDetail.model_validate(detail, from_attributes=True)


# ------------------------------------------------------------
# STATUS TRANSITIONS
# ------------------------------------------------------------
@router.post("/{application_id}/submit", response_model=TransitionResponse)
async def submit_application(
    application_id: UUID,
    current_user: Profile = Depends(require_student),
    gateway: PersistenceGateway = Depends(get_gateway),
    notifier: Notifier = Depends(get_notifier),
):
    result = await application_service.submit_application(gateway, current_user, application_id, notifier)
    return _transition_response(result)


@router.post("/{application_id}/validate-major", response_model=TransitionResponse)
async def validate_major(
    application_id: UUID,
    current_user: Profile = Depends(require_major_head),
    gateway: PersistenceGateway = Depends(get_gateway),
    notifier: Notifier = Depends(get_notifier),
):
    result = await application_service.validate_major(gateway, current_user, application_id, notifier)
    return _transition_response(result)


@router.post("/{application_id}/request-revision", response_model=TransitionResponse)
async def request_revision(
    application_id: UUID,
    payload: ReasonRequest,
    current_user: Profile = Depends(require_major_head),
    gateway: PersistenceGateway = Depends(get_gateway),
    notifier: Notifier = Depends(get_notifier),
):
    result = await application_service.request_revision(
        gateway, current_user, application_id, payload.reason, notifier
    )
    return _transition_response(result)


@router.post("/{application_id}/validate-final", response_model=TransitionResponse)
async def validate_final(
    application_id: UUID,
    current_user: Profile = Depends(require_international),
    gateway: PersistenceGateway = Depends(get_gateway),
    notifier: Notifier = Depends(get_notifier),
):
    result = await application_service.validate_final(gateway, current_user, application_id, notifier)
    return _transition_response(result)


@router.post("/{application_id}/reject", response_model=TransitionResponse)
async def reject_application(
    application_id: UUID,
    payload: ReasonRequest,
    current_user: Profile = Depends(require_international),
    gateway: PersistenceGateway = Depends(get_gateway),
    notifier: Notifier = Depends(get_notifier),
):
    result = await application_service.reject_application(
        gateway, current_user, application_id, payload.reason, notifier
    )
    return _transition_response(result)


# ------------------------------------------------------------
# FILES
# ------------------------------------------------------------
@router.post("/{application_id}/files", response_model=FileRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def upload_file(
    request: Request,
    application_id: UUID,
    file: UploadFile = File(...),
    current_user: Profile = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
    storage: DocumentStorage = Depends(get_storage),
):
    # Never buffer more than one byte past the size limit
    content = await file.read(MAX_FILE_SIZE + 1)
    return await application_service.upload_file(
        gateway,
        storage,
        current_user,
        application_id,
        file.filename or "document.pdf",
        file.content_type,
        content,
    )


@router.delete("/{application_id}/files/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(
    application_id: UUID,
    file_id: UUID,
    current_user: Profile = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
    storage: DocumentStorage = Depends(get_storage),
):
    await application_service.delete_file(gateway, storage, current_user, application_id, file_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{application_id}/files/{file_id}/download", response_model=DownloadLink)
async def download_file(
    application_id: UUID,
    file_id: UUID,
    current_user: Profile = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
    storage: DocumentStorage = Depends(get_storage),
):
    url = await application_service.file_download_url(gateway, storage, current_user, application_id, file_id)
    return DownloadLink(url=url, expires_in=SIGNED_URL_TTL_SECONDS)


# ------------------------------------------------------------
# MESSAGES
# ------------------------------------------------------------
@router.post("/{application_id}/messages", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def post_message(
    request: Request,
    application_id: UUID,
    payload: MessageCreate,
    current_user: Profile = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
    notifier: Notifier = Depends(get_notifier),
):
    return await application_service.post_message(gateway, current_user, application_id, payload.content, notifier)


# ------------------------------------------------------------
# COURSES
# ------------------------------------------------------------
@router.post("/{application_id}/courses", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
async def add_course(
    application_id: UUID,
    payload: CourseCreate,
    current_user: Profile = Depends(require_student),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    return await course_service.add_course(gateway, current_user, application_id, payload.model_dump())


@router.delete("/{application_id}/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(
    application_id: UUID,
    course_id: UUID,
    current_user: Profile = Depends(require_student),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    await course_service.delete_course(gateway, current_user, application_id, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{application_id}/courses/{course_id}/validation", response_model=CourseRead)
async def set_course_validation(
    application_id: UUID,
    course_id: UUID,
    payload: CourseValidationUpdate,
    current_user: Profile = Depends(require_major_head),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    return await course_service.set_course_validation(
        gateway,
        current_user,
        application_id,
        course_id,
        payload.is_validated,
        payload.rejection_reason,
    )
