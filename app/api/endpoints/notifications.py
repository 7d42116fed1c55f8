# app/api/endpoints/notifications.py

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from app.api.deps import get_current_user, get_gateway
from app.core.gateway import PersistenceGateway
from app.models.profile import Profile
from app.schemas.notification import InboxResponse, NotificationRead
from app.services import notification_service

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=InboxResponse)
async def inbox(
    current_user: Profile = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    return await notification_service.list_inbox(gateway, current_user)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: UUID,
    current_user: Profile = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    return await notification_service.mark_read(gateway, current_user, notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: UUID,
    current_user: Profile = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    await notification_service.delete_notification(gateway, current_user, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
