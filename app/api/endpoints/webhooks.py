# app/api/endpoints/webhooks.py

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_current_user, get_gateway, get_webhook
from app.core.gateway import PersistenceGateway
from app.core.rate_limiter import limiter
from app.models.profile import Profile
from app.schemas.notification import WebhookConfig, WebhookTrigger, WebhookTriggerResponse
from app.services import notification_service
from app.services.notification_service import WebhookDispatcher

router = APIRouter(prefix="/api/webhooks", tags=["Webhooks"])


# ------------------------------------------------------------
# CONFIG CHECK (public)
# ------------------------------------------------------------
@router.get("", response_model=WebhookConfig)
async def webhook_config(webhook: WebhookDispatcher = Depends(get_webhook)):
    return notification_service.webhook_config(webhook)


# ------------------------------------------------------------
# MANUAL TRIGGER
# ------------------------------------------------------------
@router.post("", response_model=WebhookTriggerResponse)
@limiter.limit("20/minute")
async def trigger_webhook(
    request: Request,
    data: WebhookTrigger,
    current_user: Profile = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
    webhook: WebhookDispatcher = Depends(get_webhook),
):
    return await notification_service.trigger_event(
        gateway,
        webhook,
        current_user,
        data.event,
        data.application_id,
        message_preview=data.message_preview,
    )
