from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime


class NotificationRead(BaseModel):
    id: UUID
    user_id: UUID
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class InboxResponse(BaseModel):
    unread_count: int
    notifications: list[NotificationRead]


# ------------------------------------------------------------
# WEBHOOK
# ------------------------------------------------------------
class WebhookTrigger(BaseModel):
    event: str
    application_id: UUID
    message_preview: Optional[str] = None


class WebhookTriggerResponse(BaseModel):
    success: bool
    event: str
    payload: dict


class WebhookConfig(BaseModel):
    configured: bool
    events: list[str]
