# app/services/notification_service.py

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import httpx
from fastapi import BackgroundTasks
from loguru import logger

from app.core.config import settings
from app.core.exceptions import NotFoundError, PermissionDeniedError, PreconditionError
from app.models.enums import ApplicationStatus, ProfileRole
from app.models.notification import Notification
from app.services.workflow import WebhookEvent, ensure_access, progress_rank

NOTIFICATION_MESSAGES = {
    WebhookEvent.ApplicationSubmitted: "{student} a soumis son dossier ({university}).",
    WebhookEvent.ApplicationValidatedMajor: "Le dossier de {student} ({university}) a été validé par le responsable de majeure.",
    WebhookEvent.ApplicationValidatedFinal: "Le dossier de {student} ({university}) a été validé définitivement.",
    WebhookEvent.ApplicationRejected: "Le dossier de {student} ({university}) a été refusé.",
    WebhookEvent.NewMessage: "Nouveau message sur le dossier de {student} ({university}).",
}


def recognized_events() -> list[str]:
    return [event.value for event in WebhookEvent]


# ===================================================================
# OUTBOUND WEBHOOK
# ===================================================================
class WebhookDispatcher:
    """
    Best-effort POST to the automation endpoint (n8n).
    Never raises: failures are logged and swallowed, no retry.
    """

    def __init__(
        self,
        url: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.url)

    async def send(self, payload: dict) -> bool:
        if not self.url:
            return False

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload)
            if response.is_success:
                logger.info(f"Webhook '{payload.get('event')}' delivered ({response.status_code})")
                return True
            logger.warning(f"Webhook '{payload.get('event')}' answered {response.status_code}")
            return False
        except Exception:
            logger.exception(f"Failed to send webhook '{payload.get('event')}'")
            return False


def get_webhook_dispatcher() -> WebhookDispatcher:
    return WebhookDispatcher(settings.WEBHOOK_URL, timeout=settings.WEBHOOK_TIMEOUT_SECONDS)


# ===================================================================
# PAYLOAD
# ===================================================================
def _person(profile) -> dict:
    return {
        "name": profile.full_name if profile else None,
        "email": profile.email if profile else None,
    }


async def build_event_payload(
    gateway,
    event: str,
    application,
    message_preview: Optional[str] = None,
) -> dict:
    """Look up the related profiles and build the outbound event record."""
    student = await gateway.get_profile(application.student_id)
    major_head = await gateway.get_profile(application.major_head_id)
    international = await gateway.list_profiles(role=ProfileRole.International)

    data = {
        "application_id": str(application.id),
        "status": ApplicationStatus(application.status).value,
        "university": {
            "name": application.university_name,
            "city": application.university_city,
            "country": application.university_country,
        },
        "student": _person(student),
        "major_head": _person(major_head),
        "international_emails": [p.email for p in international],
    }
    if message_preview:
        data["message_preview"] = message_preview

    return {
        "event": WebhookEvent(event).value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }


# ===================================================================
# RECIPIENTS
# ===================================================================
async def event_recipients(
    gateway,
    event: WebhookEvent,
    application,
    sender_id: Optional[UUID] = None,
) -> list[UUID]:
    """Profiles that get a persisted inbox row for `event`."""
    event = WebhookEvent(event)
    recipients: list[UUID] = []

    if event == WebhookEvent.ApplicationSubmitted:
        recipients = [application.major_head_id]

    elif event == WebhookEvent.ApplicationValidatedMajor:
        international = await gateway.list_profiles(role=ProfileRole.International)
        recipients = [application.student_id] + [p.id for p in international]

    elif event in (WebhookEvent.ApplicationValidatedFinal, WebhookEvent.ApplicationRejected):
        recipients = [application.student_id]

    elif event == WebhookEvent.NewMessage:
        recipients = [application.student_id, application.major_head_id]
        # International joins the thread once the dossier reaches them
        if progress_rank(application.status) >= progress_rank(ApplicationStatus.ValidatedMajor):
            international = [p.id for p in await gateway.list_profiles(role=ProfileRole.International)]
            if sender_id not in international:
                recipients += international

    seen = set()
    unique = []
    for profile_id in recipients:
        if profile_id == sender_id or profile_id in seen:
            continue
        seen.add(profile_id)
        unique.append(profile_id)
    return unique


# ===================================================================
# DISPATCH
# ===================================================================
class Notifier:
    """
    Post-commit side channel for workflow events.

    Call `emit` only after the primary write is committed. Whatever fails
    in here is logged and swallowed; the caller's transition stands.
    """

    def __init__(
        self,
        gateway,
        webhook: WebhookDispatcher,
        background_tasks: Optional[BackgroundTasks] = None,
        link_base: Optional[str] = None,
    ):
        self.gateway = gateway
        self.webhook = webhook
        self.background_tasks = background_tasks
        self.link_base = link_base if link_base is not None else settings.FRONTEND_URL

    def _link(self, application_id: UUID) -> str:
        return f"{self.link_base.rstrip('/')}/application/{application_id}"

    async def _persist(self, event: WebhookEvent, application, payload: dict, sender_id: Optional[UUID]) -> int:
        recipients = await event_recipients(self.gateway, event, application, sender_id=sender_id)
        text = NOTIFICATION_MESSAGES[event].format(
            student=payload["data"]["student"]["name"] or "Étudiant",
            university=application.university_name,
        )
        link = self._link(application.id)
        created = 0
        for user_id in recipients:
            try:
                await self.gateway.insert_notification(Notification(user_id=user_id, message=text, link=link))
                created += 1
            except Exception:
                logger.exception(f"Failed to store notification for {user_id}")
        return created

    async def emit(
        self,
        event: WebhookEvent,
        application,
        sender_id: Optional[UUID] = None,
        message_preview: Optional[str] = None,
    ) -> Optional[dict]:
        event = WebhookEvent(event)
        application_id = application.id
        try:
            payload = await build_event_payload(self.gateway, event, application, message_preview)
        except Exception:
            logger.exception(f"Could not build payload for '{event.value}' on {application_id}")
            return None

        try:
            await self._persist(event, application, payload, sender_id)
        except Exception:
            logger.exception(f"Could not store notifications for '{event.value}' on {application_id}")

        if self.webhook.configured:
            if self.background_tasks is not None:
                self.background_tasks.add_task(self.webhook.send, payload)
            else:
                await self.webhook.send(payload)

        logger.info(f"Event '{event.value}' emitted for application {application_id}")
        return payload


# ===================================================================
# INBOX
# ===================================================================
async def list_inbox(gateway, actor) -> dict:
    notifications = await gateway.list_notifications(actor.id)
    return {
        "unread_count": sum(1 for n in notifications if not n.is_read),
        "notifications": list(notifications),
    }


async def _owned_notification(gateway, actor, notification_id: UUID):
    notification = await gateway.get_notification(notification_id)
    if notification is None:
        raise NotFoundError("Notification not found.")
    if notification.user_id != actor.id:
        raise PermissionDeniedError("This notification belongs to another user.")
    return notification


async def mark_read(gateway, actor, notification_id: UUID):
    notification = await _owned_notification(gateway, actor, notification_id)
    if notification.is_read:
        return notification
    return await gateway.mark_notification_read(notification_id)


async def delete_notification(gateway, actor, notification_id: UUID) -> None:
    await _owned_notification(gateway, actor, notification_id)
    await gateway.delete_notification(notification_id)


async def trigger_event(
    gateway,
    webhook: WebhookDispatcher,
    actor,
    event: str,
    application_id: UUID,
    message_preview: Optional[str] = None,
) -> dict:
    """Inbound trigger: build the payload for a dossier the actor takes part in and forward it."""
    if event not in recognized_events():
        raise PreconditionError(f"Unknown event '{event}'.")

    application = await gateway.get_application(application_id)
    if application is None:
        raise NotFoundError("Application not found")
    ensure_access(actor, application)

    payload = await build_event_payload(gateway, event, application, message_preview)
    await webhook.send(payload)
    return {"success": True, "event": event, "payload": payload}


def webhook_config(webhook: WebhookDispatcher) -> dict:
    return {"configured": webhook.configured, "events": recognized_events()}

