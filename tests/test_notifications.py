import json
import uuid

import httpx
import pytest

from app.core.exceptions import NotFoundError, PermissionDeniedError, PreconditionError
from app.models.application import Application
from app.models.enums import ApplicationStatus
from app.models.notification import Notification
from app.services import notification_service as notifications
from app.services.notification_service import WebhookDispatcher
from app.services.workflow import WebhookEvent


def make_application(gateway, people, status=ApplicationStatus.Submitted) -> Application:
    application = Application(
        id=uuid.uuid4(),
        student_id=people.student.id,
        major_head_id=people.major_head.id,
        academic_year_id=next(iter(gateway.years)),
        status=status,
        university_name="TU München",
        university_city="Munich",
        university_country="Allemagne",
    )
    gateway.applications[application.id] = application
    return application


# ------------------------------------------------------------
# RECIPIENTS
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_recipients_per_event(gateway, people):
    application = make_application(gateway, people)

    async def recipients(event, sender=None):
        return await notifications.event_recipients(gateway, event, application, sender_id=sender)

    assert await recipients(WebhookEvent.ApplicationSubmitted, people.student.id) == [people.major_head.id]
    assert await recipients(WebhookEvent.ApplicationValidatedMajor, people.major_head.id) == [
        people.student.id,
        people.international.id,
    ]
    assert await recipients(WebhookEvent.ApplicationValidatedFinal) == [people.student.id]
    assert await recipients(WebhookEvent.ApplicationRejected) == [people.student.id]


@pytest.mark.asyncio
async def test_international_joins_the_thread_after_major_validation(gateway, people):
    early = make_application(gateway, people, ApplicationStatus.Submitted)
    late = make_application(gateway, people, ApplicationStatus.ValidatedMajor)

    early_to = await notifications.event_recipients(gateway, WebhookEvent.NewMessage, early, people.student.id)
    late_to = await notifications.event_recipients(gateway, WebhookEvent.NewMessage, late, people.student.id)

    assert early_to == [people.major_head.id]
    assert late_to == [people.major_head.id, people.international.id]

    from_office = await notifications.event_recipients(
        gateway, WebhookEvent.NewMessage, late, people.international.id
    )
    assert from_office == [people.student.id, people.major_head.id]


# ------------------------------------------------------------
# PAYLOAD / DISPATCH
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_payload_shape(gateway, people):
    application = make_application(gateway, people)

    payload = await notifications.build_event_payload(gateway, WebhookEvent.ApplicationSubmitted, application)

    assert payload["event"] == "application_submitted"
    assert "timestamp" in payload
    data = payload["data"]
    assert data["application_id"] == str(application.id)
    assert data["status"] == "submitted"
    assert data["university"] == {"name": "TU München", "city": "Munich", "country": "Allemagne"}
    assert data["student"] == {"name": "Alice Martin", "email": "alice.martin@edu.ece.fr"}
    assert data["major_head"]["email"] == "claire.durand@ece.fr"
    assert data["international_emails"] == ["emma.roux@ece.fr"]
    assert "message_preview" not in data


@pytest.mark.asyncio
async def test_emit_persists_rows_then_posts(gateway, people, notifier, webhook_requests):
    application = make_application(gateway, people)

    payload = await notifier.emit(WebhookEvent.ApplicationSubmitted, application, sender_id=people.student.id)

    rows = list(gateway.notifications.values())
    assert [r.user_id for r in rows] == [people.major_head.id]
    assert rows[0].link == f"http://app.test/application/{application.id}"
    assert "Alice Martin" in rows[0].message
    assert json.loads(webhook_requests[0].content) == payload


@pytest.mark.asyncio
async def test_emit_without_webhook_url_only_stores(gateway, people):
    notifier = notifications.Notifier(gateway, WebhookDispatcher(None), link_base="http://app.test")
    application = make_application(gateway, people, ApplicationStatus.ValidatedFinal)

    assert await notifier.emit(WebhookEvent.ApplicationValidatedFinal, application) is not None
    assert len(gateway.notifications) == 1


@pytest.mark.asyncio
async def test_dispatcher_reports_failures_without_raising():
    def server_error(request):
        return httpx.Response(500)

    def timeout(request):
        raise httpx.ReadTimeout("slow automation endpoint")

    assert await WebhookDispatcher(None).send({"event": "x"}) is False
    assert await WebhookDispatcher("https://hooks.test", transport=httpx.MockTransport(server_error)).send(
        {"event": "x"}
    ) is False
    assert await WebhookDispatcher("https://hooks.test", transport=httpx.MockTransport(timeout)).send(
        {"event": "x"}
    ) is False


@pytest.mark.asyncio
async def test_emit_survives_payload_lookup_failure(gateway, people, notifier, webhook_requests):
    application = make_application(gateway, people)
    gateway.fail_on.add("get_profile")

    assert await notifier.emit(WebhookEvent.ApplicationSubmitted, application) is None
    assert webhook_requests == []


# ------------------------------------------------------------
# INBOUND TRIGGER
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_trigger_builds_and_forwards(gateway, people, webhook, webhook_requests):
    application = make_application(gateway, people)

    result = await notifications.trigger_event(
        gateway, webhook, people.student, "new_message", application.id, message_preview="Bonjour"
    )

    assert result["success"] is True
    assert result["event"] == "new_message"
    assert result["payload"]["data"]["message_preview"] == "Bonjour"
    assert len(webhook_requests) == 1


@pytest.mark.asyncio
async def test_trigger_rejects_unknown_event_and_missing_application(gateway, people, webhook):
    application = make_application(gateway, people)

    with pytest.raises(PreconditionError):
        await notifications.trigger_event(gateway, webhook, people.student, "application_archived", application.id)
    with pytest.raises(NotFoundError):
        await notifications.trigger_event(gateway, webhook, people.student, "new_message", uuid.uuid4())


@pytest.mark.asyncio
async def test_trigger_is_limited_to_parties_of_the_dossier(gateway, people, webhook, webhook_requests):
    application = make_application(gateway, people)

    for outsider in (people.other_student, people.other_head):
        with pytest.raises(PermissionDeniedError):
            await notifications.trigger_event(gateway, webhook, outsider, "new_message", application.id)
    assert webhook_requests == []

    result = await notifications.trigger_event(
        gateway, webhook, people.international, "application_submitted", application.id
    )
    assert result["success"] is True
    assert len(webhook_requests) == 1


def test_webhook_config_lists_events(webhook):
    config = notifications.webhook_config(webhook)
    assert config["configured"] is True
    assert config["events"] == [
        "application_submitted",
        "application_validated_major",
        "application_validated_final",
        "application_rejected",
        "new_message",
    ]
    assert notifications.webhook_config(WebhookDispatcher(None))["configured"] is False


# ------------------------------------------------------------
# INBOX
# ------------------------------------------------------------
async def seed_inbox(gateway, profile, count=2):
    return [
        await gateway.insert_notification(Notification(user_id=profile.id, message=f"Notification {i}"))
        for i in range(count)
    ]


@pytest.mark.asyncio
async def test_inbox_newest_first_with_unread_count(gateway, people):
    first, second = await seed_inbox(gateway, people.student)
    await notifications.mark_read(gateway, people.student, first.id)

    inbox = await notifications.list_inbox(gateway, people.student)
    assert inbox["unread_count"] == 1
    assert [n.id for n in inbox["notifications"]] == [second.id, first.id]


@pytest.mark.asyncio
async def test_mark_read_twice_skips_the_write(gateway, people):
    (row,) = await seed_inbox(gateway, people.student, count=1)
    await notifications.mark_read(gateway, people.student, row.id)
    gateway.calls.clear()

    await notifications.mark_read(gateway, people.student, row.id)
    assert "mark_notification_read" not in gateway.calls


@pytest.mark.asyncio
async def test_inbox_is_private(gateway, people):
    (row,) = await seed_inbox(gateway, people.student, count=1)

    with pytest.raises(PermissionDeniedError):
        await notifications.delete_notification(gateway, people.major_head, row.id)
    with pytest.raises(NotFoundError):
        await notifications.mark_read(gateway, people.student, uuid.uuid4())

    await notifications.delete_notification(gateway, people.student, row.id)
    assert gateway.notifications == {}
