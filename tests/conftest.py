import os
import tempfile
import uuid
from types import SimpleNamespace

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ------------------------------------------------------------------
# FORCE TESTING MODE
# This must be done BEFORE importing app.main: settings and the DB
# engine are built at import time.
# ------------------------------------------------------------------
_DB_DIR = tempfile.mkdtemp(prefix="la-tests-")
os.environ["TESTING"] = "true"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/app.db"
os.environ["SECRET_KEY"] = "test-secret-key-for-jwt-signing-0123456789"
os.environ["RATE_LIMIT_ENABLED"] = "false"
for _name in ("WEBHOOK_URL", "WEBHOOK_N8N_URL", "REDIS_URL", "SUPABASE_URL", "SUPABASE_KEY"):
    os.environ.pop(_name, None)

from app.main import app  # noqa: E402
from app.api.deps import get_gateway, get_notification_gateway, get_storage, get_webhook  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.models.academic import AcademicYear  # noqa: E402
from app.models.enums import ProfileRole  # noqa: E402
from app.models.profile import Major, Profile  # noqa: E402
from app.services.notification_service import Notifier, WebhookDispatcher  # noqa: E402

from fakes import FakeStorage, InMemoryGateway  # noqa: E402

WEBHOOK_URL = "https://hooks.test/n8n/learning-agreement"


def add_profile(gateway, role, full_name, email, major_id=None) -> Profile:
    profile = Profile(
        id=uuid.uuid4(),
        email=email,
        full_name=full_name,
        role=role,
        major_id=major_id,
    )
    gateway.profiles[profile.id] = profile
    return profile


def auth_headers(profile) -> dict:
    token = create_access_token(subject=str(profile.id), data={"role": ProfileRole(profile.role).value})
    return {"Authorization": f"Bearer {token}"}


# ------------------------------------------------------------------
# IN-MEMORY BACKEND
# ------------------------------------------------------------------
@pytest.fixture
def gateway():
    g = InMemoryGateway()

    major = Major(id=uuid.uuid4(), name="Cybersécurité", code="CYBER")
    g.majors[major.id] = major

    year = AcademicYear(id=uuid.uuid4(), year="2025-2026", is_current=True)
    g.years[year.id] = year
    return g


@pytest.fixture
def people(gateway):
    major_id = next(iter(gateway.majors))
    return SimpleNamespace(
        student=add_profile(gateway, ProfileRole.Student, "Alice Martin", "alice.martin@edu.ece.fr", major_id),
        other_student=add_profile(gateway, ProfileRole.Student, "Bruno Petit", "bruno.petit@edu.ece.fr"),
        major_head=add_profile(gateway, ProfileRole.MajorHead, "Claire Durand", "claire.durand@ece.fr", major_id),
        other_head=add_profile(gateway, ProfileRole.MajorHead, "David Leroy", "david.leroy@ece.fr"),
        international=add_profile(gateway, ProfileRole.International, "Emma Roux", "emma.roux@ece.fr"),
    )


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def webhook_requests():
    return []


@pytest.fixture
def webhook(webhook_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        webhook_requests.append(request)
        return httpx.Response(200, json={"ok": True})

    return WebhookDispatcher(WEBHOOK_URL, transport=httpx.MockTransport(handler))


@pytest.fixture
def notifier(gateway, webhook):
    return Notifier(gateway, webhook, link_base="http://app.test")


# ------------------------------------------------------------------
# HTTP CLIENT
# ------------------------------------------------------------------
@pytest_asyncio.fixture
async def client(gateway, storage, webhook):
    """
    Uses ASGITransport() instead of app=... (httpx >= 0.27).
    The gateway, storage and webhook are swapped for in-memory doubles.
    """
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_notification_gateway] = lambda: gateway
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_webhook] = lambda: webhook

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()
