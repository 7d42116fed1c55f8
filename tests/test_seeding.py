from datetime import date
from unittest.mock import patch

import pytest

from app.core.config import settings
from app.core.seeding_logic import (
    MAJORS_DATA,
    default_academic_year,
    seed_academic_year,
    seed_international_admin,
    seed_majors,
)
from app.models.enums import ProfileRole

from fakes import InMemoryGateway


@pytest.mark.parametrize(
    "today,label",
    [(date(2025, 9, 1), "2025-2026"), (date(2026, 3, 15), "2025-2026"), (date(2026, 8, 31), "2025-2026")],
)
def test_default_academic_year_starts_in_september(today, label):
    assert default_academic_year(today) == label


@pytest.mark.asyncio
async def test_seed_majors_is_idempotent():
    gateway = InMemoryGateway()

    assert await seed_majors(gateway) == len(MAJORS_DATA)
    assert await seed_majors(gateway) == 0
    assert len(gateway.majors) == len(MAJORS_DATA)


@pytest.mark.asyncio
async def test_seed_academic_year_switches_current(gateway):
    old = await gateway.get_current_academic_year()

    year = await seed_academic_year(gateway, "2026-2027")

    assert year.is_current is True
    assert old.is_current is False
    assert (await gateway.get_current_academic_year()).year == "2026-2027"

    # Already current: nothing written
    gateway.calls.clear()
    await seed_academic_year(gateway, "2026-2027")
    assert "insert_academic_year" not in gateway.calls
    assert "set_current_academic_year" not in gateway.calls


@pytest.mark.asyncio
async def test_international_admin_seeded_once():
    gateway = InMemoryGateway()

    with patch.object(settings, "INTERNATIONAL_ADMIN_EMAIL", "relations.internationales@ece.fr"), \
            patch.object(settings, "INTERNATIONAL_ADMIN_PASSWORD", "change-me-please"):
        await seed_international_admin(gateway)
        await seed_international_admin(gateway)

    admins = await gateway.list_profiles(role=ProfileRole.International)
    assert [a.email for a in admins] == ["relations.internationales@ece.fr"]
    assert admins[0].password_hash


@pytest.mark.asyncio
async def test_international_admin_skipped_without_credentials():
    gateway = InMemoryGateway()

    with patch.object(settings, "INTERNATIONAL_ADMIN_EMAIL", None):
        await seed_international_admin(gateway)

    assert gateway.profiles == {}
