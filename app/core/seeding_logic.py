from datetime import date
from typing import Optional

from loguru import logger

from app.core.config import settings
from app.core.database import AsyncSessionLocal
from app.core.gateway import PersistenceGateway
from app.models.academic import AcademicYear
from app.models.enums import ProfileRole
from app.models.profile import Major
from app.services.auth_service import create_profile

# ----------------------------------------------------------------
# 1. DEFINE STATIC DATA
# ----------------------------------------------------------------

MAJORS_DATA = [
    {"name": "Cybersécurité", "code": "CYBER"},
    {"name": "Data & Intelligence Artificielle", "code": "DATA_IA"},
    {"name": "Systèmes Embarqués", "code": "SE"},
    {"name": "Énergie & Environnement", "code": "ENE"},
    {"name": "Finance & Ingénierie Quantitative", "code": "FIQ"},
    {"name": "Systèmes d'Information", "code": "SI"},
    {"name": "Ingénierie de la Santé", "code": "SANTE"},
    {"name": "Réseaux & Cloud", "code": "CLOUD"},
]


def default_academic_year(today: Optional[date] = None) -> str:
    """Academic years start in September: 2025-2026 runs Sep 2025 to Aug 2026."""
    today = today or date.today()
    start = today.year if today.month >= 9 else today.year - 1
    return f"{start}-{start + 1}"


# ----------------------------------------------------------------
# 2. SEEDING FUNCTIONS
# ----------------------------------------------------------------

async def seed_majors(gateway) -> int:
    created = 0
    for m in MAJORS_DATA:
        if not await gateway.get_major_by_code(m["code"]):
            logger.info(f"Creating major: {m['name']}")
            await gateway.insert_major(Major(name=m["name"], code=m["code"]))
            created += 1
    return created


async def seed_academic_year(gateway, label: Optional[str] = None) -> AcademicYear:
    """Make sure `label` exists and is the only current year."""
    label = label or settings.CURRENT_ACADEMIC_YEAR or default_academic_year()

    current = await gateway.get_current_academic_year()
    if current and current.year == label:
        return current

    year = await gateway.get_academic_year(label)
    if not year:
        logger.info(f"Creating academic year {label}")
        year = await gateway.insert_academic_year(AcademicYear(year=label, is_current=False))

    logger.info(f"Marking {label} as the current academic year")
    return await gateway.set_current_academic_year(year.id)


async def seed_international_admin(gateway) -> None:
    if not settings.INTERNATIONAL_ADMIN_EMAIL or not settings.INTERNATIONAL_ADMIN_PASSWORD:
        logger.warning("Missing international office credentials in settings.")
        return

    if await gateway.get_profile_by_email(settings.INTERNATIONAL_ADMIN_EMAIL):
        logger.info("International office account already exists. Skipping.")
        return

    logger.info(f"Seeding international office account: {settings.INTERNATIONAL_ADMIN_EMAIL}")
    await create_profile(
        gateway,
        full_name=settings.INTERNATIONAL_ADMIN_NAME,
        email=settings.INTERNATIONAL_ADMIN_EMAIL,
        password=settings.INTERNATIONAL_ADMIN_PASSWORD,
        role=ProfileRole.International,
    )


async def seed_all():
    """Master function to run all seeding logic."""
    async with AsyncSessionLocal() as session:
        gateway = PersistenceGateway(session)
        try:
            await seed_majors(gateway)
            await seed_academic_year(gateway)
            await seed_international_admin(gateway)
            logger.success("Seeding complete.")
        except Exception as e:
            logger.error(f"Seeding failed: {e}")
