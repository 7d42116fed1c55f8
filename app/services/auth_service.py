# app/services/auth_service.py

from typing import Optional
from uuid import UUID

from loguru import logger

from app.core.config import settings
from app.core.exceptions import PreconditionError
from app.core.security import create_access_token, hash_password, verify_password
from app.models.enums import ProfileRole
from app.models.profile import Profile
from app.services.validators import is_allowed_email

MIN_PASSWORD_LENGTH = 8


# ============================================================================
# CREATE PROFILE
# ============================================================================
async def create_profile(
    gateway,
    full_name: str,
    email: str,
    password: Optional[str],
    role: ProfileRole,
    major_id: Optional[UUID] = None,
) -> Profile:
    if major_id is not None and not await gateway.get_major(major_id):
        raise PreconditionError("Unknown major.")

    profile = Profile(
        full_name=full_name.strip(),
        email=email.strip().lower(),
        role=role,
        major_id=major_id,
        password_hash=hash_password(password) if password else None,
    )
    # DuplicateEmailError bubbles up from the unique index
    return await gateway.insert_profile(profile)


# ============================================================================
# STUDENT SELF-REGISTRATION
# ============================================================================
async def register_student(
    gateway,
    full_name: str,
    email: str,
    password: str,
    confirm_password: str,
    major_id: Optional[UUID] = None,
) -> Profile:
    if not full_name or not full_name.strip():
        raise PreconditionError("Full name is required.")

    if not is_allowed_email(email):
        domains = ", ".join(settings.ALLOWED_EMAIL_DOMAINS)
        raise PreconditionError(f"Registration is limited to school addresses ({domains}).")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise PreconditionError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    if password != confirm_password:
        raise PreconditionError("Passwords do not match.")

    profile = await create_profile(gateway, full_name, email, password, ProfileRole.Student, major_id)
    logger.info(f"Student profile registered: {profile.email}")
    return profile


# ============================================================================
# LOGIN
# ============================================================================
async def authenticate(gateway, email: str, password: str) -> Profile | None:
    profile = await gateway.get_profile_by_email(email.strip())
    if not profile or not profile.password_hash:
        return None

    if not verify_password(password, profile.password_hash):
        return None

    return profile


def create_login_response(profile: Profile) -> dict:
    role = ProfileRole(profile.role).value
    token = create_access_token(subject=str(profile.id), data={"role": role})

    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "profile": profile,
    }


# ============================================================================
# REVIEWERS
# ============================================================================
async def major_heads_for(gateway, actor) -> list[Profile]:
    """
    Major heads a student can pick from: those of the student's major, or
    every major head when the student has none (or none match).
    """
    if actor.major_id:
        heads = await gateway.list_profiles(role=ProfileRole.MajorHead, major_id=actor.major_id)
        if heads:
            return list(heads)
    return list(await gateway.list_profiles(role=ProfileRole.MajorHead))
