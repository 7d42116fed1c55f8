# app/core/rbac.py

from fastapi import Depends, HTTPException, status
from app.api.deps import get_current_user
from app.models.enums import ProfileRole
from app.models.profile import Profile

def AllowRoles(*allowed_roles):
    """
    Route-level role gate:
    - Accepts ProfileRole values or raw strings
    - Case-insensitive
    - No bypass role: assignment checks still happen in the services
    """

    def normalize(role) -> str:
        if isinstance(role, ProfileRole):
            return role.value.lower().strip()
        return str(role).lower().strip()

    normalized_allowed = {normalize(r) for r in allowed_roles}

    async def role_checker(current_user: Profile = Depends(get_current_user)):
        if not current_user:
            raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Unauthenticated")

        user_role = normalize(current_user.role)

        if user_role not in normalized_allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role '{user_role}'"
            )

        return current_user

    return role_checker


require_student = AllowRoles(ProfileRole.Student)
require_major_head = AllowRoles(ProfileRole.MajorHead)
require_international = AllowRoles(ProfileRole.International)
