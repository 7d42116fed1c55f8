from pydantic import BaseModel, EmailStr
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.models.enums import ProfileRole


# -------------------------------------------------------------------
# LOGIN REQUEST
# -------------------------------------------------------------------
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


# -------------------------------------------------------------------
# REGISTER REQUEST (students only; reviewers are provisioned)
# -------------------------------------------------------------------
class RegisterRequest(BaseModel):
    full_name: str
    email: EmailStr
    password: str
    confirm_password: str
    major_id: Optional[UUID] = None

    class Config:
        json_schema_extra = {
            "examples": [
                {
                    "full_name": "Camille Martin",
                    "email": "camille.martin@edu.ece.fr",
                    "password": "password123",
                    "confirm_password": "password123",
                    "major_id": None
                }
            ]
        }


# -------------------------------------------------------------------
# PROFILE (never exposes password_hash)
# -------------------------------------------------------------------
class ProfileRead(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: ProfileRole
    major_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileSummary(BaseModel):
    id: UUID
    full_name: str
    email: str

    class Config:
        from_attributes = True


# -------------------------------------------------------------------
# TOKEN RESPONSE
# -------------------------------------------------------------------
class TokenWithProfile(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    profile: ProfileRead
