# app/api/endpoints/auth.py

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.deps import get_current_user, get_gateway
from app.core.gateway import PersistenceGateway
from app.core.rate_limiter import limiter
from app.models.profile import Profile
from app.schemas.auth import LoginRequest, ProfileRead, RegisterRequest, TokenWithProfile
from app.services.auth_service import authenticate, create_login_response, register_student

router = APIRouter(prefix="/api/auth", tags=["Auth"])


# ------------------------------------------------------------
# STUDENT REGISTRATION (public)
# ------------------------------------------------------------
@router.post("/register", response_model=ProfileRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register(
    request: Request,
    data: RegisterRequest,
    gateway: PersistenceGateway = Depends(get_gateway),
):
    return await register_student(
        gateway,
        full_name=data.full_name,
        email=data.email,
        password=data.password,
        confirm_password=data.confirm_password,
        major_id=data.major_id,
    )


# ------------------------------------------------------------
# LOGIN (all roles)
# ------------------------------------------------------------
@router.post("/login", response_model=TokenWithProfile)
@limiter.limit("10/minute")
async def login(
    request: Request,
    data: LoginRequest,
    gateway: PersistenceGateway = Depends(get_gateway),
):
    profile = await authenticate(gateway, data.email, data.password)

    if not profile:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return create_login_response(profile)


# ------------------------------------------------------------
# CURRENT PROFILE
# ------------------------------------------------------------
@router.get("/me", response_model=ProfileRead)
async def me(current_user: Profile = Depends(get_current_user)):
    return current_user
