# app/api/endpoints/reference.py

from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user, get_gateway
from app.core.exceptions import NotFoundError
from app.core.gateway import PersistenceGateway
from app.models.profile import Profile
from app.schemas.auth import ProfileSummary
from app.schemas.reference import AcademicYearRead, MajorRead
from app.services.auth_service import major_heads_for

router = APIRouter(prefix="/api/reference", tags=["Reference Data"])


@router.get("/majors", response_model=List[MajorRead])
async def list_majors(gateway: PersistenceGateway = Depends(get_gateway)):
    return await gateway.list_majors()


@router.get("/academic-years/current", response_model=AcademicYearRead)
async def current_academic_year(
    _: Profile = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    year = await gateway.get_current_academic_year()
    if not year:
        raise NotFoundError("No active academic year.")
    return year


@router.get("/major-heads", response_model=List[ProfileSummary])
async def list_major_heads(
    current_user: Profile = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    return await major_heads_for(gateway, current_user)
