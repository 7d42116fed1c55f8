# app/api/deps.py

from typing import AsyncGenerator
from uuid import UUID

import jwt
from fastapi import BackgroundTasks, Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import AsyncSessionLocal, get_session
from app.core.gateway import PersistenceGateway
from app.core.security import decode_token
from app.core.storage import DocumentStorage, get_document_storage
from app.models.profile import Profile
from app.services.notification_service import Notifier, WebhookDispatcher, get_webhook_dispatcher


# ------------------------------------------------------------
# HTTP Bearer Authentication
# ------------------------------------------------------------
bearer_scheme = HTTPBearer(auto_error=True)


# ------------------------------------------------------------
# DB Session / Gateway
# ------------------------------------------------------------
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


async def get_gateway(session: AsyncSession = Depends(get_db_session)) -> PersistenceGateway:
    return PersistenceGateway(session)


# ------------------------------------------------------------
# Side channels (overridden in tests)
# ------------------------------------------------------------
def get_storage() -> DocumentStorage:
    return get_document_storage()


def get_webhook() -> WebhookDispatcher:
    return get_webhook_dispatcher()


async def get_notification_gateway() -> AsyncGenerator[PersistenceGateway, None]:
    # Own session: a failed inbox write must not roll back (and expire) the request session
    async with AsyncSessionLocal() as session:
        yield PersistenceGateway(session)


async def get_notifier(
    background_tasks: BackgroundTasks,
    gateway: PersistenceGateway = Depends(get_notification_gateway),
    webhook: WebhookDispatcher = Depends(get_webhook),
) -> Notifier:
    # Webhook POST runs after the response is sent
    return Notifier(gateway, webhook, background_tasks=background_tasks)


# ------------------------------------------------------------
# Get current logged-in profile from JWT
# ------------------------------------------------------------
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Profile:

    token = credentials.credentials

    try:
        payload = decode_token(token)
        profile_id = payload.get("sub")

        if not profile_id:
            raise HTTPException(401, "Invalid token payload")

        profile_id = UUID(profile_id)

    except (jwt.PyJWTError, ValueError):
        raise HTTPException(401, "Could not validate credentials")

    profile = await gateway.get_profile(profile_id)

    if not profile:
        raise HTTPException(401, "User not found")

    return profile
