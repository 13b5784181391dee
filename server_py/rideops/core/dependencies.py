from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.core.database import get_db
from rideops.core.init_db import SchemaCapabilities
from rideops.core.security import decode_access_token
from rideops.models.customer import Customer
from rideops.models.driver import Driver
from rideops.services.email import CredentialEmailSender
from rideops.services.identity import IdentityProvider, get_identity_provider
from rideops.services.ride_permissions import ROLES, ROLE_CUSTOMER, ROLE_DRIVER

# Определяем схему безопасности
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class RequestContext:
    """Кто выполняет запрос: id учетной записи, роль и id профиля."""
    identity_id: str
    role: str
    profile_id: Optional[int] = None


async def resolve_profile_id(db: AsyncSession, identity_id: str, role: str) -> Optional[int]:
    model = {ROLE_DRIVER: Driver, ROLE_CUSTOMER: Customer}.get(role)
    if model is None:
        return None
    result = await db.execute(select(model.id).where(model.user_id == identity_id))
    return result.scalar_one_or_none()


async def get_optional_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Optional[RequestContext]:
    """
    Контекст запроса из JWT токена.
    Возвращает None если токен не предоставлен или невалиден.
    """
    if not credentials:
        return None

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        return None

    identity_id = payload.get("sub")
    role = payload.get("role")
    if not identity_id or role not in ROLES:
        return None

    profile_id = await resolve_profile_id(db, identity_id, role)
    return RequestContext(identity_id=identity_id, role=role, profile_id=profile_id)


async def get_request_context(
    context: Optional[RequestContext] = Depends(get_optional_context),
) -> RequestContext:
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return context


def require_role(role: str):
    async def dependency(context: RequestContext = Depends(get_request_context)) -> RequestContext:
        if context.role != role:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        if role in (ROLE_DRIVER, ROLE_CUSTOMER) and context.profile_id is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"No {role} profile for this account")
        return context
    return dependency


require_admin = require_role("admin")
require_driver = require_role(ROLE_DRIVER)
require_customer = require_role(ROLE_CUSTOMER)


def get_identity(db: AsyncSession = Depends(get_db)) -> IdentityProvider:
    return get_identity_provider(db)


def get_email_sender() -> CredentialEmailSender:
    return CredentialEmailSender()


def get_capabilities(request: Request) -> SchemaCapabilities:
    # Заполняется при старте приложения (см. rideops.main)
    return getattr(request.app.state, "capabilities", SchemaCapabilities())
