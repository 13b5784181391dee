from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.api.v1.errors import http_error
from rideops.core.database import get_db
from rideops.core.dependencies import (
    RequestContext,
    get_capabilities,
    get_identity,
    get_request_context,
)
from rideops.core.exceptions import RideOpsError
from rideops.core.init_db import SchemaCapabilities
from rideops.schemas.auth import LoginRequest, MeResponse, TokenResponse
from rideops.services.auth import AuthService
from rideops.services.identity import IdentityProvider

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
):
    """Вход по email и паролю, возвращает JWT токен с ролью."""
    auth_service = AuthService(db, identity, capabilities)
    try:
        result = await auth_service.login(request.email, request.password)
    except RideOpsError as exc:
        raise http_error(exc)

    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    token, user, role = result
    return TokenResponse(access_token=token, user_id=user.id, email=user.email, role=role)


@router.get("/me", response_model=MeResponse)
async def me(context: RequestContext = Depends(get_request_context)):
    return MeResponse(user_id=context.identity_id, role=context.role, profile_id=context.profile_id)


@router.post("/logout")
async def logout() -> dict:
    """Токены не хранятся на сервере, клиенту достаточно забыть токен."""
    return {"ok": True}
