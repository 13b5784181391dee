import logging
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.core.init_db import SchemaCapabilities
from rideops.core.security import create_access_token
from rideops.models.user import User
from rideops.services.identity import Identity, IdentityProvider
from rideops.services.ride_permissions import ROLES

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        capabilities: SchemaCapabilities = SchemaCapabilities(),
    ):
        self.db = db
        self.identity = identity
        self.capabilities = capabilities

    async def resolve_role(self, identity: Identity) -> Optional[str]:
        """Роль берется из флага в таблице users, иначе из метаданных учетной записи."""
        if self.capabilities.role_flags:
            try:
                result = await self.db.execute(select(User.role).where(User.id == identity.id))
                role = result.scalar_one_or_none()
            except SQLAlchemyError as exc:
                logger.warning("Could not read role flag for %s: %s", identity.id, exc)
                role = None
            if role in ROLES:
                return role
        role = identity.metadata.get("user_type") or identity.metadata.get("role")
        return role if role in ROLES else None

    async def login(self, email: str, password: str) -> Optional[Tuple[str, Identity, str]]:
        """Возвращает (токен, учетная запись, роль) или None при неверных данных."""
        identity = await self.identity.authenticate(email, password)
        if identity is None:
            return None
        role = await self.resolve_role(identity)
        if role is None:
            logger.warning("Identity %s has no role, login refused", identity.id)
            return None
        token = create_access_token({"sub": identity.id, "role": role})
        return token, identity, role
