from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.core.exceptions import InvalidRequestError, NotFoundError
from rideops.models.customer import Customer
from rideops.models.driver import Driver
from rideops.models.ride import Ride
from rideops.models.user import User
from rideops.services.identity import IdentityProvider
from rideops.services.ride_permissions import ROLE_CUSTOMER, ROLE_DRIVER

logger = logging.getLogger(__name__)

Profile = Union[Driver, Customer]

PROFILE_MODELS: Dict[str, Type] = {ROLE_DRIVER: Driver, ROLE_CUSTOMER: Customer}


class ProfileService:
    """Профили водителей и клиентов (для админки)."""

    def __init__(self, db: AsyncSession, role: str) -> None:
        if role not in PROFILE_MODELS:
            raise InvalidRequestError(f"Unknown profile role '{role}'")
        self.db = db
        self.role = role
        self.model = PROFILE_MODELS[role]

    async def list(self) -> List[Profile]:
        result = await self.db.execute(select(self.model).order_by(self.model.created_at.desc()))
        return list(result.scalars())

    async def get(self, profile_id: int) -> Optional[Profile]:
        result = await self.db.execute(select(self.model).where(self.model.id == profile_id))
        return result.scalar_one_or_none()

    async def get_by_user(self, user_id: str) -> Optional[Profile]:
        result = await self.db.execute(select(self.model).where(self.model.user_id == user_id))
        return result.scalar_one_or_none()

    async def update(self, profile_id: int, changes: Dict[str, Any]) -> Profile:
        profile = await self.get(profile_id)
        if profile is None:
            raise NotFoundError(f"{self.role.capitalize()} not found")
        for field, value in changes.items():
            setattr(profile, field, value)
        await self.db.commit()
        await self.db.refresh(profile)
        return profile

    async def delete(self, profile_id: int, identity: IdentityProvider) -> None:
        """Удаляет профиль, флаг роли и учетную запись.

        Профиль с поездками удалить нельзя: поездки ссылаются на него.
        """
        profile = await self.get(profile_id)
        if profile is None:
            raise NotFoundError(f"{self.role.capitalize()} not found")

        owner_column = Ride.driver_id if self.role == ROLE_DRIVER else Ride.customer_id
        result = await self.db.execute(select(Ride.id).where(owner_column == profile_id).limit(1))
        if result.scalar_one_or_none() is not None:
            raise InvalidRequestError(f"{self.role.capitalize()} has rides and cannot be deleted")

        user_id = profile.user_id
        await self.db.delete(profile)
        await self.db.execute(delete(User).where(User.id == user_id))
        await self.db.commit()
        await identity.delete_identity(user_id)
        logger.info("Deleted %s %s (identity %s)", self.role, profile_id, user_id)
