from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rideops.core.dependencies import RequestContext
from rideops.core.exceptions import (
    InvalidRequestError,
    NotFoundError,
    RideClosedError,
    RideEditRejectedError,
    RideNotFoundError,
)
from rideops.models.customer import Customer
from rideops.models.driver import Driver
from rideops.models.ride import Ride
from rideops.services.ride_permissions import (
    CANCELLED,
    CONFIRMED,
    NOT_FOUND,
    PENDING,
    RIDE_CLOSED,
    RIDE_STATUSES,
    ROLE_ADMIN,
    ROLE_CUSTOMER,
    ROLE_DRIVER,
    can_change_status,
    evaluate_ride_edit,
    is_closed,
)

logger = logging.getLogger(__name__)


def _is_owner(ride: Ride, context: RequestContext) -> bool:
    if context.role == ROLE_ADMIN:
        return True
    if context.profile_id is None:
        return False
    if context.role == ROLE_DRIVER:
        return ride.driver_id == context.profile_id
    if context.role == ROLE_CUSTOMER:
        return ride.customer_id == context.profile_id
    return False


class RideService:
    """Поездки: создание, списки по ролям и изменение с проверкой прав."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _select(self):
        return select(Ride).options(selectinload(Ride.customer), selectinload(Ride.driver))

    def _ordered(self, stmt):
        return stmt.order_by(Ride.pickup_date.asc(), Ride.pickup_time.asc(), Ride.id.asc())

    async def get_ride(self, ride_id: int) -> Optional[Ride]:
        result = await self.db.execute(
            self._select().where(Ride.id == ride_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_rides(self, status: Optional[str] = None) -> List[Ride]:
        stmt = self._select()
        if status:
            stmt = stmt.where(Ride.status == status)
        result = await self.db.execute(self._ordered(stmt))
        return list(result.scalars())

    async def list_customer_rides(self, customer_id: int) -> List[Ride]:
        result = await self.db.execute(self._ordered(self._select().where(Ride.customer_id == customer_id)))
        return list(result.scalars())

    async def list_driver_rides(self, driver_id: int) -> List[Ride]:
        result = await self.db.execute(self._ordered(self._select().where(Ride.driver_id == driver_id)))
        return list(result.scalars())

    async def _ensure_exists(self, model, record_id: Optional[int], label: str) -> None:
        if record_id is None:
            return
        result = await self.db.execute(select(model.id).where(model.id == record_id))
        if result.scalar_one_or_none() is None:
            raise InvalidRequestError(f"{label} {record_id} does not exist")

    async def create_ride(self, data: Dict[str, Any], created_by: Optional[str]) -> Ride:
        """Создание поездки администратором (или через API)."""
        await self._ensure_exists(Customer, data.get("customer_id"), "Customer")
        await self._ensure_exists(Driver, data.get("driver_id"), "Driver")

        ride = Ride(**data, created_by=created_by)
        self.db.add(ride)
        await self.db.commit()
        logger.info("Ride %s created by %s", ride.id, created_by)
        return await self.get_ride(ride.id)

    async def book_ride(self, context: RequestContext, data: Dict[str, Any]) -> Ride:
        """Бронирование клиентом: поездка всегда создается в статусе Pending."""
        payload = dict(data)
        payload.update(customer_id=context.profile_id, driver_id=None, status=PENDING)
        return await self.create_ride(payload, created_by=context.identity_id)

    async def update_ride(self, ride_id: int, context: RequestContext, updates: Dict[str, Any]) -> Ride:
        """Применяет ``updates`` к поездке от имени ``context``.

        Записываются только поля, разрешенные ``evaluate_ride_edit``. UPDATE
        фильтруется по id поездки, а для водителя и клиента еще и по id
        профиля: переназначенную тем временем поездку он не затронет.
        """
        ride = await self.get_ride(ride_id)
        if ride is None:
            raise RideNotFoundError()

        decision = evaluate_ride_edit(ride.status, context.role, updates.keys(), _is_owner(ride, context))
        if not decision.allowed:
            if decision.code == NOT_FOUND:
                raise RideNotFoundError(decision.reason)
            if decision.code == RIDE_CLOSED:
                raise RideClosedError(decision.reason)
            raise RideEditRejectedError(decision.reason)

        patch = {name: updates[name] for name in decision.fields}
        if "status" in patch and patch["status"] not in RIDE_STATUSES:
            raise InvalidRequestError("Invalid status value")
        if "customer_id" in patch:
            await self._ensure_exists(Customer, patch["customer_id"], "Customer")
        if "driver_id" in patch:
            await self._ensure_exists(Driver, patch["driver_id"], "Driver")
        patch["updated_at"] = datetime.utcnow()

        stmt = update(Ride).where(Ride.id == ride_id)
        if context.role == ROLE_DRIVER:
            stmt = stmt.where(Ride.driver_id == context.profile_id)
        elif context.role == ROLE_CUSTOMER:
            stmt = stmt.where(Ride.customer_id == context.profile_id)

        result = await self.db.execute(stmt.values(**patch))
        if result.rowcount == 0:
            await self.db.rollback()
            raise RideNotFoundError()
        await self.db.commit()

        logger.info("Ride %s updated by %s %s: %s", ride_id, context.role, context.identity_id, sorted(decision.fields))
        return await self.get_ride(ride_id)

    async def update_status(self, ride_id: int, new_status: str) -> Ride:
        ride = await self.get_ride(ride_id)
        if ride is None:
            raise NotFoundError("Ride not found")

        error = can_change_status(ride.status, new_status)
        if error:
            if is_closed(ride.status):
                raise RideClosedError(error)
            raise InvalidRequestError(error)

        ride.status = new_status
        ride.updated_at = datetime.utcnow()
        await self.db.commit()
        logger.info("Ride %s status -> %s", ride_id, new_status)
        return await self.get_ride(ride_id)

    async def assign_driver(self, ride_id: int, driver_id: int) -> Ride:
        """Назначает водителя; поездка в статусе Pending становится Confirmed."""
        ride = await self.get_ride(ride_id)
        if ride is None:
            raise NotFoundError("Ride not found")
        if is_closed(ride.status):
            raise RideClosedError()
        await self._ensure_exists(Driver, driver_id, "Driver")

        ride.driver_id = driver_id
        if ride.status == PENDING:
            ride.status = CONFIRMED
        ride.updated_at = datetime.utcnow()
        await self.db.commit()
        logger.info("Driver %s assigned to ride %s", driver_id, ride_id)
        return await self.get_ride(ride_id)

    async def cancel_ride(self, ride_id: int, context: RequestContext) -> Ride:
        ride = await self.get_ride(ride_id)
        if ride is None:
            raise RideNotFoundError()
        if context.role not in (ROLE_ADMIN, ROLE_CUSTOMER) or not _is_owner(ride, context):
            raise RideNotFoundError()
        if is_closed(ride.status):
            raise RideClosedError()

        stmt = update(Ride).where(Ride.id == ride_id)
        if context.role == ROLE_CUSTOMER:
            stmt = stmt.where(Ride.customer_id == context.profile_id)
        result = await self.db.execute(stmt.values(status=CANCELLED, updated_at=datetime.utcnow()))
        if result.rowcount == 0:
            await self.db.rollback()
            raise RideNotFoundError()
        await self.db.commit()
        logger.info("Ride %s cancelled by %s %s", ride_id, context.role, context.identity_id)
        return await self.get_ride(ride_id)

    async def delete_ride(self, ride_id: int) -> None:
        ride = await self.get_ride(ride_id)
        if ride is None:
            raise NotFoundError("Ride not found")
        await self.db.delete(ride)
        await self.db.commit()
        logger.info("Ride %s deleted", ride_id)
