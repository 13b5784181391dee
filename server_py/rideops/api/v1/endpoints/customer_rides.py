from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.api.v1.errors import http_error
from rideops.core.database import get_db
from rideops.core.dependencies import RequestContext, require_customer
from rideops.core.exceptions import RideOpsError
from rideops.schemas.ride import CustomerRideResponse, CustomerRideUpdate, RideBooking
from rideops.services.rides import RideService

router = APIRouter()


@router.get("", response_model=List[CustomerRideResponse])
async def list_my_rides(
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_customer),
):
    return await RideService(db).list_customer_rides(context.profile_id)


@router.post("", response_model=CustomerRideResponse, status_code=status.HTTP_201_CREATED)
async def book_ride(
    payload: RideBooking,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_customer),
):
    """Бронирование поездки клиентом, статус Pending до назначения водителя."""
    try:
        return await RideService(db).book_ride(context, payload.model_dump())
    except RideOpsError as exc:
        raise http_error(exc)


@router.patch("/{ride_id}", response_model=CustomerRideResponse)
async def update_my_ride(
    ride_id: int,
    payload: CustomerRideUpdate,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_customer),
):
    try:
        return await RideService(db).update_ride(ride_id, context, payload.model_dump(exclude_unset=True))
    except RideOpsError as exc:
        raise http_error(exc)


@router.post("/{ride_id}/cancel", response_model=CustomerRideResponse)
async def cancel_my_ride(
    ride_id: int,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_customer),
):
    try:
        return await RideService(db).cancel_ride(ride_id, context)
    except RideOpsError as exc:
        raise http_error(exc)
