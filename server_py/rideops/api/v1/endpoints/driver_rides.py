from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.api.v1.errors import http_error
from rideops.core.database import get_db
from rideops.core.dependencies import RequestContext, require_driver
from rideops.core.exceptions import RideOpsError
from rideops.schemas.ride import DriverRideUpdate, RideResponse
from rideops.services.rides import RideService

router = APIRouter()


@router.get("", response_model=List[RideResponse])
async def list_my_rides(
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_driver),
):
    """Поездки, назначенные текущему водителю."""
    return await RideService(db).list_driver_rides(context.profile_id)


@router.patch("/{ride_id}", response_model=RideResponse)
async def update_my_ride(
    ride_id: int,
    payload: DriverRideUpdate,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_driver),
):
    """Водитель обновляет местоположение, время прибытия и заметки."""
    try:
        return await RideService(db).update_ride(ride_id, context, payload.model_dump(exclude_unset=True))
    except RideOpsError as exc:
        raise http_error(exc)
