from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.api.v1.errors import http_error
from rideops.core.database import get_db
from rideops.core.dependencies import RequestContext, require_admin
from rideops.core.exceptions import RideOpsError
from rideops.schemas.ride import (
    AdminRideUpdate,
    RideAssign,
    RideCreate,
    RideResponse,
    RideStatusUpdate,
)
from rideops.services.rides import RideService

router = APIRouter()


@router.get("", response_model=List[RideResponse])
async def list_rides(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Все поездки с клиентом и водителем, по дате и времени подачи."""
    return await RideService(db).list_rides(status=status_filter)


@router.post("", response_model=RideResponse, status_code=status.HTTP_201_CREATED)
async def create_ride(
    payload: RideCreate,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    try:
        return await RideService(db).create_ride(payload.model_dump(), created_by=context.identity_id)
    except RideOpsError as exc:
        raise http_error(exc)


@router.get("/{ride_id}", response_model=RideResponse)
async def get_ride(
    ride_id: int,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    ride = await RideService(db).get_ride(ride_id)
    if ride is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ride not found")
    return ride


@router.patch("/{ride_id}", response_model=RideResponse)
async def update_ride(
    ride_id: int,
    payload: AdminRideUpdate,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    try:
        return await RideService(db).update_ride(ride_id, context, payload.model_dump(exclude_unset=True))
    except RideOpsError as exc:
        raise http_error(exc)


@router.patch("/{ride_id}/status", response_model=RideResponse)
async def update_ride_status(
    ride_id: int,
    payload: RideStatusUpdate,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Смена статуса; завершенные и отмененные поездки не меняются."""
    try:
        return await RideService(db).update_status(ride_id, payload.status)
    except RideOpsError as exc:
        raise http_error(exc)


@router.patch("/{ride_id}/assign", response_model=RideResponse)
async def assign_driver(
    ride_id: int,
    payload: RideAssign,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    try:
        return await RideService(db).assign_driver(ride_id, payload.driver_id)
    except RideOpsError as exc:
        raise http_error(exc)


@router.post("/{ride_id}/cancel", response_model=RideResponse)
async def cancel_ride(
    ride_id: int,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    try:
        return await RideService(db).cancel_ride(ride_id, context)
    except RideOpsError as exc:
        raise http_error(exc)


@router.delete("/{ride_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ride(
    ride_id: int,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    try:
        await RideService(db).delete_ride(ride_id)
    except RideOpsError as exc:
        raise http_error(exc)
