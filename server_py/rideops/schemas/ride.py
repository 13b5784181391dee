from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from rideops.schemas.profile import CustomerSummary, DriverSummary, not_null

RideStatus = Literal["Pending", "Confirmed", "In Progress", "Completed", "Cancelled"]


class RideBooking(BaseModel):
    """Бронирование поездки клиентом."""
    pickup_location: str = Field(min_length=1)
    dropoff_location: str = Field(min_length=1)
    pickup_date: date
    pickup_time: time
    trip_type: str
    vehicle_type: str
    passengers: int = Field(default=1, ge=1, le=60)
    price: float = Field(ge=0)
    special_requirements: Optional[str] = None


class RideCreate(RideBooking):
    """Создание поездки администратором."""
    customer_id: int
    driver_id: Optional[int] = None
    status: RideStatus = "Pending"
    payment_status: str = "Pending"
    admin_notes: Optional[str] = None


class AdminRideUpdate(BaseModel):
    customer_id: Optional[int] = None
    driver_id: Optional[int] = None
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    pickup_date: Optional[date] = None
    pickup_time: Optional[time] = None
    status: Optional[RideStatus] = None
    trip_type: Optional[str] = None
    vehicle_type: Optional[str] = None
    passengers: Optional[int] = Field(default=None, ge=1, le=60)
    price: Optional[float] = Field(default=None, ge=0)
    payment_status: Optional[str] = None
    special_requirements: Optional[str] = None
    admin_notes: Optional[str] = None
    current_location: Optional[str] = None
    estimated_arrival_time: Optional[str] = None
    driver_notes: Optional[str] = None

    model_config = {"extra": "forbid"}

    @field_validator(
        "customer_id",
        "pickup_location",
        "dropoff_location",
        "pickup_date",
        "pickup_time",
        "status",
        "trip_type",
        "vehicle_type",
        "passengers",
        "price",
        "payment_status",
    )
    @classmethod
    def check_not_null(cls, value):
        return not_null(value)


class DriverRideUpdate(BaseModel):
    current_location: Optional[str] = None
    estimated_arrival_time: Optional[str] = None
    driver_notes: Optional[str] = None

    model_config = {"extra": "forbid"}


class CustomerRideUpdate(BaseModel):
    pickup_time: Optional[time] = None
    pickup_date: Optional[date] = None
    passengers: Optional[int] = Field(default=None, ge=1, le=60)
    special_requirements: Optional[str] = None

    model_config = {"extra": "forbid"}

    @field_validator("pickup_time", "pickup_date", "passengers")
    @classmethod
    def check_not_null(cls, value):
        return not_null(value)


class RideStatusUpdate(BaseModel):
    status: str


class RideAssign(BaseModel):
    driver_id: int


class RideResponse(BaseModel):
    id: int
    customer_id: int
    driver_id: Optional[int] = None
    pickup_location: str
    dropoff_location: str
    pickup_date: date
    pickup_time: time
    status: str
    trip_type: str
    vehicle_type: str
    passengers: int
    price: float
    payment_status: Optional[str] = None
    special_requirements: Optional[str] = None
    admin_notes: Optional[str] = None
    current_location: Optional[str] = None
    estimated_arrival_time: Optional[str] = None
    driver_notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    customer: Optional[CustomerSummary] = None
    driver: Optional[DriverSummary] = None

    class Config:
        from_attributes = True


class CustomerRideResponse(RideResponse):
    """Клиент не видит заметки администратора."""
    admin_notes: Optional[str] = Field(default=None, exclude=True)
