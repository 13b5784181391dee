from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator

from rideops.core.phone import normalize_phone


def _check_phone(value: str) -> str:
    normalized = normalize_phone(value)
    if not normalized:
        raise ValueError("invalid phone number")
    return normalized


Phone = Annotated[str, AfterValidator(_check_phone)]


def not_null(value):
    # Поле можно не передавать, но null для NOT NULL колонки недопустим
    if value is None:
        raise ValueError("must not be null")
    return value


class VehicleInfo(BaseModel):
    model: Optional[str] = None
    year: Optional[str] = None
    plate: Optional[str] = None
    color: Optional[str] = None


class AccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    phone: Phone
    # Без пароля он будет сгенерирован и отправлен на почту
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)


class DriverCreate(AccountCreate):
    vehicle: Optional[VehicleInfo] = None
    license_number: Optional[str] = None

    def profile_fields(self) -> dict:
        vehicle = self.vehicle or VehicleInfo()
        return {
            "vehicle_model": vehicle.model,
            "vehicle_year": vehicle.year,
            "vehicle_plate": vehicle.plate,
            "vehicle_color": vehicle.color,
            "license_number": self.license_number,
        }


class CustomerCreate(AccountCreate):
    location: Optional[str] = None

    def profile_fields(self) -> dict:
        return {"location": self.location}


class DriverUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[Phone] = None
    status: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_year: Optional[str] = None
    vehicle_plate: Optional[str] = None
    vehicle_color: Optional[str] = None
    license_number: Optional[str] = None

    model_config = {"extra": "forbid"}

    @field_validator("name", "phone")
    @classmethod
    def check_not_null(cls, value):
        return not_null(value)


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[Phone] = None
    status: Optional[str] = None
    location: Optional[str] = None

    model_config = {"extra": "forbid"}

    @field_validator("name", "phone")
    @classmethod
    def check_not_null(cls, value):
        return not_null(value)


class CustomerSummary(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    rating: Optional[float] = None

    class Config:
        from_attributes = True


class DriverSummary(CustomerSummary):
    vehicle_model: Optional[str] = None
    vehicle_plate: Optional[str] = None
    vehicle_color: Optional[str] = None


class CustomerResponse(CustomerSummary):
    user_id: str
    status: Optional[str] = None
    location: Optional[str] = None
    total_rides: int = 0
    total_spent: float = 0
    created_at: datetime
    updated_at: Optional[datetime] = None


class DriverResponse(DriverSummary):
    user_id: str
    status: Optional[str] = None
    vehicle_year: Optional[str] = None
    license_number: Optional[str] = None
    total_rides: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None
