from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from rideops.schemas.profile import Phone


class ContactRequestCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    phone: Phone
    requested_role: Literal["customer", "driver"] = Field(alias="userType")
    message: Optional[str] = Field(default="", max_length=2000)

    model_config = {"populate_by_name": True}

    @field_validator("name")
    @classmethod
    def clean_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("name must not be blank")
        return cleaned


class ContactRequestResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    requested_role: str
    message: Optional[str] = None
    status: str
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Решение администратора по заявке
class ContactRequestDecision(BaseModel):
    decision: Literal["approve", "reject"]
    admin_notes: Optional[str] = Field(default="", alias="adminNotes")
    create_account: bool = Field(default=False, alias="createAccount")
    role: Optional[Literal["customer", "driver"]] = Field(default=None, alias="userType")

    model_config = {"populate_by_name": True}


class EmailStatus(BaseModel):
    id: Optional[str] = None
    to: str
    sent_at: datetime
    error: Optional[str] = None


class ProvisioningResponse(BaseModel):
    success: bool
    account_created: bool
    message: str
    identity_id: Optional[str] = None
    profile_id: Optional[int] = None
    email: Optional[EmailStatus] = None

    @classmethod
    def from_result(cls, result) -> "ProvisioningResponse":
        email = None
        if result.email is not None:
            email = EmailStatus(
                id=result.email.id,
                to=result.email.to,
                sent_at=result.email.sent_at,
                error=result.email.error,
            )
        return cls(
            success=result.success,
            account_created=result.account_created,
            message=result.message,
            identity_id=result.identity_id,
            profile_id=result.profile_id,
            email=email,
        )
