from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.api.v1.errors import http_error
from rideops.core.database import get_db
from rideops.core.dependencies import (
    RequestContext,
    get_capabilities,
    get_email_sender,
    get_identity,
    get_request_context,
    require_admin,
)
from rideops.core.exceptions import RideOpsError
from rideops.core.init_db import SchemaCapabilities
from rideops.schemas.contact_request import ProvisioningResponse
from rideops.schemas.profile import CustomerCreate, CustomerResponse, CustomerUpdate
from rideops.services.email import CredentialEmailSender
from rideops.services.identity import IdentityProvider
from rideops.services.profiles import ProfileService
from rideops.services.provisioning import ProvisioningService
from rideops.services.ride_permissions import ROLE_ADMIN, ROLE_CUSTOMER

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])


@admin_router.get("", response_model=List[CustomerResponse])
async def list_customers(db: AsyncSession = Depends(get_db)):
    """Все клиенты, новые сверху."""
    return await ProfileService(db, ROLE_CUSTOMER).list()


@admin_router.post("", response_model=ProvisioningResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    payload: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
    email_sender: CredentialEmailSender = Depends(get_email_sender),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
):
    """Создание клиента администратором напрямую, без заявки."""
    service = ProvisioningService(db, identity, email_sender, capabilities)
    try:
        result = await service.create_account(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            role=ROLE_CUSTOMER,
            password=payload.password,
            profile_fields=payload.profile_fields(),
        )
    except RideOpsError as exc:
        raise http_error(exc)
    return ProvisioningResponse.from_result(result)


@admin_router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: int, db: AsyncSession = Depends(get_db)):
    customer = await ProfileService(db, ROLE_CUSTOMER).get(customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return customer


@admin_router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(customer_id: int, payload: CustomerUpdate, db: AsyncSession = Depends(get_db)):
    try:
        return await ProfileService(db, ROLE_CUSTOMER).update(customer_id, payload.model_dump(exclude_unset=True))
    except RideOpsError as exc:
        raise http_error(exc)


@admin_router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
):
    try:
        await ProfileService(db, ROLE_CUSTOMER).delete(customer_id, identity)
    except RideOpsError as exc:
        raise http_error(exc)


@router.get("/by-user/{user_id}", response_model=CustomerResponse)
async def get_customer_by_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Профиль клиента по id учетной записи (свой или для администратора)."""
    if context.role != ROLE_ADMIN and context.identity_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    customer = await ProfileService(db, ROLE_CUSTOMER).get_by_user(user_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return customer
