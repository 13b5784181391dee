from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.api.v1.errors import http_error
from rideops.core.database import get_db
from rideops.core.dependencies import (
    get_capabilities,
    get_email_sender,
    get_identity,
    require_admin,
)
from rideops.core.exceptions import RideOpsError
from rideops.core.init_db import SchemaCapabilities
from rideops.schemas.contact_request import (
    ContactRequestCreate,
    ContactRequestDecision,
    ContactRequestResponse,
    ProvisioningResponse,
)
from rideops.services.contact_requests import ContactRequestService
from rideops.services.email import CredentialEmailSender
from rideops.services.identity import IdentityProvider
from rideops.services.provisioning import ProvisioningService

# Публичная форма заявки
router = APIRouter()
# Обработка заявок администратором
admin_router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_contact_request(
    payload: ContactRequestCreate,
    db: AsyncSession = Depends(get_db),
):
    """Заявка на доступ к платформе от будущего водителя или клиента."""
    contact_request = await ContactRequestService(db).create(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        requested_role=payload.requested_role,
        message=payload.message or "",
    )
    return {
        "success": True,
        "message": "Contact request submitted successfully",
        "id": contact_request.id,
    }


@admin_router.get("", response_model=List[ContactRequestResponse])
async def list_contact_requests(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db),
):
    return await ContactRequestService(db).list(status=status_filter)


@admin_router.get("/count")
async def count_pending_contact_requests(db: AsyncSession = Depends(get_db)):
    """Количество необработанных заявок (для бейджа уведомлений)."""
    count = await ContactRequestService(db).count_pending()
    return {"count": count}


@admin_router.get("/{request_id}", response_model=ContactRequestResponse)
async def get_contact_request(request_id: int, db: AsyncSession = Depends(get_db)):
    contact_request = await ContactRequestService(db).get(request_id)
    if contact_request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact request not found")
    return contact_request


@admin_router.put("/{request_id}", response_model=ProvisioningResponse)
async def decide_contact_request(
    request_id: int,
    payload: ContactRequestDecision,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
    email_sender: CredentialEmailSender = Depends(get_email_sender),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
):
    """Одобрение или отклонение заявки, при необходимости с созданием аккаунта."""
    service = ProvisioningService(db, identity, email_sender, capabilities)
    try:
        result = await service.process_contact_request(
            request_id,
            payload.decision,
            admin_notes=payload.admin_notes or "",
            create_account=payload.create_account,
            role=payload.role,
        )
    except RideOpsError as exc:
        raise http_error(exc)
    return ProvisioningResponse.from_result(result)
