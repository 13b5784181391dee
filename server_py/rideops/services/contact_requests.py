from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.models.contact_request import ContactRequest

PENDING = "Pending"


class ContactRequestService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, *, name: str, email: str, phone: str, requested_role: str, message: str = "") -> ContactRequest:
        """Заявка с публичной формы регистрации."""
        contact_request = ContactRequest(
            name=name,
            email=email,
            phone=phone,
            requested_role=requested_role,
            message=message or "",
            status=PENDING,
        )
        self.db.add(contact_request)
        await self.db.commit()
        await self.db.refresh(contact_request)
        return contact_request

    async def get(self, request_id: int) -> Optional[ContactRequest]:
        result = await self.db.execute(select(ContactRequest).where(ContactRequest.id == request_id))
        return result.scalar_one_or_none()

    async def list(self, status: Optional[str] = None) -> List[ContactRequest]:
        stmt = select(ContactRequest).order_by(ContactRequest.created_at.desc(), ContactRequest.id.desc())
        if status:
            stmt = stmt.where(ContactRequest.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def count_pending(self) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(ContactRequest).where(ContactRequest.status == PENDING)
        )
        return result.scalar_one()
