"""
Создание аккаунтов.

Одобренная заявка превращается в рабочий аккаунт: учетная запись у
провайдера, профиль водителя или клиента, флаг роли и письмо с данными для
входа. Если профиль создать не удалось, учетная запись удаляется, чтобы не
оставалось учетных записей без профиля. Флаг роли и письмо не обязательны и
не прерывают процесс.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.core.exceptions import (
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    ProfileCreationError,
)
from rideops.core.init_db import SchemaCapabilities
from rideops.models.contact_request import ContactRequest
from rideops.models.customer import Customer
from rideops.models.driver import NOT_SPECIFIED, Driver
from rideops.models.user import User
from rideops.services.email import CredentialEmailSender, EmailResult
from rideops.services.identity import Identity, IdentityProvider
from rideops.services.passwords import generate_password
from rideops.services.ride_permissions import ROLE_CUSTOMER, ROLE_DRIVER

logger = logging.getLogger(__name__)

APPROVE = "approve"
REJECT = "reject"
DECISION_STATUS = {APPROVE: "Approved", REJECT: "Rejected"}
PROFILE_ROLES = (ROLE_DRIVER, ROLE_CUSTOMER)

DEFAULT_RATING = 5.0


@dataclass
class ProvisioningResult:
    """Результат создания аккаунта или обработки заявки."""
    success: bool
    account_created: bool = False
    message: str = ""
    identity_id: Optional[str] = None
    profile_id: Optional[int] = None
    email: Optional[EmailResult] = None


class ProvisioningService:
    def __init__(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        email_sender: CredentialEmailSender,
        capabilities: SchemaCapabilities = SchemaCapabilities(),
    ) -> None:
        self.db = db
        self.identity = identity
        self.email_sender = email_sender
        self.capabilities = capabilities

    async def process_contact_request(
        self,
        request_id: int,
        decision: str,
        admin_notes: str = "",
        create_account: bool = False,
        role: Optional[str] = None,
    ) -> ProvisioningResult:
        """Одобрение или отклонение заявки, при необходимости с созданием аккаунта.

        Статус заявки сохраняется первым и остается, даже если создание
        аккаунта потом упадет. Уже обработанную заявку можно обработать
        повторно: второй аккаунт на тот же email даст ``ConflictError``.
        """
        if decision not in DECISION_STATUS:
            raise InvalidRequestError(f"Unknown decision '{decision}'")

        result = await self.db.execute(select(ContactRequest).where(ContactRequest.id == request_id))
        contact_request = result.scalar_one_or_none()
        if contact_request is None:
            raise NotFoundError("Contact request not found")

        contact_request.status = DECISION_STATUS[decision]
        contact_request.admin_notes = admin_notes or ""
        contact_request.updated_at = datetime.utcnow()
        await self.db.commit()
        logger.info("Contact request %s marked %s", request_id, contact_request.status)

        if decision == REJECT or not create_account:
            return ProvisioningResult(success=True, message="Contact request updated")

        result = await self.provision_account(
            name=contact_request.name,
            email=contact_request.email,
            phone=contact_request.phone,
            role=role or contact_request.requested_role,
        )
        result.message = "Contact request approved and user account created"
        return result

    async def create_account(
        self,
        name: str,
        email: str,
        phone: str,
        role: str,
        password: Optional[str] = None,
        profile_fields: Optional[Dict[str, Any]] = None,
    ) -> ProvisioningResult:
        """Создание аккаунта администратором напрямую, без заявки.

        Если пароль не передан, он генерируется и отправляется по почте.
        """
        result = await self.provision_account(
            name=name,
            email=email,
            phone=phone,
            role=role,
            password=password,
            profile_fields=profile_fields,
            send_email=password is None,
        )
        result.message = f"{role.capitalize()} created successfully"
        return result

    async def provision_account(
        self,
        name: str,
        email: str,
        phone: str,
        role: str,
        password: Optional[str] = None,
        profile_fields: Optional[Dict[str, Any]] = None,
        send_email: bool = True,
    ) -> ProvisioningResult:
        if role not in PROFILE_ROLES:
            raise InvalidRequestError(f"Role must be one of: {', '.join(PROFILE_ROLES)}")

        if await self.identity.find_by_email(email) is not None:
            raise ConflictError(f"An account with email {email} already exists")

        password = password or generate_password()

        # IdentityProviderError propagates as is: nothing has been created yet
        identity = await self.identity.create_identity(
            email=email,
            password=password,
            metadata={"name": name, "phone": phone, "user_type": role},
            email_confirm=True,
        )
        logger.info("Created %s identity %s for %s", role, identity.id, email)

        profile = await self._create_profile(identity, name, email, phone, role, profile_fields or {})
        # rollback in _set_role_flag expires the profile instance
        profile_id = profile.id
        await self._set_role_flag(identity, email, role)

        email_result = None
        if send_email:
            email_result = await self._send_credentials(email, name, password, role)

        return ProvisioningResult(
            success=True,
            account_created=True,
            identity_id=identity.id,
            profile_id=profile_id,
            email=email_result,
        )

    async def _create_profile(
        self,
        identity: Identity,
        name: str,
        email: str,
        phone: str,
        role: str,
        profile_fields: Dict[str, Any],
    ):
        if role == ROLE_DRIVER:
            profile = Driver(
                user_id=identity.id,
                name=name,
                email=email,
                phone=phone,
                status="Active",
                vehicle_model=profile_fields.get("vehicle_model") or NOT_SPECIFIED,
                vehicle_year=profile_fields.get("vehicle_year") or NOT_SPECIFIED,
                vehicle_plate=profile_fields.get("vehicle_plate") or NOT_SPECIFIED,
                vehicle_color=profile_fields.get("vehicle_color") or NOT_SPECIFIED,
                license_number=profile_fields.get("license_number"),
                rating=DEFAULT_RATING,
                total_rides=0,
            )
        else:
            profile = Customer(
                user_id=identity.id,
                name=name,
                email=email,
                phone=phone,
                status="Active",
                location=profile_fields.get("location") or "",
                rating=DEFAULT_RATING,
                total_rides=0,
                total_spent=0,
            )

        self.db.add(profile)
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Error creating %s profile for %s: %s", role, email, exc)
            await self._delete_identity_quietly(identity)
            raise ProfileCreationError(f"Failed to create {role} profile: {exc}") from exc

        await self.db.refresh(profile)
        return profile

    async def _delete_identity_quietly(self, identity: Identity) -> None:
        try:
            await self.identity.delete_identity(identity.id)
            logger.info("Rolled back identity %s after profile failure", identity.id)
        except Exception:  # noqa: BLE001
            # Нет механизма повторной попытки: учетная запись остается без профиля
            logger.exception("Failed to delete identity %s (%s), it is now orphaned", identity.id, identity.email)

    async def _set_role_flag(self, identity: Identity, email: str, role: str) -> None:
        if not self.capabilities.role_flags:
            logger.warning("Role flag table is missing, skipping role flag for %s", identity.id)
            return
        self.db.add(User(id=identity.id, email=email, role=role))
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.warning("Failed to set role flag for %s: %s", identity.id, exc)

    async def _send_credentials(self, email: str, name: str, password: str, role: str) -> EmailResult:
        try:
            result = await self.email_sender.send_credentials(email, name, password, role)
        except Exception as exc:  # noqa: BLE001
            result = EmailResult(to=email, error=str(exc))
        if result.error:
            logger.warning("Credentials email to %s failed: %s", email, result.error)
        # Резервный канал: пароль всегда остается в логах сервера
        logger.info("Created user account for %s (%s) with temp password: %s", name, email, password)
        return result
