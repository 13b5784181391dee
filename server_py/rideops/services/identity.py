"""Провайдеры учетных записей: кто может войти и с каким паролем.

Остальное приложение хранит только id учетной записи; создание, поиск и
удаление идут через ``IdentityProvider``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.core.config import settings
from rideops.core.exceptions import ConfigurationError, IdentityProviderError
from rideops.core.security import get_password_hash, verify_password
from rideops.models.identity import AuthIdentity

logger = logging.getLogger(__name__)


def check_supabase_credentials(url: str, service_role_key: str) -> None:
    if not url or not service_role_key:
        raise ConfigurationError("Missing Supabase credentials (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY)")


def check_identity_config() -> None:
    """Проверка настроек выбранного бэкенда учетных записей при старте."""
    if settings.IDENTITY_BACKEND == "supabase":
        check_supabase_credentials(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


@dataclass
class Identity:
    id: str
    email: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    email_confirmed: bool = False


class IdentityProvider:
    """Общий интерфейс бэкендов учетных записей."""

    async def find_by_email(self, email: str) -> Optional[Identity]:
        raise NotImplementedError

    async def create_identity(
        self,
        email: str,
        password: str,
        metadata: Dict[str, Any],
        email_confirm: bool = True,
    ) -> Identity:
        raise NotImplementedError

    async def delete_identity(self, identity_id: str) -> None:
        raise NotImplementedError

    async def authenticate(self, email: str, password: str) -> Optional[Identity]:
        raise NotImplementedError

    async def list_identities(self) -> List[Identity]:
        raise NotImplementedError


def _to_identity(row: AuthIdentity) -> Identity:
    return Identity(
        id=row.id,
        email=row.email,
        metadata=dict(row.user_metadata or {}),
        email_confirmed=row.email_confirmed_at is not None,
    )


class DatabaseIdentityProvider(IdentityProvider):
    """Учетные записи в базе приложения (таблица auth_identities)."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get_row_by_email(self, email: str) -> Optional[AuthIdentity]:
        result = await self.db.execute(
            select(AuthIdentity).where(func.lower(AuthIdentity.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[Identity]:
        row = await self._get_row_by_email(email)
        return _to_identity(row) if row else None

    async def create_identity(
        self,
        email: str,
        password: str,
        metadata: Dict[str, Any],
        email_confirm: bool = True,
    ) -> Identity:
        row = AuthIdentity(
            email=email.strip().lower(),
            hashed_password=get_password_hash(password),
            user_metadata=dict(metadata),
            email_confirmed_at=datetime.utcnow() if email_confirm else None,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise IdentityProviderError("A user with this email address has already been registered") from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise IdentityProviderError(f"Failed to create user account: {exc}") from exc
        await self.db.refresh(row)
        return _to_identity(row)

    async def delete_identity(self, identity_id: str) -> None:
        try:
            await self.db.execute(delete(AuthIdentity).where(AuthIdentity.id == identity_id))
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise IdentityProviderError(f"Failed to delete user {identity_id}: {exc}") from exc

    async def authenticate(self, email: str, password: str) -> Optional[Identity]:
        row = await self._get_row_by_email(email)
        if not row or not verify_password(password, row.hashed_password):
            return None
        return _to_identity(row)

    async def list_identities(self) -> List[Identity]:
        result = await self.db.execute(select(AuthIdentity).order_by(AuthIdentity.created_at.desc()))
        return [_to_identity(row) for row in result.scalars()]


class SupabaseIdentityProvider(IdentityProvider):
    """Admin API Supabase Auth (GoTrue)."""

    PAGE_SIZE = 200

    def __init__(
        self,
        url: str,
        service_role_key: str,
        anon_key: str = "",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        check_supabase_credentials(url, service_role_key)
        self.base_url = url.rstrip("/") + "/auth/v1"
        self.service_role_key = service_role_key
        self.anon_key = anon_key or service_role_key
        self._transport = transport

    def _client(self, key: Optional[str] = None) -> httpx.AsyncClient:
        key = key or self.service_role_key
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"apikey": key, "Authorization": f"Bearer {key}"},
            timeout=10.0,
            transport=self._transport,
        )

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            data = resp.json()
        except ValueError:
            return resp.text or f"HTTP {resp.status_code}"
        for key in ("msg", "message", "error_description", "error"):
            if isinstance(data, dict) and data.get(key):
                return str(data[key])
        return f"HTTP {resp.status_code}"

    @staticmethod
    def _parse_user(data: Dict[str, Any]) -> Identity:
        return Identity(
            id=data["id"],
            email=data.get("email") or "",
            metadata=dict(data.get("user_metadata") or {}),
            email_confirmed=bool(data.get("email_confirmed_at")),
        )

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        async with self._client() as client:
            try:
                resp = await client.request(method, path, **kwargs)
            except httpx.HTTPError as exc:
                raise IdentityProviderError(f"Identity provider unreachable: {exc}") from exc
        if resp.is_error:
            raise IdentityProviderError(self._error_message(resp))
        return resp

    async def list_identities(self) -> List[Identity]:
        identities: List[Identity] = []
        page = 1
        while True:
            resp = await self._request(
                "GET", "/admin/users", params={"page": page, "per_page": self.PAGE_SIZE}
            )
            users = resp.json().get("users") or []
            identities.extend(self._parse_user(u) for u in users)
            if len(users) < self.PAGE_SIZE:
                return identities
            page += 1

    async def find_by_email(self, email: str) -> Optional[Identity]:
        wanted = email.strip().lower()
        for identity in await self.list_identities():
            if identity.email.lower() == wanted:
                return identity
        return None

    async def create_identity(
        self,
        email: str,
        password: str,
        metadata: Dict[str, Any],
        email_confirm: bool = True,
    ) -> Identity:
        resp = await self._request(
            "POST",
            "/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": email_confirm,
                "user_metadata": metadata,
            },
        )
        data = resp.json()
        # Некоторые версии GoTrue оборачивают ответ в {"user": {...}}
        return self._parse_user(data.get("user") or data)

    async def delete_identity(self, identity_id: str) -> None:
        await self._request("DELETE", f"/admin/users/{identity_id}")

    async def authenticate(self, email: str, password: str) -> Optional[Identity]:
        async with self._client(self.anon_key) as client:
            try:
                resp = await client.post(
                    "/token",
                    params={"grant_type": "password"},
                    json={"email": email, "password": password},
                )
            except httpx.HTTPError as exc:
                raise IdentityProviderError(f"Identity provider unreachable: {exc}") from exc
        if resp.status_code in (400, 401):
            return None
        if resp.is_error:
            raise IdentityProviderError(self._error_message(resp))
        return self._parse_user(resp.json()["user"])


def get_identity_provider(db: AsyncSession) -> IdentityProvider:
    """Выбирает бэкенд по settings.IDENTITY_BACKEND."""
    if settings.IDENTITY_BACKEND == "supabase":
        return SupabaseIdentityProvider(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_ROLE_KEY,
            settings.SUPABASE_ANON_KEY,
        )
    return DatabaseIdentityProvider(db)
