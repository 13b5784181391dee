from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.core.exceptions import InvalidRequestError
from rideops.models.message import Message

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
SENDER_USER = "user"
SENDER_ADMIN = "admin"
SENDERS = (SENDER_USER, SENDER_ADMIN)


def clean_text(text: Optional[str]) -> str:
    """Обрезает пробелы и проверяет длину сообщения."""
    cleaned = (text or "").strip()
    if not cleaned:
        raise InvalidRequestError("Message text must not be empty")
    if len(cleaned) > MAX_MESSAGE_LENGTH:
        raise InvalidRequestError("Message is too long")
    return cleaned


class ChatService:
    """Переписка администратора с водителями и клиентами.

    Одна переписка на учетную запись: все сообщения хранятся с
    ``identity_id`` пользователя, ``sender`` показывает кто написал.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def post(
        self,
        *,
        identity_id: str,
        sender: str,
        text: Optional[str],
        meta: Optional[dict] = None,
    ) -> Message:
        if sender not in SENDERS:
            raise InvalidRequestError(f"Unknown sender '{sender}'")
        message = Message(
            identity_id=identity_id,
            sender=sender,
            text=clean_text(text),
            meta=meta if isinstance(meta, dict) else None,
        )
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)
        logger.debug("Message %s stored for %s (%s)", message.id, identity_id, sender)
        return message

    async def history(self, identity_id: str, limit: Optional[int] = None) -> List[Message]:
        """Сообщения переписки, старые первыми. ``limit`` оставляет самые новые."""
        stmt = select(Message).where(Message.identity_id == identity_id)
        if isinstance(limit, int) and limit > 0:
            stmt = stmt.order_by(Message.id.desc()).limit(limit)
            result = await self.db.execute(stmt)
            return list(reversed(result.scalars().all()))
        result = await self.db.execute(stmt.order_by(Message.created_at.asc(), Message.id.asc()))
        return list(result.scalars())

    async def conversations(self) -> List[Message]:
        """Последнее сообщение каждой переписки, свежие сверху (входящие админа)."""
        latest = (
            select(func.max(Message.id).label("id"))
            .group_by(Message.identity_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Message).join(latest, Message.id == latest.c.id).order_by(Message.id.desc())
        )
        return list(result.scalars())


def serialize_message(message: Message) -> dict:
    """Сообщение в виде JSON для вебсокетов."""
    return {
        "id": message.id,
        "identityId": message.identity_id,
        "sender": message.sender,
        "text": message.text,
        "createdAt": message.created_at.isoformat(),
        "meta": message.meta,
    }
