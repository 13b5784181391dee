from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from rideops.api.v1.errors import http_error
from rideops.core.database import get_db
from rideops.core.dependencies import RequestContext, get_request_context, require_admin
from rideops.core.exceptions import RideOpsError
from rideops.schemas.chat import ChatMessageCreate, ChatMessageResponse
from rideops.services.chat import SENDER_ADMIN, SENDER_USER, ChatService, serialize_message
from rideops.services.ride_permissions import ROLE_ADMIN
from rideops.websockets.chat_ws import chat_manager

router = APIRouter()

HISTORY_LIMIT = 500


def _check_access(identity_id: str, context: RequestContext) -> None:
    if context.role != ROLE_ADMIN and context.identity_id != identity_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )


@router.get("", response_model=List[ChatMessageResponse], dependencies=[Depends(require_admin)])
async def list_conversations(db: AsyncSession = Depends(get_db)):
    """Входящие администратора: последнее сообщение каждой переписки."""
    return await ChatService(db).conversations()


@router.get("/online", dependencies=[Depends(require_admin)])
async def list_online() -> dict:
    """Id учетных записей, у которых сейчас открыт чат."""
    return {"online": chat_manager.online()}


@router.get("/{identity_id}", response_model=List[ChatMessageResponse])
async def get_messages(
    identity_id: str,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Переписка пользователя с администратором."""
    _check_access(identity_id, context)
    return await ChatService(db).history(identity_id, limit=HISTORY_LIMIT)


@router.post(
    "/{identity_id}",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    identity_id: str,
    payload: ChatMessageCreate,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    _check_access(identity_id, context)

    sender = SENDER_ADMIN if context.role == ROLE_ADMIN else SENDER_USER
    try:
        message = await ChatService(db).post(
            identity_id=identity_id,
            sender=sender,
            text=payload.text,
            meta=payload.meta,
        )
    except RideOpsError as exc:
        raise http_error(exc)

    await chat_manager.push_message(identity_id, {"type": "message", "data": serialize_message(message)})
    return message
