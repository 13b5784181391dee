from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from rideops.core.database import AsyncSessionLocal
from rideops.core.exceptions import InvalidRequestError
from rideops.core.security import decode_access_token
from rideops.services.chat import SENDER_ADMIN, SENDER_USER, ChatService, serialize_message
from rideops.services.ride_permissions import ROLE_ADMIN, ROLES

logger = logging.getLogger(__name__)

router = APIRouter()


class ChatConnectionManager:
    """Открытые вебсокеты чата.

    Пользователь может держать несколько соединений (вкладки, устройства).
    Администраторы получают все сообщения и события присутствия: кто из
    водителей и клиентов сейчас в сети.
    """

    def __init__(self) -> None:
        self._users: Dict[str, Set[WebSocket]] = {}
        self._owners: Dict[WebSocket, str] = {}
        self._admins: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    def online(self) -> List[str]:
        return sorted(self._users)

    async def connect_user(self, identity_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            connections = self._users.setdefault(identity_id, set())
            came_online = not connections
            connections.add(websocket)
            self._owners[websocket] = identity_id
        if came_online:
            await self._notify_admins(_presence(identity_id, True))

    async def connect_admin(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._admins.add(websocket)
        await self._send(websocket, {"type": "presence_snapshot", "online": self.online()})

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            if websocket in self._admins:
                self._admins.discard(websocket)
                return
            identity_id = self._owners.pop(websocket, None)
            if identity_id is None:
                return
            connections = self._users.get(identity_id, set())
            connections.discard(websocket)
            went_offline = not connections
            if went_offline:
                self._users.pop(identity_id, None)
        if went_offline:
            await self._notify_admins(_presence(identity_id, False))

    async def push_message(self, identity_id: str, message: dict) -> None:
        """Сообщение переписки: владельцу переписки и всем администраторам."""
        async with self._lock:
            targets = list(self._users.get(identity_id, ())) + list(self._admins)
        for websocket in targets:
            await self._send(websocket, message)

    async def _notify_admins(self, payload: dict) -> None:
        async with self._lock:
            targets = list(self._admins)
        for websocket in targets:
            await self._send(websocket, payload)

    async def _send(self, websocket: WebSocket, payload: dict) -> None:
        try:
            await websocket.send_json(payload)
        except Exception:  # noqa: BLE001
            # Закрытый сокет: убираем его, сообщение уже сохранено в БД
            logger.debug("Dropping dead chat websocket")
            await self.disconnect(websocket)


def _presence(identity_id: str, online: bool) -> dict:
    return {"type": "presence", "identityId": identity_id, "online": online}


chat_manager = ChatConnectionManager()


def _resolve_token(init_payload) -> Optional[tuple[str, str]]:
    """Возвращает (identity_id, role) из первого сообщения {"token": ...}."""
    token = init_payload.get("token") if isinstance(init_payload, dict) else None
    if not token:
        return None
    payload = decode_access_token(token)
    if payload is None:
        return None
    identity_id = payload.get("sub")
    role = payload.get("role")
    if not identity_id or role not in ROLES:
        return None
    return identity_id, role


async def _store_and_push(identity_id: str, sender: str, data: dict) -> None:
    async with AsyncSessionLocal() as session:
        try:
            message = await ChatService(session).post(
                identity_id=identity_id,
                sender=sender,
                text=str(data.get("text") or ""),
                meta=data.get("meta"),
            )
        except InvalidRequestError as exc:
            # Пустые и слишком длинные сообщения просто не сохраняем
            logger.debug("Dropped chat message from %s: %s", identity_id, exc.message)
            return
    await chat_manager.push_message(identity_id, {"type": "message", "data": serialize_message(message)})


@router.websocket("/ws/user")
async def user_chat_websocket(websocket: WebSocket) -> None:
    await websocket.accept()
    try:
        resolved = _resolve_token(await websocket.receive_json())
        if not resolved:
            await websocket.close(code=4403)
            return
        identity_id, _ = resolved
        await chat_manager.connect_user(identity_id, websocket)

        while True:
            data = await websocket.receive_json()
            if isinstance(data, dict):
                await _store_and_push(identity_id, SENDER_USER, data)
    except WebSocketDisconnect:
        pass
    except Exception:  # noqa: BLE001
        logger.exception("User chat websocket error")
        try:
            await websocket.close(code=1011)
        except Exception:  # noqa: BLE001
            pass
    finally:
        await chat_manager.disconnect(websocket)


@router.websocket("/ws/admin")
async def admin_chat_websocket(websocket: WebSocket) -> None:
    await websocket.accept()
    try:
        resolved = _resolve_token(await websocket.receive_json())
        if not resolved or resolved[1] != ROLE_ADMIN:
            await websocket.close(code=4403)
            return
        await chat_manager.connect_admin(websocket)

        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                continue
            identity_id = data.get("identityId")
            if not identity_id:
                continue
            await _store_and_push(str(identity_id), SENDER_ADMIN, data)
    except WebSocketDisconnect:
        pass
    except Exception:  # noqa: BLE001
        logger.exception("Admin chat websocket error")
        try:
            await websocket.close(code=1011)
        except Exception:  # noqa: BLE001
            pass
    finally:
        await chat_manager.disconnect(websocket)
