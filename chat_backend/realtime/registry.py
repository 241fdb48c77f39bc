"""In-memory chat room bookkeeping for the Socket.IO server.

Rooms are named ``chat_<id>``. The registry keeps both directions of the
connection/room relation so a disconnect only walks the rooms that connection
joined. Delivery goes through the Socket.IO room itself.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


def room_for_chat(chat_id: int | str) -> str:
    return f"chat_{chat_id}"


class RoomRegistry:
    def __init__(self, server: Any) -> None:
        self.server = server
        self._rooms: dict[str, set[str]] = {}
        self._connections: dict[str, set[str]] = {}

    async def join(self, sid: str, chat_id: int | str) -> str:
        room = room_for_chat(chat_id)
        self._rooms.setdefault(room, set()).add(sid)
        self._connections.setdefault(sid, set()).add(room)
        await self.server.enter_room(sid, room)
        logger.debug("Room %s now has %d connection(s)", room, len(self._rooms[room]))
        return room

    async def leave(self, sid: str, chat_id: int | str) -> str:
        room = room_for_chat(chat_id)
        self._discard(sid, room)
        await self.server.leave_room(sid, room)
        return room

    def members(self, chat_id: int | str) -> frozenset[str]:
        return frozenset(self._rooms.get(room_for_chat(chat_id), ()))

    def rooms_for(self, sid: str) -> frozenset[str]:
        return frozenset(self._connections.get(sid, ()))

    def drop_connection(self, sid: str) -> frozenset[str]:
        """Forget every room ``sid`` joined and return them.

        The Socket.IO server already detaches a disconnected sid from its
        rooms, so only the registry's own maps are touched here.
        """

        rooms = frozenset(self._connections.pop(sid, ()))
        for room in rooms:
            members = self._rooms.get(room)
            if members is None:
                continue
            members.discard(sid)
            if not members:
                del self._rooms[room]
        return rooms

    async def broadcast(
        self,
        chat_id: int | str,
        event: str,
        payload: dict[str, Any],
        skip_sid: str | None = None,
    ) -> None:
        await self.server.emit(
            event,
            payload,
            room=room_for_chat(chat_id),
            skip_sid=skip_sid,
        )

    def _discard(self, sid: str, room: str) -> None:
        members = self._rooms.get(room)
        if members is not None:
            members.discard(sid)
            if not members:
                del self._rooms[room]
        joined = self._connections.get(sid)
        if joined is not None:
            joined.discard(room)
            if not joined:
                del self._connections[sid]
