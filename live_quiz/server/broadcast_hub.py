"""Room membership and fan-out for realtime connections."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol
from uuid import uuid4

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class Connection(Protocol):
    connection_id: str
    session_code: str | None
    role: str | None
    participant_id: str | None
    participant_name: str | None

    def send(self, event: str, data: dict[str, Any]) -> None:
        ...


class ClientConnection:
    """One websocket client with an ordered outbound queue.

    ``send`` only enqueues; a single writer task drains the queue, so frames
    reach the client in exactly the order they were emitted.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self.connection_id = uuid4().hex
        self.session_code: str | None = None
        self.role: str | None = None
        self.participant_id: str | None = None
        self.participant_name: str | None = None
        self._websocket = websocket
        self._outbox: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
        self._closed = False

    def send(self, event: str, data: dict[str, Any]) -> None:
        if self._closed:
            return
        self._outbox.put_nowait({"event": event, "data": data})

    async def run_writer(self) -> None:
        while True:
            frame = await self._outbox.get()
            if frame is None:
                break
            try:
                await self._websocket.send_json(frame)
            except Exception as exc:
                logger.debug("Dropping writer for %s: %s", self.connection_id, exc)
                self._closed = True
                break

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._outbox.put_nowait(None)


class BroadcastHub:
    """Owns the rooms: one per session code, created on first join and
    discarded when its last connection leaves."""

    def __init__(self) -> None:
        self._rooms: dict[str, dict[str, Connection]] = {}

    def join(self, connection: Connection, session_code: str) -> int:
        """Add ``connection`` to the room, moving it out of any previous room."""
        if connection.session_code and connection.session_code != session_code:
            self.leave(connection)
        room = self._rooms.setdefault(session_code, {})
        room[connection.connection_id] = connection
        connection.session_code = session_code
        logger.info(
            "%s joined room %s (%d connections)",
            connection.role or "client",
            session_code,
            len(room),
        )
        return len(room)

    def leave(self, connection: Connection) -> bool:
        session_code = connection.session_code
        if not session_code:
            return False
        room = self._rooms.get(session_code)
        if room is None or room.pop(connection.connection_id, None) is None:
            return False
        if not room:
            del self._rooms[session_code]
            logger.info("Room %s closed", session_code)
        return True

    def emit_to_room(
        self,
        session_code: str,
        event: str,
        data: dict[str, Any],
        exclude: Connection | None = None,
    ) -> int:
        room = self._rooms.get(session_code)
        if not room:
            return 0
        delivered = 0
        for connection in list(room.values()):
            if exclude is not None and connection.connection_id == exclude.connection_id:
                continue
            connection.send(event, data)
            delivered += 1
        logger.debug("%s -> room %s (%d connections)", event, session_code, delivered)
        return delivered

    @staticmethod
    def emit_private(connection: Connection, event: str, data: dict[str, Any]) -> None:
        connection.send(event, data)

    def room_size(self, session_code: str) -> int:
        return len(self._rooms.get(session_code, {}))

    def has_room(self, session_code: str) -> bool:
        return session_code in self._rooms

    def room_codes(self) -> set[str]:
        return set(self._rooms)
