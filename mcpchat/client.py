"""A connected chat participant with a bounded outgoing queue."""

from __future__ import annotations

import asyncio
import inspect
import uuid
from collections import deque
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

SEND_BUFFER_SIZE = 256


class Client:
    """A participant of one room.

    At most ``SEND_BUFFER_SIZE`` messages wait to be sent; one that does not
    fit closes the queue.
    """

    def __init__(self, name: str, room_id: str, conn: Any = None, is_gpt: bool = False) -> None:
        self.id = str(uuid.uuid4())
        self.name = name
        self.room_id = room_id
        self.conn = conn
        self.joined_at = datetime.now().astimezone()
        self.is_gpt = is_gpt
        self._pending: deque[str] = deque()
        self._ready = asyncio.Event()
        self._send_closed = False
        self._closed = False
        self._closing: asyncio.Task[Any] | None = None

    def __repr__(self) -> str:
        return f"Client(id={self.id!r}, name={self.name!r}, room_id={self.room_id!r})"

    def send_message(self, data: str) -> bool:
        """Queue a message; returns False when it was dropped."""
        if self._send_closed:
            return False
        if len(self._pending) >= SEND_BUFFER_SIZE:
            self._send_closed = True
        else:
            self._pending.append(data)
        self._ready.set()
        return not self._send_closed

    def close(self) -> None:
        """Close the connection and the outgoing queue; later calls do nothing."""
        if self._closed:
            return
        self._closed = self._send_closed = True
        self._ready.set()
        if self.conn is None:
            return
        result = self.conn.close()
        if inspect.isawaitable(result):
            try:
                self._closing = asyncio.ensure_future(result, loop=asyncio.get_running_loop())
            except RuntimeError:
                if inspect.iscoroutine(result):
                    result.close()

    async def outgoing(self) -> AsyncIterator[str]:
        """Yield queued messages in order until the queue is closed and drained."""
        while True:
            while self._pending:
                yield self._pending.popleft()
            if self._send_closed:
                return
            self._ready.clear()
            await self._ready.wait()

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready description of the client."""
        return {
            "id": self.id,
            "name": self.name,
            "room_id": self.room_id,
            "joined_at": self.joined_at.isoformat(),
            "is_gpt": self.is_gpt,
        }