"""A chat room: its members and its message history."""

from __future__ import annotations

import logging
from datetime import datetime

from .client import Client
from .message import Message, MessageType

logger = logging.getLogger(__name__)


class Room:
    """Members and history of one room; every new message is sent to all members."""

    def __init__(self, room_id: str, name: str, max_clients: int) -> None:
        self.id = room_id
        self.name = name
        self.max_clients = max_clients
        self.messages: list[Message] = []
        self.created_at = datetime.now().astimezone()
        self._clients: dict[str, Client] = {}

    def __repr__(self) -> str:
        return f"Room(id={self.id!r}, name={self.name!r})"

    def add_client(self, client: Client) -> bool:
        """Add a member, replacing any of the same name; False when the room is full."""
        if len(self._clients) >= self.max_clients:
            return False

        for existing in list(self._clients.values()):
            if existing.name == client.name:
                del self._clients[existing.id]
                existing.close()

        self._clients[client.id] = client
        self._record(Message.create(MessageType.JOIN, f"{client.name} joined the room", client.name, self.id))
        return True

    def remove_client(self, client_id: str) -> None:
        """Remove and close a member; unknown ids are ignored."""
        client = self._clients.pop(client_id, None)
        if client is None:
            return
        client.close()
        self._record(Message.create(MessageType.LEAVE, f"{client.name} left the room", client.name, self.id))

    def add_message(self, message: Message) -> None:
        """Store a message and send it to every member."""
        self._record(message)

    def _record(self, message: Message) -> None:
        self.messages.append(message)
        self._broadcast(message)

    def _broadcast(self, message: Message, exclude: Client | None = None) -> None:
        data = message.to_json()
        logger.info(
            "Broadcasting message to %d clients in room %s: %s",
            len(self._clients),
            self.id,
            message.content,
        )
        for client in list(self._clients.values()):
            if exclude is not None and client.id == exclude.id:
                continue
            client.send_message(data)

    def client_count(self) -> int:
        """Number of members."""
        return len(self._clients)

    def clients(self) -> list[Client]:
        """The members, as a new list."""
        return list(self._clients.values())

    def recent_messages(self, limit: int) -> list[Message]:
        """The last ``limit`` messages, or all of them when limit is not positive or too large."""
        if limit <= 0 or limit > len(self.messages):
            limit = len(self.messages)
        return self.messages[len(self.messages) - limit :]