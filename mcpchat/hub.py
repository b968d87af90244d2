"""The hub: owns the rooms, runs client sessions and routes chat requests."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

import aiohttp

from .client import Client
from .config import Config
from .gpt import GPTClient
from .message import ChatRequest, Message, MessageType
from .room import Room

logger = logging.getLogger(__name__)

HISTORY_ON_JOIN = 50
GPT_CONTEXT_MESSAGES = 10
GPT_TIMEOUT = 30.0
GPT_ERROR_TEXT = "Sorry, I'm having trouble responding right now."

_FROM_CONFIG: Any = object()


class Hub:
    """All rooms of the server and the optional GPT assistant.

    ``gpt_client`` defaults to a client built from the configuration, which is
    None when no API key is set.
    """

    def __init__(
        self,
        config: Config,
        gpt_client: Any = _FROM_CONFIG,
        gpt_timeout: float = GPT_TIMEOUT,
    ) -> None:
        self.config = config
        if gpt_client is _FROM_CONFIG:
            gpt_client = GPTClient.from_config(config.openai_api_key, config.openai_model)
        self.gpt_client = gpt_client
        self.gpt_timeout = gpt_timeout
        self._rooms: dict[str, Room] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def create_room(self, name: str) -> Room:
        """Create a room with a fresh id."""
        return self.create_room_with_id(str(uuid.uuid4()), name)

    def create_room_with_id(self, room_id: str, name: str) -> Room:
        """Create a room under the given id, replacing any room that had it."""
        room = Room(room_id, name, self.config.max_clients_per_room)
        self._rooms[room_id] = room
        logger.info("Created room: %s (ID: %s)", name, room_id)
        return room

    def get_room(self, room_id: str) -> Room | None:
        """The room with this id, or None."""
        return self._rooms.get(room_id)

    def rooms(self) -> list[Room]:
        """All rooms, as a new list."""
        return list(self._rooms.values())

    def remove_room(self, room_id: str) -> None:
        """Close every member of a room and forget it; unknown ids are ignored."""
        room = self._rooms.get(room_id)
        if room is None:
            return
        for client in room.clients():
            client.close()
        del self._rooms[room_id]
        logger.info("Removed room: %s", room_id)

    async def handle_client(self, client: Client) -> bool:
        """Join a client to its room and serve it until it disconnects.

        The room is created when it does not exist. Returns False, after closing
        the client, when the room is full; otherwise True once the session ends.
        """
        logger.info("Handling client %s for room %s", client.name, client.room_id)
        room = self.get_room(client.room_id)
        if room is None:
            logger.info("Room %s not found, creating new room", client.room_id)
            room = self.create_room_with_id(client.room_id, "Room " + client.room_id)

        if not room.add_client(client):
            logger.info("Room is full: %s", client.room_id)
            client.close()
            return False

        logger.info("Client %s joined room %s", client.name, client.room_id)
        for message in room.recent_messages(HISTORY_ON_JOIN):
            client.send_message(message.to_json())

        await self._run_session(client, room)
        return True

    async def _run_session(self, client: Client, room: Room) -> None:
        writer = asyncio.get_running_loop().create_task(self._write_loop(client))
        try:
            await self._read_loop(client)
        finally:
            room.remove_client(client.id)
            client.close()
            logger.info("Client %s disconnected from room %s", client.name, client.room_id)
            await writer

    async def _write_loop(self, client: Client) -> None:
        conn = client.conn
        async for data in client.outgoing():
            if conn is None:
                continue
            try:
                await conn.send_str(data)
            except Exception as exc:  # any transport failure ends the writer
                logger.warning("Error sending message to client: %s", exc)
                return

    async def _read_loop(self, client: Client) -> None:
        conn = client.conn
        if conn is None:
            return
        try:
            async for item in conn:
                payload = _payload(item)
                if payload is None:
                    break
                self.process_message(client, payload)
        except Exception as exc:  # a broken connection ends the session
            logger.warning("Error reading message from client: %s", exc)

    def process_message(self, client: Client, data: str | bytes) -> asyncio.Task[None] | None:
        """Handle one chat request from a client.

        Returns the task producing the assistant's reply when one was started.
        """
        try:
            request = ChatRequest.from_json(data)
        except ValueError as exc:
            logger.warning("Error unmarshaling message: %s", exc)
            return None

        room = self.get_room(client.room_id)
        if room is None:
            logger.warning("Room not found: %s", client.room_id)
            return None

        if len(request.content.encode("utf-8")) > self.config.max_message_length:
            room.add_message(Message.create(MessageType.ERROR, "Message too long", "System", client.room_id))
            return None

        if request.type == "message":
            room.add_message(Message.create(MessageType.TEXT, request.content, client.name, client.room_id))
            if self._gpt_ready():
                return self._schedule_reply(room, request.content)
            return None

        if request.type == "gpt_request":
            if self._gpt_ready():
                return self._schedule_reply(room, request.content)
            room.add_message(Message.create(MessageType.ERROR, "GPT is not available", "System", client.room_id))
            return None

        logger.info("Unknown message type: %s", request.type)
        return None

    def _gpt_ready(self) -> bool:
        return self.gpt_client is not None and self.gpt_client.is_available()

    def _schedule_reply(self, room: Room, user_message: str) -> asyncio.Task[None] | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; GPT reply skipped in room %s", room.id)
            return None
        task = loop.create_task(self._reply(room, user_message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _reply(self, room: Room, user_message: str) -> None:
        conversation = [
            message.content
            for message in room.recent_messages(GPT_CONTEXT_MESSAGES)
            if message.type is MessageType.TEXT
        ]
        try:
            response = await asyncio.wait_for(
                self.gpt_client.generate_response(conversation, user_message),
                timeout=self.gpt_timeout,
            )
        except Exception as exc:  # every failure becomes an error message in the room
            logger.warning("GPT error: %s", exc)
            room.add_message(Message.create(MessageType.ERROR, GPT_ERROR_TEXT, "GPT", room.id))
            return

        reply = Message.create(MessageType.GPT, response, "GPT Assistant", room.id)
        reply.metadata["is_ai"] = True
        room.add_message(reply)

    def stats(self) -> dict[str, Any]:
        """Room count, member count and whether the assistant is available."""
        return {
            "total_rooms": len(self._rooms),
            "total_clients": sum(room.client_count() for room in self._rooms.values()),
            "gpt_available": self._gpt_ready(),
        }


def _payload(item: Any) -> str | bytes | None:
    """Text of a received frame, or None when the connection is ending."""
    if isinstance(item, (str, bytes, bytearray)):
        return bytes(item) if isinstance(item, bytearray) else item
    kind = getattr(item, "type", None)
    if kind in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
        return item.data
    return None