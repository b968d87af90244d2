"""Chat messages and the JSON shapes exchanged with clients."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class MessageType(str, Enum):
    """Kind of a message stored in a room."""

    TEXT = "text"
    SYSTEM = "system"
    GPT = "gpt"
    JOIN = "join"
    LEAVE = "leave"
    ERROR = "error"


def format_timestamp(moment: datetime) -> str:
    """ISO 8601 text, with UTC written as ``Z``."""
    text = moment.isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


@dataclass
class Message:
    """A message in a room's history."""

    id: str
    type: MessageType
    content: str
    sender: str
    room_id: str
    timestamp: datetime = field(default_factory=lambda: datetime.now().astimezone())
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, msg_type: MessageType | str, content: str, sender: str, room_id: str) -> Message:
        """Make a new message with a fresh id and the current time."""
        return cls(str(uuid.uuid4()), MessageType(msg_type), content, sender, room_id)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form; empty metadata is left out."""
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "content": self.content,
            "sender": self.sender,
            "room_id": self.room_id,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data

    def to_json(self) -> str:
        """Compact JSON text of the message."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


@dataclass
class ChatRequest:
    """A message sent by a client over its connection."""

    type: str = ""
    content: str = ""
    room_id: str = ""
    sender: str = ""

    @classmethod
    def from_json(cls, data: str | bytes) -> ChatRequest:
        """Parse a request; raises ValueError when it is not a valid request object."""
        try:
            payload = json.loads(data)
        except ValueError as exc:
            raise ValueError(f"invalid chat request: {exc}") from exc
        if payload is None:
            return cls()
        if not isinstance(payload, dict):
            raise ValueError("chat request must be a JSON object")
        # Keys match exactly first, then case-insensitively.
        folded = {key.lower(): value for key, value in payload.items()}
        values: dict[str, str] = {}
        for name in ("type", "content", "room_id", "sender"):
            value = payload.get(name, folded.get(name))
            if value is None:
                continue
            if not isinstance(value, str):
                raise ValueError(f"chat request field {name!r} must be a string")
            values[name] = value
        return cls(**values)


@dataclass
class ChatResponse:
    """Envelope of the HTTP API's replies."""

    success: bool
    message: str = ""
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form; an empty message and absent data are left out."""
        result: dict[str, Any] = {"success": self.success}
        if self.message:
            result["message"] = self.message
        if self.data is not None:
            result["data"] = self.data
        return result