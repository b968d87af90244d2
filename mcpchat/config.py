"""Server configuration read from the environment and an optional .env file."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import dotenv_values, load_dotenv

_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class Config:
    """Settings for the chat server."""

    host: str = "localhost"
    port: str = "8080"
    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"
    max_message_length: int = 1000
    max_clients_per_room: int = 50


def load_config(
    env: Mapping[str, str] | None = None,
    dotenv_path: str | os.PathLike[str] | None = None,
) -> Config:
    """Build a Config from ``env`` (default: the process environment plus .env).

    Empty values fall back to the defaults; integers that do not parse become 0.
    """
    if env is None:
        load_dotenv(dotenv_path=dotenv_path or ".env", override=False)
        source: Mapping[str, str] = os.environ
    else:
        merged: dict[str, str] = {}
        if dotenv_path is not None:
            merged.update({k: v for k, v in dotenv_values(dotenv_path).items() if v is not None})
        merged.update(env)
        source = merged

    def get(key: str, default: str = "") -> str:
        return source.get(key) or default

    def to_int(text: str) -> int:
        return int(text) if _INTEGER.fullmatch(text) else 0

    return Config(
        host=get("HOST", "localhost"),
        port=get("PORT", "8080"),
        openai_api_key=get("OPENAI_API_KEY"),
        openai_model=get("OPENAI_MODEL", "gpt-3.5-turbo"),
        max_message_length=to_int(get("MAX_MESSAGE_LENGTH", "1000")),
        max_clients_per_room=to_int(get("MAX_CLIENTS_PER_ROOM", "50")),
    )