"""HTTP and WebSocket front end of the chat server."""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from aiohttp import web

from .client import Client
from .config import Config, load_config
from .hub import Hub
from .message import format_timestamp
from .room import Room

logger = logging.getLogger(__name__)

PAGE_TITLE = "MCP Chat Server"
CHAT_TEMPLATE = "chat.html"

_PLACEHOLDER = re.compile(r"\{\{\s*\.(\w+)\s*\}\}")


def _room_summary(room: Room) -> dict[str, Any]:
    return {
        "id": room.id,
        "name": room.name,
        "client_count": room.client_count(),
        "created_at": format_timestamp(room.created_at),
    }


def _load_templates(templates_dir: Path) -> dict[str, str]:
    templates = {}
    if templates_dir.is_dir():
        templates = {p.name: p.read_text(encoding="utf-8") for p in templates_dir.iterdir() if p.is_file()}
    if not templates:
        raise FileNotFoundError(f"no templates found in {templates_dir}")
    return templates


class _Handlers:
    """Request handlers bound to one hub and one set of templates."""

    def __init__(self, hub: Hub, templates: dict[str, str]) -> None:
        self.hub = hub
        self.templates = templates

    async def list_rooms(self, request: web.Request) -> web.Response:
        summaries = [_room_summary(room) for room in self.hub.rooms()]
        return web.json_response({"success": True, "data": summaries or None})

    async def create_room(self, request: web.Request) -> web.Response:
        try:
            payload = await request.json()
        except ValueError:
            payload = None
        name = payload.get("name") if isinstance(payload, dict) else None
        if not isinstance(name, str) or not name:
            return web.json_response({"success": False, "message": "Room name is required"}, status=400)
        room = self.hub.create_room(name)
        return web.json_response({"success": True, "data": {"id": room.id, "name": room.name}}, status=201)

    async def get_room(self, request: web.Request) -> web.Response:
        room = self.hub.get_room(request.match_info["id"])
        if room is None:
            return web.json_response({"success": False, "message": "Room not found"}, status=404)
        return web.json_response({"success": True, "data": _room_summary(room)})

    async def delete_room(self, request: web.Request) -> web.Response:
        self.hub.remove_room(request.match_info["id"])
        return web.json_response({"success": True, "message": "Room deleted"})

    async def stats(self, request: web.Request) -> web.Response:
        return web.json_response({"success": True, "data": self.hub.stats()})

    async def websocket(self, request: web.Request) -> web.StreamResponse:
        room_id = request.query.get("room_id", "")
        name = request.query.get("name", "")
        if not room_id or not name:
            return web.json_response(
                {"success": False, "message": "room_id and name are required"}, status=400
            )
        ws = web.WebSocketResponse()
        if not ws.can_prepare(request).ok:
            logger.warning("WebSocket upgrade failed for %s", request.remote)
            return web.Response(status=400, text="Bad Request")
        await ws.prepare(request)
        await self.hub.handle_client(Client(name, room_id, ws, request.query.get("gpt") == "true"))
        if not ws.closed:
            await ws.close()
        return ws

    async def index(self, request: web.Request) -> web.Response:
        template = self.templates.get(CHAT_TEMPLATE)
        if template is None:
            return web.Response(status=500, text="Internal Server Error")
        body = _PLACEHOLDER.sub(
            lambda m: html.escape(str({"title": PAGE_TITLE}.get(m.group(1), ""))), template
        )
        return web.Response(text=body, content_type="text/html")


def create_app(
    config: Config | None = None,
    hub: Hub | None = None,
    static_dir: str | Path = "static",
    templates_dir: str | Path = "templates",
) -> web.Application:
    """Build the web application; raises FileNotFoundError when there are no templates."""
    config = config or load_config()
    handlers = _Handlers(hub or Hub(config), _load_templates(Path(templates_dir)))

    app = web.Application()
    app.router.add_get("/api/rooms", handlers.list_rooms)
    app.router.add_post("/api/rooms", handlers.create_room)
    app.router.add_get("/api/rooms/{id}", handlers.get_room)
    app.router.add_delete("/api/rooms/{id}", handlers.delete_room)
    app.router.add_get("/api/stats", handlers.stats)
    app.router.add_get("/ws", handlers.websocket)
    app.router.add_get("/", handlers.index)
    if Path(static_dir).is_dir():
        app.router.add_static("/static", Path(static_dir))
    return app


def main(argv: Sequence[str] | None = None) -> int:
    """Load the configuration and run the server until it stops."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    config = load_config()
    try:
        app = create_app(config)
        logger.info("Starting MCP Chat Server on %s:%s", config.host, config.port)
        web.run_app(app, host=config.host, port=int(config.port), print=None)
    except (OSError, ValueError) as exc:
        logger.error("Failed to start server: %s", exc)
        return 1
    return 0