"""Multi-room WebSocket chat server on aiohttp with an optional AI assistant."""

__version__ = "0.1.0"