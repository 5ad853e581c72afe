"""
WebSocket chat relay.

Every inbound chat message is truncated, composed into a safe envelope and
broadcast to all connected clients. Frames are JSON objects with a ``type``:

    client -> server
        {"type": "chat message", "nombre": "...", "mensaje": "..."}
        {"type": "typing", "username": "..."}
        {"type": "stop typing"}

    server -> clients
        {"type": "chat message", "data": {"nombre", "mensaje", "color", "timestamp"}}
        {"type": "typing", "username": "..."}       (everyone but the sender)
        {"type": "stop typing"}                    (everyone but the sender)
        {"type": "error", "message": "..."}        (sender only)
"""

import asyncio
import json
import random
from dataclasses import dataclass, field
from itertools import count
from typing import Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from .composer import SYSTEM_ERROR_BODY, compose, utc_timestamp
from .config import ChatConfig
from .logger import get_logger
from .sanitizer import sanitize
from .validators import random_color

logger = get_logger(__name__)

EVENT_CHAT_MESSAGE = "chat message"
EVENT_TYPING = "typing"
EVENT_STOP_TYPING = "stop typing"
EVENT_ERROR = "error"

TYPING_FALLBACK_NAME = "Alguien"

_connection_ids = count(1)


@dataclass(eq=False)
class Connection:
    """A connected client and the color assigned to it."""

    websocket: WebSocket
    color: str
    id: int = field(default_factory=lambda: next(_connection_ids))


class ChatRoom:
    """
    Registry of connected clients and the broadcast logic between them.

    Broadcasts are serialized so every client sees messages in the order the
    relay received them.
    """

    def __init__(self, config: ChatConfig | None = None, rng: random.Random | None = None):
        self.config = config or ChatConfig()
        self.connections: dict[int, Connection] = {}
        self._rng = rng
        self._broadcast_lock = asyncio.Lock()

    @property
    def connected_count(self) -> int:
        return len(self.connections)

    async def connect(self, websocket: WebSocket) -> Connection:
        await websocket.accept()
        conn = Connection(websocket=websocket, color=random_color(self._rng))
        self.connections[conn.id] = conn
        logger.info(f"Client {conn.id} connected ({self.connected_count} online)")
        return conn

    def disconnect(self, conn: Connection) -> None:
        if self.connections.pop(conn.id, None) is not None:
            logger.info(f"Client {conn.id} disconnected ({self.connected_count} online)")

    def compose_message(self, frame: dict[str, Any], color: str) -> dict[str, str]:
        """Build the envelope for a chat frame sent by a client with ``color``."""
        mensaje = frame.get("mensaje") or ""
        raw = json.dumps(
            {
                "nombre": frame.get("nombre") or self.config.chat.anonymous_name,
                "mensaje": str(mensaje)[: self.config.server.max_message_length],
                "color": color,
                "timestamp": utc_timestamp(),
            }
        )
        envelope = compose(
            raw,
            default_color=self.config.chat.default_color,
            anonymous_name=self.config.chat.anonymous_name,
        )
        return json.loads(envelope)

    async def handle_frame(self, conn: Connection, text: str) -> None:
        """Dispatch one inbound frame from ``conn``."""
        try:
            frame = json.loads(text)
        except (ValueError, RecursionError):
            frame = None

        if not isinstance(frame, dict):
            logger.warning(f"Client {conn.id} sent a frame that is not a JSON object")
            await self.send_error(conn)
            return

        event = frame.get("type")
        if event == EVENT_CHAT_MESSAGE:
            envelope = self.compose_message(frame, conn.color)
            await self.broadcast({"type": EVENT_CHAT_MESSAGE, "data": envelope})
        elif event == EVENT_TYPING:
            username = sanitize(str(frame.get("username") or TYPING_FALLBACK_NAME))
            await self.broadcast({"type": EVENT_TYPING, "username": username}, exclude=conn)
        elif event == EVENT_STOP_TYPING:
            await self.broadcast({"type": EVENT_STOP_TYPING}, exclude=conn)
        else:
            logger.warning(f"Client {conn.id} sent unknown event type {event!r}")
            await self.send_error(conn)

    async def send_error(self, conn: Connection) -> None:
        await self._send(conn, json.dumps({"type": EVENT_ERROR, "message": SYSTEM_ERROR_BODY}))

    async def broadcast(self, payload: dict[str, Any], exclude: Connection | None = None) -> None:
        """Send ``payload`` to every connection except ``exclude``."""
        message = json.dumps(payload, ensure_ascii=False)
        async with self._broadcast_lock:
            for conn in list(self.connections.values()):
                if conn is exclude:
                    continue
                await self._send(conn, message)

    async def _send(self, conn: Connection, message: str) -> None:
        try:
            await conn.websocket.send_text(message)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.error(f"Error sending to client {conn.id}: {e}")
            self.disconnect(conn)


def create_app(config: ChatConfig | None = None) -> FastAPI:
    """Build the relay application."""
    config = config or ChatConfig()
    app = FastAPI(title="unachat relay")
    app.state.room = ChatRoom(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
    )

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "connections": app.state.room.connected_count}

    @app.websocket("/ws")
    async def chat_socket(websocket: WebSocket):
        room: ChatRoom = app.state.room
        conn = await room.connect(websocket)
        try:
            while True:
                text = await websocket.receive_text()
                await room.handle_frame(conn, text)
        except WebSocketDisconnect as e:
            logger.debug(f"Client {conn.id} closed the socket (code {e.code})")
        finally:
            room.disconnect(conn)

    return app
