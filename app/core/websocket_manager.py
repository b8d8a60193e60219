# app/core/websocket_manager.py
"""
WebSocket manager: per-user channels, per-connection rooms, heartbeat and a
short offline buffer. Frames are {"event": name, "data": payload}; clients
treat them as hints and re-fetch over REST.
"""
import asyncio
import json
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from app.core.event_bus import event_bus
from app.shared.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class BufferedFrame:
    frame: dict
    timestamp: datetime = field(default_factory=datetime.utcnow)


class ClientInfo:
    """Information about one websocket client"""

    def __init__(self, websocket: WebSocket, user_id: str):
        self.websocket = websocket
        self.user_id = user_id
        self.rooms: Set[str] = set()
        self.connected_at = datetime.utcnow()
        self.last_pong = datetime.utcnow()

    def update_activity(self):
        self.last_pong = datetime.utcnow()


class WebSocketManager:
    def __init__(self):
        self.rooms: Dict[str, List[WebSocket]] = {}
        self.user_connections: Dict[str, List[WebSocket]] = {}
        self.client_info: Dict[WebSocket, ClientInfo] = {}
        self.offline_buffer: Dict[str, List[BufferedFrame]] = defaultdict(list)

        # Configuration
        self.ping_interval = 30
        self.pong_timeout = 10
        self.max_message_size = 16384
        self.max_buffer_size = 50
        self.buffer_ttl = 300

        self._tasks: List[asyncio.Task] = []
        self._background: Set[asyncio.Task] = set()
        self._started = False

    async def start(self):
        """Start background maintenance tasks (inside a running event loop)"""
        if self._started:
            return
        loop = asyncio.get_running_loop()
        self._tasks = [
            loop.create_task(self._heartbeat_loop(), name="ws-heartbeat"),
            loop.create_task(self._cleanup_loop(), name="ws-cleanup"),
        ]
        self._started = True
        logger.info("WebSocketManager background tasks started")

    async def stop(self):
        if not self._started:
            return
        for t in self._tasks:
            t.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        self._started = False
        logger.info("WebSocketManager background tasks stopped")

    async def connect(self, websocket: WebSocket, user_id: str):
        await websocket.accept()

        self.client_info[websocket] = ClientInfo(websocket, user_id)
        self.user_connections.setdefault(user_id, []).append(websocket)

        await self._send_direct(websocket, {
            "event": "connected",
            "data": {"userId": user_id, "timestamp": datetime.utcnow().isoformat()},
        })

        # Frames addressed to the user while offline
        for buffered in self.offline_buffer.pop(user_id, []):
            await self._send_direct(websocket, buffered.frame)

        logger.info(f"WebSocket connected: user={user_id}")

    def spawn(self, coro) -> asyncio.Task:
        """Run follow-up work outside the caller's task, which may be cancelled"""
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def disconnect(self, websocket: WebSocket) -> Optional[ClientInfo]:
        info = self.client_info.pop(websocket, None)
        if not info:
            return None

        for room in list(info.rooms):
            self._remove_from_room(room, websocket)

        sockets = self.user_connections.get(info.user_id)
        if sockets and websocket in sockets:
            sockets.remove(websocket)
            if not sockets:
                del self.user_connections[info.user_id]

        logger.info(f"WebSocket disconnected: user={info.user_id}")
        return info

    def join_room(self, websocket: WebSocket, room: str):
        info = self.client_info.get(websocket)
        if not info:
            return
        members = self.rooms.setdefault(room, [])
        if websocket not in members:
            members.append(websocket)
        info.rooms.add(room)

    def leave_room(self, websocket: WebSocket, room: str):
        info = self.client_info.get(websocket)
        if info:
            info.rooms.discard(room)
        self._remove_from_room(room, websocket)

    def _remove_from_room(self, room: str, websocket: WebSocket):
        members = self.rooms.get(room)
        if not members:
            return
        if websocket in members:
            members.remove(websocket)
        if not members:
            del self.rooms[room]

    async def broadcast(self, room: str, frame: dict, exclude: Optional[Set[str]] = None):
        """Send a frame to every client in a room"""
        stale = []
        for websocket in list(self.rooms.get(room, [])):
            info = self.client_info.get(websocket)
            if not info or (exclude and info.user_id in exclude):
                continue
            if not await self._send_direct(websocket, frame):
                stale.append(websocket)
        for websocket in stale:
            self.disconnect(websocket)

    async def send_to_user(self, user_id: str, frame: dict):
        """Send a frame to all of a user's clients, buffering while offline"""
        sent = False
        stale = []
        for websocket in list(self.user_connections.get(user_id, [])):
            if await self._send_direct(websocket, frame):
                sent = True
            else:
                stale.append(websocket)
        for websocket in stale:
            self.disconnect(websocket)

        if not sent:
            buffer = self.offline_buffer[user_id]
            if len(buffer) < self.max_buffer_size:
                buffer.append(BufferedFrame(frame))

    async def handle_message(self, websocket: WebSocket, message: str):
        """Parse a client frame and publish it as websocket:{event}"""
        if len(message) > self.max_message_size:
            await self.send_error(websocket, "Message too large")
            return

        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            await self.send_error(websocket, "Invalid JSON")
            return

        info = self.client_info.get(websocket)
        if not info or not isinstance(payload, dict):
            return
        info.update_activity()

        event = payload.get("event") or payload.get("type")
        if event == "ping":
            await self._send_direct(websocket, {"event": "pong", "data": {}})
            return
        if event == "pong" or not event:
            return

        await event_bus.publish(f"websocket:{event}", {
            "user_id": info.user_id,
            "websocket": websocket,
            "data": payload.get("data"),
        })

    async def send_error(self, websocket: WebSocket, message: str, **extra):
        await self._send_direct(websocket, {"event": "error", "data": {"error": message, **extra}})

    async def _send_direct(self, websocket: WebSocket, frame: dict) -> bool:
        try:
            if websocket.client_state == WebSocketState.CONNECTED:
                await websocket.send_json(frame)
                return True
        except Exception as e:
            logger.debug(f"Direct send failed: {e}")
        return False

    async def _heartbeat_loop(self):
        while True:
            try:
                await asyncio.sleep(self.ping_interval)
                now = datetime.utcnow()
                for websocket, info in list(self.client_info.items()):
                    if (now - info.last_pong).total_seconds() > self.ping_interval + self.pong_timeout:
                        logger.warning(f"Connection stale for user {info.user_id}")
                        self.disconnect(websocket)
                        await event_bus.publish("websocket:disconnected", {
                            "user_id": info.user_id,
                            "rooms": list(info.rooms),
                        })
                        continue
                    await self._send_direct(websocket, {"event": "ping", "data": {}})
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Heartbeat error: {e}")

    async def _cleanup_loop(self):
        while True:
            try:
                await asyncio.sleep(60)
                now = datetime.utcnow()
                for user_id in list(self.offline_buffer.keys()):
                    fresh = [
                        b for b in self.offline_buffer[user_id]
                        if (now - b.timestamp).total_seconds() < self.buffer_ttl
                    ]
                    if fresh:
                        self.offline_buffer[user_id] = fresh
                    else:
                        del self.offline_buffer[user_id]

                for websocket in list(self.client_info.keys()):
                    if websocket.client_state != WebSocketState.CONNECTED:
                        self.disconnect(websocket)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Cleanup error: {e}")

    def get_connection_stats(self) -> Dict:
        return {
            "clients": len(self.client_info),
            "users": len(self.user_connections),
            "rooms": len(self.rooms),
            "buffered_frames": sum(len(b) for b in self.offline_buffer.values()),
        }


# Global instance
websocket_manager = WebSocketManager()
