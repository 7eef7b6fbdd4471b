"""SSE server so a browser map view can follow the player.

A page connects once via EventSource to ``/events`` and receives:

  location: the room the player is in (JSON), sent on every resolved room
  line: plain text of each line shown in the main console
  reset: new session, clear any displayed state

``GET /location`` returns the last location for pages that load mid-session.
"""

import asyncio
import json
import logging
from asyncio import Queue
from typing import Optional, Set

from .mapping.models import Room

logger = logging.getLogger(__name__)

# Global event bus: the client writes, connected pages read
_clients: Set[Queue] = set()
_last_location: Optional[dict] = None


def broadcast(event: str, data: dict) -> None:
    """Send an SSE event to all connected clients. Non-blocking."""
    msg = f"event: {event}\ndata: {json.dumps(data)}\n\n"
    dead = []
    for q in _clients:
        try:
            q.put_nowait(msg)
        except asyncio.QueueFull:
            dead.append(q)
    for q in dead:
        _clients.discard(q)


def location_payload(room: Room) -> dict:
    return {
        "area_id": room.area_id,
        "level": room.level,
        "room_id": room.id,
        "name": room.name,
        "coordinates": list(room.coordinates),
    }


def send_location(room: Room) -> None:
    global _last_location
    _last_location = location_payload(room)
    broadcast("location", _last_location)


def send_line(text: str) -> None:
    broadcast("line", {"text": text})


def send_reset() -> None:
    global _last_location
    _last_location = None
    broadcast("reset", {})


def last_location() -> Optional[dict]:
    return _last_location


def _respond(writer, status: str, body: bytes, content_type: str = "application/json") -> None:
    writer.write(
        f"HTTP/1.1 {status}\r\nContent-Type: {content_type}\r\n"
        f"Content-Length: {len(body)}\r\nAccess-Control-Allow-Origin: *\r\n\r\n".encode()
    )
    writer.write(body)


async def _handle_request(reader, writer):
    """Handle a single HTTP connection."""
    request_line = await reader.readline()
    while True:
        line = await reader.readline()
        if line == b"\r\n" or line == b"\n" or not line:
            break

    parts = request_line.decode(errors="replace").split(" ")
    path = parts[1] if len(parts) > 1 else "/"

    if path == "/events":
        writer.write(
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/event-stream\r\n"
            b"Cache-Control: no-cache\r\n"
            b"Access-Control-Allow-Origin: *\r\n"
            b"Connection: keep-alive\r\n"
            b"\r\n"
        )
        await writer.drain()

        q: Queue = Queue(maxsize=100)
        _clients.add(q)
        logger.info(f"SSE client connected ({len(_clients)} total)")
        try:
            while True:
                try:
                    msg = await asyncio.wait_for(q.get(), timeout=15)
                    writer.write(msg.encode())
                    await writer.drain()
                except asyncio.TimeoutError:
                    writer.write(b": keepalive\n\n")
                    await writer.drain()
        except (ConnectionResetError, BrokenPipeError, asyncio.CancelledError):
            pass
        finally:
            _clients.discard(q)
            logger.info(f"SSE client disconnected ({len(_clients)} total)")
            writer.close()
        return

    if path == "/location":
        if _last_location is None:
            _respond(writer, "404 Not Found", b"{}")
        else:
            _respond(writer, "200 OK", json.dumps(_last_location).encode())
    else:
        _respond(writer, "404 Not Found", b"", content_type="text/plain")
    await writer.drain()
    writer.close()


async def start_server(port: int = 8889, host: str = "0.0.0.0") -> asyncio.AbstractServer:
    """Start the SSE server. Returns the server handle."""
    server = await asyncio.start_server(_handle_request, host, port)
    logger.info(f"Overlay SSE server listening on :{port}")
    return server
