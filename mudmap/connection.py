"""WebSocket connection to the MUD gateway.

The gateway wraps game output in JSON envelopes ``{"type": ..., "data": ...}``
and accepts commands the same way. Subscribers get dicts of the form
``{"type": "raw"|"system", "data": str}``: ``raw`` carries game text,
``system`` carries connection status meant for the player.
"""
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, WebSocketException

logger = logging.getLogger(__name__)

CONNECTED = "Connected successfully."
DISCONNECTED = "Disconnected."
SOCKET_ERROR = "Socket Error."


def decode_envelope(raw) -> Optional[str]:
    """Return the ``data`` string of an inbound envelope, None if malformed."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode('utf-8')
        except UnicodeDecodeError:
            return None
    try:
        msg = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(msg, dict):
        return None
    data = msg.get("data")
    return data if isinstance(data, str) else None


def encode_command(command: str) -> str:
    return json.dumps({"type": "cmd", "data": command})


class MudConnection:
    """One websocket session at a time; ``connect`` again to reconnect."""

    def __init__(self, url: str):
        self.url = url
        self._ws: Optional[ClientConnection] = None
        self._callbacks: List[Callable[[Dict[str, Any]], None]] = []

    @property
    def connected(self) -> bool:
        return self._ws is not None

    def on_message(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        self._callbacks.append(callback)

    def _emit(self, msg: Dict[str, Any]) -> None:
        for callback in self._callbacks:
            callback(msg)

    def _system(self, text: str) -> None:
        self._emit({"type": "system", "data": text})

    async def connect(self) -> bool:
        if self._ws:
            await self.close()
        logger.info(f"Connecting to {self.url}")
        try:
            self._ws = await connect(self.url)
        except (OSError, WebSocketException) as e:
            logger.error(f"Connection to {self.url} failed: {e}")
            self._system(SOCKET_ERROR)
            return False
        self._system(CONNECTED)
        return True

    async def send(self, command: str) -> None:
        """Send one command. Silently ignored while disconnected."""
        if not self._ws:
            logger.debug(f"Not connected, dropping command {command!r}")
            return
        try:
            await self._ws.send(encode_command(command))
        except ConnectionClosed as e:
            logger.warning(f"Send failed, connection closed: {e}")

    async def run(self) -> None:
        """Deliver inbound messages until the socket closes."""
        ws = self._ws
        if not ws:
            raise RuntimeError("Not connected")
        try:
            async for raw in ws:
                if self._ws is not ws:
                    # Closed or replaced; buffered frames belong to the old session
                    break
                data = decode_envelope(raw)
                if data is None:
                    logger.debug(f"Dropping malformed message: {raw!r:.200}")
                    continue
                self._emit({"type": "raw", "data": data})
        except ConnectionClosedError as e:
            logger.warning(f"Connection lost: {e}")
            self._system(SOCKET_ERROR)
        finally:
            if self._ws is ws:
                self._ws = None
                await ws.close()
            self._system(DISCONNECTED)

    async def close(self) -> None:
        ws, self._ws = self._ws, None
        if ws:
            await ws.close()
