#!/usr/bin/env python3
"""mudmap driver - terminal MUD client that tracks the player on the map.

Runs until stdin closes or a signal arrives:
1. Loads config and the map dataset (a broken map only disables tracking)
2. Starts the SSE overlay for the browser map view
3. Connects to the MUD gateway and pumps game output to the terminal
4. Sends each line typed on stdin as a command
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
import threading
from typing import Optional

from mudmap import overlay
from mudmap.client import MudClient
from mudmap.config import DEFAULTS, load_config
from mudmap.mapping.models import Room


def _post(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue, item) -> bool:
    try:
        loop.call_soon_threadsafe(queue.put_nowait, item)
    except RuntimeError:
        # Loop already closed, driver is exiting
        return False
    return True


def read_stdin_lines(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue, fd: int = 0) -> None:
    """Blocking stdin reader, run in a daemon thread. Puts None on EOF.

    Reads the raw fd rather than ``sys.stdin`` so a thread still blocked
    here at shutdown holds no interpreter-level buffer lock.
    """
    pending = b""
    while True:
        try:
            chunk = os.read(fd, 4096)
        except OSError:
            break
        if not chunk:
            break
        pending += chunk
        *lines, pending = pending.split(b"\n")
        for line in lines:
            if not _post(loop, queue, line.decode(errors="replace").rstrip("\r")):
                return
    if pending:
        _post(loop, queue, pending.decode(errors="replace").rstrip("\r"))
    _post(loop, queue, None)


class MudDriver:
    """Owns the client, the overlay server and the stdin reader."""

    def __init__(self, config):
        self.config = config
        self.running = True

        logging.basicConfig(
            level=logging.DEBUG if config.get("debug") else logging.INFO,
            format='%(asctime)s - %(levelname)s - %(message)s',
            handlers=[logging.StreamHandler(sys.stdout)]
        )
        # Silence noisy third-party loggers even in debug mode
        logging.getLogger("websockets").setLevel(logging.INFO)
        self.logger = logging.getLogger(__name__)

        self.client = MudClient.from_config(config, on_output=self._write)
        self.client.on_location(self._on_location)
        self._overlay_server: Optional[asyncio.AbstractServer] = None
        self._receiver: Optional[asyncio.Task] = None
        self._main: Optional[asyncio.Task] = None

    def _write(self, text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    def _on_location(self, room: Room) -> None:
        self.logger.debug(f"Location: {room.name} @ {room.coordinates}")

    def _signal_handler(self):
        print("\n[Signal] Shutting down...", flush=True)
        self.running = False
        if self._main:
            self._main.cancel()

    async def start_session(self) -> bool:
        """Connect and receive in the background until the server closes."""
        if not await self.client.connect():
            return False
        self._receiver = asyncio.create_task(self.client.run())
        self._receiver.add_done_callback(self._on_receiver_done)
        return True

    def _on_receiver_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"Receive loop failed: {error!r}")

    async def read_commands(self) -> None:
        """Forward stdin lines to the server until EOF. Reconnects on demand."""
        loop = asyncio.get_running_loop()
        lines: asyncio.Queue = asyncio.Queue()
        threading.Thread(target=read_stdin_lines, args=(loop, lines),
                         name="stdin-reader", daemon=True).start()
        while self.running:
            line = await lines.get()
            if line is None:
                break
            if not self.client.connected and not await self.start_session():
                continue
            await self.client.submit(line)

    async def run(self) -> int:
        self._main = asyncio.current_task()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._signal_handler)
            except NotImplementedError:
                pass

        if not self.client.map_enabled:
            self.logger.warning("Running without map tracking")

        port = self.config.get("overlay_port")
        if port:
            try:
                self._overlay_server = await overlay.start_server(port)
            except OSError as e:
                self.logger.error(f"Overlay server failed to start on :{port}: {e}")

        try:
            await self.start_session()
            await self.read_commands()
        except asyncio.CancelledError:
            pass
        finally:
            if self._receiver:
                self._receiver.cancel()
            await self.client.disconnect()
            if self._overlay_server:
                self._overlay_server.close()
            self.logger.info("Driver stopped.")
        return 0


async def main():
    parser = argparse.ArgumentParser(description="Terminal MUD client with map tracking")
    parser.add_argument("--server-url", dest="server_url", default=None,
                        help=f"MUD gateway WebSocket URL (default: {DEFAULTS['server_url']})")
    parser.add_argument("--map", dest="map_path", default=None,
                        help=f"Map dataset file (default: {DEFAULTS['map_path']})")
    parser.add_argument("--flush-delay", dest="flush_delay", type=float, default=None,
                        help=f"Seconds before an unterminated line is shown (default: {DEFAULTS['flush_delay']})")
    parser.add_argument("--overlay-port", dest="overlay_port", type=int, default=None,
                        help=f"SSE overlay port, 0=disable (default: {DEFAULTS['overlay_port']})")
    parser.add_argument("--debug", action="store_true", default=False,
                        help="Enable debug logging")
    args = parser.parse_args()

    # store_true gives False not None: only override if explicitly set
    cli_dict = {k: v for k, v in vars(args).items() if v is not None}
    if args.debug:
        cli_dict["debug"] = True
    else:
        cli_dict.pop("debug", None)

    config = load_config(cli_dict)
    driver = MudDriver(config)
    return await driver.run()


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
