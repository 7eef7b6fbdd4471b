"""MUD client: wires the connection, framer, consoles and room resolver."""
import logging
from typing import Any, Callable, Dict, List, Optional

from . import overlay
from .ansi import strip_ansi
from .connection import MudConnection
from .console import Console
from .framer import FLUSH_DELAY, LineEvent, StreamFramer
from .mapping import MapData, MapLoadError, RoomIndex, RoomResolver, load_map
from .mapping.models import Room
from .triggers import RoomBlock, RoomBlockTracker, is_comms

logger = logging.getLogger(__name__)

ECHO_TEMPLATE = "\x1b[90m{}\x1b[0m"


class MudClient:
    """One player session.

    Game text flows connection -> framer -> triggers -> consoles. Room blocks
    found by the triggers are resolved against the map; the last match is
    ``location``. With no map loaded the client still works as a plain
    terminal.
    """

    def __init__(self, connection: Optional[MudConnection] = None,
                 map_data: Optional[MapData] = None,
                 flush_delay: float = FLUSH_DELAY, max_lines: int = 1000,
                 on_output: Optional[Callable[[str], None]] = None,
                 publish: bool = False):
        self.connection = connection
        self.map_data = map_data
        self.resolver = RoomResolver(RoomIndex.from_map(map_data)) if map_data is not None else None
        self.console = Console(max_lines, on_output=on_output)
        self.comms = Console(max_lines)
        self.framer = StreamFramer(on_line=self.handle_line, flush_delay=flush_delay)
        self.tracker = RoomBlockTracker()
        self.publish = publish

        self.location: Optional[Room] = None
        self.trailing = False
        self._location_callbacks: List[Callable[[Room], None]] = []

        if connection:
            connection.on_message(self.handle_message)

    @classmethod
    def from_config(cls, config: dict, on_output: Optional[Callable[[str], None]] = None) -> "MudClient":
        """Build a client from a loaded config. A broken map disables the map only."""
        try:
            map_data = load_map(config["map_path"])
        except MapLoadError as e:
            logger.warning(f"Map disabled: {e}")
            map_data = None
        return cls(
            connection=MudConnection(config["server_url"]),
            map_data=map_data,
            flush_delay=config["flush_delay"],
            max_lines=config["max_lines"],
            on_output=on_output,
            publish=bool(config.get("overlay_port")),
        )

    @property
    def connected(self) -> bool:
        return bool(self.connection and self.connection.connected)

    @property
    def map_enabled(self) -> bool:
        return self.resolver is not None

    def on_location(self, callback: Callable[[Room], None]) -> None:
        self._location_callbacks.append(callback)

    # --- Connection/lifecycle ---

    async def connect(self) -> bool:
        """(Re)connect. Partial output from the previous session is discarded."""
        if not self.connection:
            raise RuntimeError("No connection configured")
        if self.connection.connected:
            # Old session must stop delivering before its leftovers are dropped
            await self.connection.close()
        self.framer.reset()
        self.tracker.reset()
        if self.publish:
            overlay.send_reset()
        return await self.connection.connect()

    async def run(self) -> None:
        await self.connection.run()

    async def disconnect(self) -> None:
        self.framer.reset()
        if self.connection:
            await self.connection.close()

    async def submit(self, command: str) -> None:
        """Echo a command locally and send it, split on ';'."""
        self._end_trailing()
        self.console.writeln(ECHO_TEMPLATE.format(command))
        for sub in command.split(';'):
            await self.connection.send(sub.strip())

    # --- Inbound ---

    def handle_message(self, msg: Dict[str, Any]) -> None:
        if msg.get("type") == "system":
            self._end_trailing()
            self.console.writeln(msg.get("data", ""))
        else:
            self.handle_chunk(msg.get("data", ""))

    def handle_chunk(self, data: str) -> List[LineEvent]:
        return self.framer.feed(data)

    def handle_line(self, event: LineEvent) -> None:
        self._handle_triggers(event.text)

        if event.is_timer_tick:
            # Spinner frames stay on the current line
            self.console.write(event.text)
            self.trailing = True
        else:
            self._end_trailing()
            self.console.writeln(event.text)
            if self.publish:
                overlay.send_line(strip_ansi(event.text))

    def _end_trailing(self) -> None:
        if self.trailing:
            self.console.writeln()
            self.trailing = False

    def _handle_triggers(self, text: str) -> None:
        if is_comms(text):
            self.comms.writeln(text)
        block = self.tracker.feed(text)
        if block:
            self._locate(block)

    def _locate(self, block: RoomBlock) -> None:
        if not self.resolver:
            return
        room = self.resolver.resolve(block.name, block.description, block.exits)
        if room is None:
            return
        if room is not self.location:
            logger.info(f"Room detected: {room.name} (area {room.area_id}, room {room.id})")
        self.location = room
        for callback in self._location_callbacks:
            callback(room)
        if self.publish:
            overlay.send_location(room)
