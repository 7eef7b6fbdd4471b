"""mudmap: MUD client core with map tracking."""
from .ansi import AnsiRenderer, StyledSegment, StyleState
from .client import MudClient
from .framer import LineEvent, StreamFramer
from .mapping import MapData, MapLoadError, Room, RoomIndex, RoomResolver, load_map

__all__ = [
    "AnsiRenderer", "LineEvent", "MapData", "MapLoadError", "MudClient", "Room",
    "RoomIndex", "RoomResolver", "StreamFramer", "StyleState", "StyledSegment", "load_map",
]
