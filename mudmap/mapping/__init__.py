"""Map dataset and room lookup."""
from .index import RoomIndex, RoomResolver, exit_signature
from .models import Area, Exit, Label, MapData, MapLoadError, Room, load_map, parse_map
from .utils import normalize

__all__ = [
    "Area", "Exit", "Label", "MapData", "MapLoadError", "Room",
    "RoomIndex", "RoomResolver", "exit_signature", "load_map", "normalize", "parse_map",
]
