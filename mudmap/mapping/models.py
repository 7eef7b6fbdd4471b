"""Map dataset models and loader.

The dataset is a single JSON document exported from the map editor:

    {"areas": [{"id": ..., "rooms": [...], "labels": [...]}]}

Rooms carry their description under ``userData`` and store coordinates as
``[x, y, level]`` with Y pointing up. Loading flips Y once so that callers can
draw top-down without caring about the editor's convention.
"""

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)

Id = Union[int, str]
Number = Union[int, float]


class MapLoadError(Exception):
    """The map dataset could not be read or did not validate."""


class Exit(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(description="Direction name as printed by the game, e.g. 'north'")
    exit_id: Optional[Id] = Field(default=None, alias="exitId", description="Id of the room this exit leads to")


class Room(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Id
    area_id: Optional[Id] = None
    name: str = ""
    description: str = ""
    exits: List[Exit] = Field(default_factory=list)
    coordinates: List[Number] = Field(default_factory=lambda: [0, 0, 0])
    environment: Optional[Id] = None

    @model_validator(mode="before")
    @classmethod
    def _lift_user_data(cls, data: Any) -> Any:
        # Editor exports keep the description in userData.description
        if isinstance(data, dict) and "description" not in data:
            user_data = data.get("userData") or {}
            data = {**data, "description": user_data.get("description") or ""}
        return data

    @property
    def x(self) -> Number: return self.coordinates[0]
    @property
    def y(self) -> Number: return self.coordinates[1]
    @property
    def level(self) -> Number: return self.coordinates[2]


class Label(BaseModel):
    area_id: Optional[Id] = None
    coordinates: List[Number] = Field(default_factory=lambda: [0, 0, 0])
    size: List[Number] = Field(default_factory=lambda: [0, 0])
    image: List[str] = Field(default_factory=list, description="Base64 PNG split into chunks")

    @property
    def level(self) -> Number: return self.coordinates[2]

    @property
    def image_bytes(self) -> bytes:
        """Decoded PNG payload, b'' when the label has no image."""
        encoded = "".join(self.image)
        if not encoded:
            return b""
        try:
            return base64.b64decode(encoded)
        except (binascii.Error, ValueError):
            logger.warning(f"Label at {self.coordinates} has an undecodable image")
            return b""


class Area(BaseModel):
    id: Id
    rooms: List[Room] = Field(default_factory=list)
    labels: List[Label] = Field(default_factory=list)
    levels_by_id: Dict[Number, List[Room]] = Field(default_factory=dict, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _null_lists(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = {**data, "rooms": data.get("rooms") or [], "labels": data.get("labels") or []}
        return data

    def labels_on(self, level: Number) -> List[Label]:
        return [label for label in self.labels if label.level == level]


class MapData(BaseModel):
    """The whole dataset plus id lookups. Immutable after ``parse_map``."""

    areas: List[Area] = Field(default_factory=list)
    areas_by_id: Dict[Id, Area] = Field(default_factory=dict, exclude=True)
    rooms_by_id: Dict[Id, Room] = Field(default_factory=dict, exclude=True)

    def rooms(self) -> List[Room]:
        """All rooms in dataset order (area order, then room order)."""
        return [room for area in self.areas for room in area.rooms]

    def exit_room(self, room_exit: Exit) -> Optional[Room]:
        if room_exit.exit_id is None:
            return None
        return self.rooms_by_id.get(room_exit.exit_id)

    def _link(self) -> None:
        for area in self.areas:
            self.areas_by_id[area.id] = area
            for room in area.rooms:
                self.rooms_by_id[room.id] = room
                room.area_id = area.id
                room.coordinates[1] *= -1
                area.levels_by_id.setdefault(room.level, []).append(room)
            for label in area.labels:
                label.area_id = area.id
                label.coordinates[1] *= -1


def parse_map(data: Dict[str, Any]) -> MapData:
    """Validate a decoded dataset and link it. Y is inverted here, once."""
    try:
        map_data = MapData.model_validate(data)
    except ValidationError as e:
        raise MapLoadError(f"Invalid map data: {e}") from e
    map_data._link()
    logger.info(f"Loaded {len(map_data.areas)} areas, {len(map_data.rooms_by_id)} rooms")
    return map_data


def load_map(path) -> MapData:
    """Read and parse a map file. Raises MapLoadError on any failure."""
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise MapLoadError(f"Failed to read {path}: {e}") from e
    if not isinstance(data, dict):
        raise MapLoadError(f"Failed to read {path}: top level is not an object")
    return parse_map(data)
