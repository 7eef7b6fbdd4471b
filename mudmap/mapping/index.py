"""Tiered room lookup: name -> name|description -> name|description|exits.

Room names repeat a lot (every stretch of road is "The Plains"), so a single
name lookup is rarely enough. Each tier adds one more fingerprint and the
resolver only climbs as far as it needs to. Ties are never scored: the first
room in dataset order wins at every tier.
"""
import logging
from typing import Dict, Iterable, List, Optional, Union

from .models import MapData, Room
from .utils import Direction, normalize

logger = logging.getLogger(__name__)

Exits = Union[str, Iterable[str]]


def exit_signature(exits: Exits) -> str:
    """Reduce exits to 'N E S W U D' form.

    ``exits`` is either the game's exits text ("north south" or "N S") or a
    sequence of direction names. One letter per exit, compass order first,
    anything else after in its original order.
    """
    names = exits.split() if isinstance(exits, str) else list(exits)
    # Doors are printed as "(E)" or "[E]"
    names = [name.strip(" ()[]{}<>") for name in names if name]
    letters = [name[0].upper() for name in names if name]
    rank = {letter: i for i, letter in enumerate(Direction.CANONICAL)}
    letters.sort(key=lambda letter: rank.get(letter, len(rank)))
    return " ".join(letters)


def _key(*parts: str) -> str:
    return "|".join(parts)


class RoomIndex:
    """Three lookup tiers over every named, described room in a map."""

    def __init__(self, rooms: Iterable[Room]):
        self.tier1: Dict[str, List[Room]] = {}
        self.tier2: Dict[str, List[Room]] = {}
        self.tier3: Dict[str, List[Room]] = {}
        skipped = 0
        for room in rooms:
            name = normalize(room.name)
            description = normalize(room.description)
            if not name or not description:
                skipped += 1
                continue
            self.tier1.setdefault(name, []).append(room)
            self.tier2.setdefault(_key(name, description), []).append(room)
            signature = normalize(exit_signature(e.name for e in room.exits))
            self.tier3.setdefault(_key(name, description, signature), []).append(room)
        logger.debug(f"Indexed {len(self.tier1)} names, {len(self.tier2)} descriptions, "
                     f"{len(self.tier3)} exit signatures ({skipped} rooms skipped)")

    @classmethod
    def from_map(cls, map_data: MapData) -> "RoomIndex":
        return cls(map_data.rooms())

    def by_name(self, name: str) -> List[Room]:
        return self.tier1.get(normalize(name), [])

    def by_description(self, name: str, description: str) -> List[Room]:
        return self.tier2.get(_key(normalize(name), normalize(description)), [])

    def by_exits(self, name: str, description: str, exits: Exits) -> List[Room]:
        signature = normalize(exit_signature(exits))
        return self.tier3.get(_key(normalize(name), normalize(description), signature), [])


class RoomResolver:
    """Turns a room block seen in the output into a room on the map."""

    def __init__(self, index: RoomIndex):
        self.index = index

    def resolve(self, name: str, description: str, exits: Exits = "") -> Optional[Room]:
        candidates = self.index.by_name(name)
        if len(candidates) <= 1:
            if not candidates:
                logger.debug(f"Unknown location: {name!r}")
            return candidates[0] if candidates else None

        refined = self.index.by_description(name, description)
        if not refined:
            # Description did not help, best guess by name
            return candidates[0]
        if len(refined) == 1:
            return refined[0]

        exit_refined = self.index.by_exits(name, description, exits)
        if exit_refined:
            return exit_refined[0]
        return refined[0]
