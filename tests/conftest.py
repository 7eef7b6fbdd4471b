"""Shared fixtures: a small map with the usual ambiguities."""
import copy
import json

import pytest

from mudmap.mapping import parse_map


def make_room(room_id, name, description, exits=(), coordinates=(0, 0, 0)):
    return {
        "id": room_id,
        "name": name,
        "userData": {"description": description},
        "coordinates": list(coordinates),
        "exits": [{"name": direction, "exitId": target} for direction, target in exits],
        "environment": 1,
    }


SAMPLE_MAP = {
    "areas": [
        {
            "id": 1,
            "rooms": [
                make_room(10, "Village Square", "A busy square.", [("north", 11)], (0, 0, 0)),
                make_room(11, "The Plains", "Grass stretches north.", [("south", 10), ("north", 12)], (0, 1, 0)),
                make_room(12, "The Plains", "Grass stretches south.", [("south", 11)], (0, 2, 0)),
                # Same name and description, told apart by exits
                make_room(13, "Forest Path", "Trees all around.", [("east", 14), ("west", 10)], (1, 0, 0)),
                make_room(14, "Forest Path", "Trees all around.", [("north", 13), ("south", 15)], (2, 0, 0)),
                # Fully identical pair
                make_room(15, "Dusty Road", "Dust everywhere.", [("north", 14)], (2, -1, 0)),
                make_room(16, "Dusty Road", "Dust everywhere.", [("north", 14)], (3, -1, 0)),
                # Unindexable
                make_room(17, "Void", "", [], (5, 5, 1)),
            ],
            "labels": [
                {"coordinates": [0, 3, 0], "size": [4, 1], "image": ["aGVs", "bG8="]},
                {"coordinates": [1, 3, 1], "size": [2, 1], "image": []},
            ],
        },
        {
            "id": 2,
            "rooms": [
                make_room(20, "Cellar", "Damp and dark.", [("up", 10)], (0, 4, -1)),
            ],
            "labels": None,
        },
    ]
}


@pytest.fixture
def map_dict():
    return copy.deepcopy(SAMPLE_MAP)


@pytest.fixture
def map_data(map_dict):
    return parse_map(map_dict)


@pytest.fixture
def map_file(tmp_path, map_dict):
    path = tmp_path / "map.json"
    path.write_text(json.dumps(map_dict))
    return path
