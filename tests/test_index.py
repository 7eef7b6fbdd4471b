"""Tests for the tiered room index and resolver."""

from mudmap.mapping import RoomIndex, RoomResolver, exit_signature, normalize, parse_map


class TestNormalize:
    def test_collapses_and_lowers(self):
        assert normalize("  The   Plains\n\tNorth ") == "the plains north"

    def test_none(self):
        assert normalize(None) == ""


class TestExitSignature:
    def test_compass_order(self):
        assert exit_signature(["down", "west", "north", "up", "south", "east"]) == "N E S W U D"

    def test_game_exits_text(self):
        assert exit_signature("S N") == "N S"
        assert exit_signature("south  north ") == "N S"

    def test_one_letter_per_exit(self):
        """Northeast and north both count, as two N's."""
        assert exit_signature(["northeast", "north"]) == "N N"

    def test_unknown_directions_last_in_order(self):
        assert exit_signature(["out", "south", "in"]) == "S O I"

    def test_doors(self):
        assert exit_signature("(E) N") == "N E"

    def test_empty(self):
        assert exit_signature("") == ""
        assert exit_signature([]) == ""


class TestRoomIndex:
    def test_unindexable_rooms_skipped(self, map_data):
        index = RoomIndex.from_map(map_data)
        assert "void" not in index.tier1
        assert all(r.id != 17 for rooms in index.tier2.values() for r in rooms)

    def test_every_indexed_room_in_tier1_and_tier2(self, map_data):
        index = RoomIndex.from_map(map_data)
        tier1 = [r.id for rooms in index.tier1.values() for r in rooms]
        tier2 = [r.id for rooms in index.tier2.values() for r in rooms]
        assert sorted(tier1) == sorted(tier2) == [10, 11, 12, 13, 14, 15, 16, 20]

    def test_insertion_order_kept(self, map_data):
        index = RoomIndex.from_map(map_data)
        assert [r.id for r in index.tier1["the plains"]] == [11, 12]

    def test_tiers_narrow_monotonically(self, map_data):
        """Every tier3 list is within its tier2 list, every tier2 within tier1."""
        index = RoomIndex.from_map(map_data)
        for key, rooms in index.tier3.items():
            name, description, _ = key.split("|")
            assert all(r in index.tier2[f"{name}|{description}"] for r in rooms)
        for key, rooms in index.tier2.items():
            name = key.split("|")[0]
            assert all(r in index.tier1[name] for r in rooms)

    def test_tier_keys(self, map_data):
        index = RoomIndex.from_map(map_data)
        assert "forest path|trees all around.|e w" in index.tier3
        assert "forest path|trees all around.|n s" in index.tier3


class TestRoomResolver:
    def resolver(self, map_data):
        return RoomResolver(RoomIndex.from_map(map_data))

    def test_unique_name(self, map_data):
        room = self.resolver(map_data).resolve("Village Square", "anything", "N")
        assert room is map_data.rooms_by_id[10]

    def test_name_is_normalized(self, map_data):
        room = self.resolver(map_data).resolve("  village   SQUARE ", "", "")
        assert room is map_data.rooms_by_id[10]

    def test_unknown_room(self, map_data):
        assert self.resolver(map_data).resolve("Nowhere", "Nothing.", "N") is None

    def test_description_disambiguates(self, map_data):
        """Two rooms called The Plains: the description picks the right one."""
        resolver = self.resolver(map_data)
        assert resolver.resolve("The Plains", "Grass stretches south.\n", "S") is map_data.rooms_by_id[12]
        assert resolver.resolve("The Plains", "Grass   stretches north.", "N S") is map_data.rooms_by_id[11]

    def test_unmatched_description_falls_back_to_first_by_name(self, map_data):
        room = self.resolver(map_data).resolve("The Plains", "A new description.", "N")
        assert room is map_data.rooms_by_id[11]

    def test_exits_disambiguate(self, map_data):
        resolver = self.resolver(map_data)
        assert resolver.resolve("Forest Path", "Trees all around.", "N S") is map_data.rooms_by_id[14]
        assert resolver.resolve("Forest Path", "Trees all around.", "W E") is map_data.rooms_by_id[13]
        assert resolver.resolve("Forest Path", "Trees all around.", ["south", "north"]) is map_data.rooms_by_id[14]

    def test_unmatched_exits_fall_back_to_first_by_description(self, map_data):
        room = self.resolver(map_data).resolve("Forest Path", "Trees all around.", "U")
        assert room is map_data.rooms_by_id[13]

    def test_identical_rooms_resolve_to_first(self, map_data):
        """Indistinguishable rooms: the first in the dataset wins, every time."""
        resolver = self.resolver(map_data)
        first = resolver.resolve("Dusty Road", "Dust everywhere.", "N")
        second = resolver.resolve("Dusty Road", "Dust everywhere.", "N")
        assert first is map_data.rooms_by_id[15]
        assert second is first

    def test_single_candidate_ignores_description(self):
        """With one room by name there is nothing to refine."""
        map_data = parse_map({"areas": [{"id": 1, "rooms": [
            {"id": 1, "name": "Gate", "userData": {"description": "A gate."}, "coordinates": [0, 0, 0], "exits": []},
        ]}]})
        room = RoomResolver(RoomIndex.from_map(map_data)).resolve("Gate", "Something else.", "")
        assert room is map_data.rooms_by_id[1]
