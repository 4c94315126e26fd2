"""Tests for structural level checks."""

from levelgen.generation.validation import (
    check_connectivity,
    find_edge_bugs,
    room_mask,
    validate_map,
)
from levelgen.grid import Grid, Position

CONNECTED = [
    "##########",
    "#~~~~~~~~#",
    "#~S....>~#",
    "#~~~~~~~~#",
    "##########",
]

BLOCKED = [
    "##########",
    "#~~~~~~~~#",
    "#~S..~.>~#",
    "#~~~~~~~~#",
    "##########",
]


class TestConnectivity:
    def test_connected(self):
        grid = Grid.from_chars(CONNECTED, Position(2, 2))
        assert check_connectivity(grid) == []

    def test_blocked_by_freeze(self):
        grid = Grid.from_chars(BLOCKED, Position(2, 2))
        assert check_connectivity(grid) == ["finish is not reachable from spawn"]

    def test_missing_markers(self):
        grid = Grid.from_chars(["#..#"], Position(1, 0))
        errors = check_connectivity(grid)
        assert "map has no spawn cells" in errors
        assert "map has no finish cells" in errors

    def test_diagonal_gap_is_not_connected(self):
        grid = Grid.from_chars(["S~", "~>"], Position(0, 0))
        assert check_connectivity(grid) == ["finish is not reachable from spawn"]


class TestEdgeBugs:
    def test_detects_contact(self):
        grid = Grid.from_chars(["#.", ".."], Position(1, 1))
        assert find_edge_bugs(grid).sum() == 3

    def test_exclude_mask(self):
        grid = Grid.from_chars(["#..", "...", "..."], Position(1, 1))
        rooms = room_mask(grid.cells.shape, [Position(1, 1)], 1)
        assert not find_edge_bugs(grid, exclude=rooms).any()

    def test_room_mask_clipped(self):
        mask = room_mask((5, 5), [Position(0, 0)], 1)
        assert mask.sum() == 4


class TestValidateMap:
    def test_valid(self):
        grid = Grid.from_chars(CONNECTED, Position(2, 2))
        assert validate_map(grid, Position(7, 2), room_margin=0) == []

    def test_reports_every_problem(self):
        rows = [
            "##########",
            "#~~~~~~~~#",
            "#~S..~.>~#",
            "#~~~~~~..#",
            "##########",
        ]
        grid = Grid.from_chars(rows, Position(2, 2))
        errors = validate_map(grid, Position(7, 2), room_margin=0)
        assert len(errors) == 2
        assert "edge" not in errors[0]
        assert "touch hookable" in errors[1]
