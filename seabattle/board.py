"""Battleship board: cells, ships, placement and shot resolution."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

BOARD_SIZE = 10
MAX_SHIPS = 10
FLEET = (4, 3, 3, 2, 2, 2, 1, 1, 1, 1)


class CellState(IntEnum):
    """State of a single board cell, as sent over the wire."""

    EMPTY = 0
    SHIP = 1
    HIT = 2
    MISS = 3


@dataclass(frozen=True)
class Point:
    """A cell coordinate: x is the column, y is the row."""

    x: int
    y: int


@dataclass
class Ship:
    """A ship occupying a straight run of cells."""

    points: list[Point]
    horizontal: bool
    hits: int = 0

    @property
    def size(self) -> int:
        return len(self.points)

    @property
    def sunk(self) -> bool:
        return self.hits >= self.size

    def occupies(self, x: int, y: int) -> bool:
        return Point(x, y) in self.points


def _on_board(x: int, y: int) -> bool:
    return 0 <= x < BOARD_SIZE and 0 <= y < BOARD_SIZE


def _empty_cells() -> list[list[CellState]]:
    return [[CellState.EMPTY] * BOARD_SIZE for _ in range(BOARD_SIZE)]


def _extent(size: int, horizontal: bool) -> tuple[int, int]:
    return (size, 1) if horizontal else (1, size)


@dataclass
class Board:
    """A square grid of cells, indexed as ``cells[y][x]``, with its ships."""

    cells: list[list[CellState]] = field(default_factory=_empty_cells)
    ships: list[Ship] = field(default_factory=list)

    def _fits(self, x: int, y: int, size: int, horizontal: bool) -> bool:
        if size < 1 or not _on_board(x, y):
            return False
        width, height = _extent(size, horizontal)
        return x + width <= BOARD_SIZE and y + height <= BOARD_SIZE

    def can_place_ship(self, x: int, y: int, size: int, horizontal: bool) -> bool:
        """Whether a ship fits here without touching another, even diagonally."""
        if not self._fits(x, y, size, horizontal):
            return False
        width, height = _extent(size, horizontal)
        rows = range(max(y - 1, 0), min(y + height + 1, BOARD_SIZE))
        cols = range(max(x - 1, 0), min(x + width + 1, BOARD_SIZE))
        return not any(self.cells[j][i] == CellState.SHIP for j in rows for i in cols)

    def place_ship(self, x: int, y: int, size: int, horizontal: bool) -> Ship:
        """Put a ship on the board starting at (x, y) and return it."""
        if len(self.ships) >= MAX_SHIPS:
            raise ValueError(f"a board holds at most {MAX_SHIPS} ships")
        if not self._fits(x, y, size, horizontal):
            raise ValueError(f"ship of size {size} does not fit at ({x}, {y})")
        if horizontal:
            points = [Point(x + i, y) for i in range(size)]
        else:
            points = [Point(x, y + i) for i in range(size)]
        for point in points:
            self.cells[point.y][point.x] = CellState.SHIP
        ship = Ship(points=points, horizontal=bool(horizontal))
        self.ships.append(ship)
        return ship

    def setup_random(self, rng: random.Random) -> None:
        """Clear the board and place the standard fleet at random."""
        self.cells = _empty_cells()
        self.ships = []
        for size in FLEET:
            while True:
                x = rng.randrange(BOARD_SIZE)
                y = rng.randrange(BOARD_SIZE)
                horizontal = bool(rng.randrange(2))
                if self.can_place_ship(x, y, size, horizontal):
                    self.place_ship(x, y, size, horizontal)
                    break

    def check_hit(self, x: int, y: int) -> bool:
        """Fire at (x, y); return True if a ship was hit."""
        if not _on_board(x, y):
            return False
        state = self.cells[y][x]
        if state == CellState.SHIP:
            self.cells[y][x] = CellState.HIT
            ship = next((s for s in self.ships if s.occupies(x, y)), None)
            if ship is not None:
                ship.hits += 1
                return True
        elif state == CellState.EMPTY:
            self.cells[y][x] = CellState.MISS
        return False

    def sunk_ship_at(self, x: int, y: int) -> int | None:
        """Index of the fully hit ship covering (x, y), or None."""
        for index, ship in enumerate(self.ships):
            if ship.occupies(x, y) and ship.hits == ship.size:
                return index
        return None

    def mark_sunk_surroundings(self, index: int | None) -> None:
        """Mark every non-hit cell around the given ship as a miss."""
        if index is None:
            return
        ship = self.ships[index]
        start = ship.points[0]
        width, height = _extent(ship.size, ship.horizontal)
        for y in range(max(start.y - 1, 0), min(start.y + height + 1, BOARD_SIZE)):
            for x in range(max(start.x - 1, 0), min(start.x + width + 1, BOARD_SIZE)):
                if self.cells[y][x] != CellState.HIT:
                    self.cells[y][x] = CellState.MISS

    def is_game_over(self) -> bool:
        """True when every ship on the board is sunk."""
        return all(ship.hits >= ship.size for ship in self.ships)

    def to_json(self) -> dict[str, Any]:
        """The board as a JSON-ready mapping."""
        return {
            "cells": [[int(cell) for cell in row] for row in self.cells],
            "ships": [
                {
                    "size": ship.size,
                    "hits": ship.hits,
                    "points": [{"x": p.x, "y": p.y} for p in ship.points],
                }
                for ship in self.ships
            ],
        }


def random_board(rng: random.Random) -> Board:
    """A new board with the standard fleet placed at random."""
    board = Board()
    board.setup_random(rng)
    return board