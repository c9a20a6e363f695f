"""
Grid coordinates for the Battlesnake board.

The board is a standard 2D grid with (0,0) at the bottom-left. The Y-axis
is positive going up, the X-axis positive going right, so an 11x11 board
has coordinates ranging over [0, 10] on both axes.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Sequence


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    def __str__(self) -> str:
        return self.value


ALL_DIRECTIONS = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)

DIRECTION_DELTAS = {
    Direction.UP: (0, 1),
    Direction.DOWN: (0, -1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}


@dataclass(frozen=True)
class Coord:
    """A point on the board.

    A coord may also remember the direction that produced it and a
    heuristic score. Neither takes part in equality or hashing, so two
    coords at the same (x, y) are the same cell.
    """

    x: int
    y: int
    direction: Direction | None = field(default=None, compare=False)
    score: float | None = field(default=None, compare=False)

    @classmethod
    def from_dict(cls, d: dict) -> "Coord":
        return cls(int(d["x"]), int(d["y"]))

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    def project(self, direction: Direction) -> "Coord":
        """Shift one cell in the given direction.

        The result is not guaranteed to be on the board.
        """
        dx, dy = DIRECTION_DELTAS[direction]
        return Coord(self.x + dx, self.y + dy, direction=direction)

    def within_bounds(self, width: int, height: int) -> bool:
        return 0 <= self.x < width and 0 <= self.y < height

    def wrap(self, width: int, height: int) -> "Coord":
        """Fold a coord that fell off one edge back onto the opposite edge.

        Only corrects by one board length per axis, which is all a single
        step can overshoot by.
        """
        x, y = self.x, self.y
        if x < 0:
            x += width
        elif x > width - 1:
            x -= width
        if y < 0:
            y += height
        elif y > height - 1:
            y -= height
        return replace(self, x=x, y=y)

    def distance(self, other: "Coord") -> float:
        """Euclidean distance."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def with_score(self, score: float) -> "Coord":
        return replace(self, score=score)


# ── Coordinate lists ──────────────────────────────────────────────

def eliminate(coords: Sequence[Coord], drop: Iterable[Coord]) -> list[Coord]:
    """Return the coords not present in `drop`, keeping order and metadata."""
    dropped = set(drop)
    return [c for c in coords if c not in dropped]


def coords_from_dicts(items: Iterable[dict] | None) -> tuple[Coord, ...]:
    return tuple(Coord.from_dict(d) for d in items or ())
