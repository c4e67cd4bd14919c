"""Grid arena shared by the ground-truth maze and the mouse's memory of it."""

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# Type aliases for clarity
Position = Tuple[int, int]  # (row, col) in a block array


class AbsDirection(IntEnum):
    """Compass heading. Values increase clockwise."""
    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3

    def turned(self, relative: "RelativeDirection") -> "AbsDirection":
        """Heading after turning by `relative` from this heading."""
        return AbsDirection((int(self) + int(relative)) % 4)

    def relative_to(self, heading: "AbsDirection") -> "RelativeDirection":
        """Relative direction that points this way when facing `heading`."""
        return RelativeDirection((int(self) - int(heading)) % 4)

    @property
    def opposite(self) -> "AbsDirection":
        return AbsDirection((int(self) + 2) % 4)


class RelativeDirection(IntEnum):
    """Direction relative to the current heading. Values increase clockwise."""
    FRONT = 0
    RIGHT = 1
    BACK = 2
    LEFT = 3


class PathingGoal(Enum):
    """Cost mode used by the path planner."""
    DISTANCE = "distance"
    TIME = "time"


class CellText(Enum):
    """Annotation a renderer can ask a perspective for."""
    TIME = "time"
    DISTANCE = "distance"
    PATH_BY = "path_by"
    DEADEND = "deadend"


# (dx, dy) per heading, y grows southwards
DIRECTIONS = {
    AbsDirection.NORTH: (0, -1),
    AbsDirection.EAST: (1, 0),
    AbsDirection.SOUTH: (0, 1),
    AbsDirection.WEST: (-1, 0),
}


@dataclass(frozen=True)
class Coords:
    x: int
    y: int

    def __add__(self, other: "Coords") -> "Coords":
        return Coords(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Coords") -> "Coords":
        return Coords(self.x - other.x, self.y - other.y)

    def step(self, direction: AbsDirection, cells: int = 1) -> "Coords":
        dx, dy = DIRECTIONS[direction]
        return Coords(self.x + dx * cells, self.y + dy * cells)

    def direction_to(self, other: "Coords") -> AbsDirection:
        """Heading from this cell to an adjacent cell."""
        delta = (other.x - self.x, other.y - self.y)
        for direction, vec in DIRECTIONS.items():
            if vec == delta:
                return direction
        raise ValueError(f"{other} is not adjacent to {self}")

    def as_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> "Coords":
        return cls(int(data["x"]), int(data["y"]))


@dataclass
class Cell:
    """Read-only snapshot of one grid cell, as handed to renderers."""
    x: int
    y: int
    north_wall: bool = False
    east_wall: bool = False
    south_wall: bool = False
    west_wall: bool = False
    explored: bool = False
    visited: bool = False
    deadend: bool = False
    distance: Optional[float] = None
    time: Optional[float] = None

    def has_wall(self, direction: AbsDirection) -> bool:
        return (self.north_wall, self.east_wall, self.south_wall, self.west_wall)[direction]

    @property
    def coords(self) -> Coords:
        return Coords(self.x, self.y)


def _encode_array(arr: np.ndarray) -> Dict[str, Any]:
    data = arr.tolist()
    if arr.dtype.kind == "f":
        data = [None if np.isnan(v) else v for v in arr.ravel().tolist()]
    return {"__ndarray__": True, "shape": list(arr.shape), "dtype": str(arr.dtype), "data": data}


def _decode_array(payload: Dict[str, Any]) -> np.ndarray:
    return np.array(payload["data"], dtype=payload["dtype"]).reshape(payload["shape"])


class Grid:
    """
    Row-major arena of cells backed by numpy arrays indexed [y, x].

    Walls live in `walls[y, x, direction]`. Writing a wall through `set_wall`
    always writes the neighbour's opposite side too, so the two sides of an
    interior boundary never disagree.
    """

    LAYERS = ("walls", "explored", "visited", "deadend", "distance", "time")

    def __init__(self, *, width: int, height: int, bordered: bool = False):
        if width < 1 or height < 1:
            raise ValueError(f"Grid must be at least 1x1, got {width}x{height}")
        self.width = width
        self.height = height
        self.walls = np.zeros((height, width, 4), dtype=bool)
        self.explored = np.zeros((height, width), dtype=bool)
        self.visited = np.zeros((height, width), dtype=bool)
        self.deadend = np.zeros((height, width), dtype=bool)
        self.distance = np.full((height, width), np.nan)
        self.time = np.full((height, width), np.nan)
        if bordered:
            self.close_border()

    def in_bounds(self, pos: Coords) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def neighbour(self, pos: Coords, direction: AbsDirection) -> Optional[Coords]:
        nxt = pos.step(direction)
        return nxt if self.in_bounds(nxt) else None

    def has_wall(self, pos: Coords, direction: AbsDirection) -> bool:
        return bool(self.walls[pos.y, pos.x, direction])

    def set_wall(self, pos: Coords, direction: AbsDirection, present: bool = True) -> None:
        self.walls[pos.y, pos.x, direction] = present
        nxt = self.neighbour(pos, direction)
        if nxt is not None:
            self.walls[nxt.y, nxt.x, direction.opposite] = present

    def wall_count(self, pos: Coords) -> int:
        return int(self.walls[pos.y, pos.x].sum())

    def close_border(self) -> None:
        self.walls[0, :, AbsDirection.NORTH] = True
        self.walls[-1, :, AbsDirection.SOUTH] = True
        self.walls[:, 0, AbsDirection.WEST] = True
        self.walls[:, -1, AbsDirection.EAST] = True

    def cell(self, pos: Coords) -> Cell:
        y, x = pos.y, pos.x
        distance, elapsed = self.distance[y, x], self.time[y, x]
        return Cell(
            x=x, y=y,
            north_wall=bool(self.walls[y, x, AbsDirection.NORTH]),
            east_wall=bool(self.walls[y, x, AbsDirection.EAST]),
            south_wall=bool(self.walls[y, x, AbsDirection.SOUTH]),
            west_wall=bool(self.walls[y, x, AbsDirection.WEST]),
            explored=bool(self.explored[y, x]),
            visited=bool(self.visited[y, x]),
            deadend=bool(self.deadend[y, x]),
            distance=None if np.isnan(distance) else float(distance),
            time=None if np.isnan(elapsed) else float(elapsed),
        )

    def board(self) -> List[List[Cell]]:
        return [[self.cell(Coords(x, y)) for x in range(self.width)] for y in range(self.height)]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"width": self.width, "height": self.height}
        for name in self.LAYERS:
            data[name] = _encode_array(getattr(self, name))
        return data

    def _load_arrays(self, data: Dict[str, Any]) -> None:
        for name in self.LAYERS:
            arr = _decode_array(data[name])
            if arr.shape != getattr(self, name).shape:
                raise ValueError(f"'{name}' has shape {arr.shape}, expected {getattr(self, name).shape}")
            setattr(self, name, arr)


class MemoryGrid(Grid):
    """
    The mouse's belief about the maze.

    The mouse doesn't know where in the maze it starts nor which way is
    really north, so memory is a square of side 2*max(w, h)+1 with the start
    in the middle. Whatever the true start and heading are, the maze fits
    around it.

    Example, maze 2x1, mouse placed facing "north":

        # # # # #
        # # # # #
        # # ^ # #
        # # # # #
        # # # # #
    """

    LAYERS = Grid.LAYERS + ("inferred",)

    def __init__(self, *, maze_width: int, maze_height: int):
        half = max(maze_width, maze_height)
        super().__init__(width=2 * half + 1, height=2 * half + 1)
        self.maze_width = maze_width
        self.maze_height = maze_height
        self.center = Coords(half, half)
        # dead ends proven from outside and not entered yet
        self.inferred = np.zeros((self.height, self.width), dtype=bool)

    def is_explored(self, pos: Coords) -> bool:
        return bool(self.explored[pos.y, pos.x])

    def is_inferred(self, pos: Coords) -> bool:
        return bool(self.inferred[pos.y, pos.x])

    def record_walls(self, pos: Coords, walls: Dict[AbsDirection, bool]) -> List[Coords]:
        """
        Store sensed walls of `pos` and mark it explored.

        Each wall found is also written on the neighbour, which may then be
        provable as a dead end without a visit.

        Returns
        -------
        List[Coords]
            Neighbours newly marked explored as dead ends.
        """
        self.explored[pos.y, pos.x] = True
        self.inferred[pos.y, pos.x] = False
        inferred = []
        for direction, present in walls.items():
            self.set_wall(pos, direction, present)
            if not present:
                continue
            nxt = self.neighbour(pos, direction)
            if nxt is not None and self.infer_deadend(nxt):
                inferred.append(nxt)
        return inferred

    def infer_deadend(self, pos: Coords) -> bool:
        """Mark an unexplored cell with 3+ known walls as an explored dead end."""
        if self.explored[pos.y, pos.x] or self.wall_count(pos) < 3:
            return False
        self.explored[pos.y, pos.x] = True
        self.deadend[pos.y, pos.x] = True
        self.inferred[pos.y, pos.x] = True
        logger.debug(f"Inferred dead end at ({pos.x},{pos.y})")
        return True

    def mark_deadend(self, pos: Coords) -> None:
        self.deadend[pos.y, pos.x] = True

    def reset_annotations(self) -> None:
        """Clear explored/visited flags and costs before a flood fill."""
        self.explored[:] = False
        self.visited[:] = False
        self.distance[:] = np.nan
        self.time[:] = np.nan

    def costs(self, path_by: PathingGoal) -> np.ndarray:
        return self.distance if path_by == PathingGoal.DISTANCE else self.time

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["maze_width"] = self.maze_width
        data["maze_height"] = self.maze_height
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemoryGrid":
        grid = cls(maze_width=int(data["maze_width"]), maze_height=int(data["maze_height"]))
        grid._load_arrays(data)
        return grid
