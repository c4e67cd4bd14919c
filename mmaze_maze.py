"""Ground-truth maze the mouse is physically inside, plus the collaborator protocols."""

import logging
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

import numpy as np

from mmaze_grid import AbsDirection, Cell, CellText, Coords, Grid, Position, RelativeDirection

logger = logging.getLogger(__name__)


class MazeUiDelegate(Protocol):
    """Receives fire-and-forget notifications from the maze and the mouse."""

    def on_mouse_moved(self, dont_redraw: bool = False) -> None: ...

    def on_mouse_changed_state(self, state) -> None: ...

    def redraw_required(self) -> None: ...


class MazeMouseInterface(Protocol):
    """What a mouse may ask of the maze it is placed in."""

    def has_wall(self, *, direction: RelativeDirection) -> bool: ...

    def has_reached_goal(self) -> bool: ...

    def get_size(self) -> Dict[str, int]: ...

    def get_maze_name(self) -> str: ...

    def turn(self, *, direction: RelativeDirection) -> None: ...

    def move_forward(self, *, cells: int = 1, dont_redraw: bool = False) -> bool: ...


class MazePerspective(Protocol):
    """Read-only view a renderer draws from, either the real maze or a mouse's memory."""

    def get_board(self) -> List[List[Cell]]: ...

    def get_win_location(self) -> Optional[Coords]: ...

    def get_mouse_location(self) -> Coords: ...

    def get_mouse_direction(self) -> AbsDirection: ...

    def get_width(self) -> int: ...

    def get_height(self) -> int: ...

    def get_text(self, cell: Cell, text_type: CellText) -> Optional[str]: ...


def get_default_maze() -> Tuple[np.ndarray, Position, Position]:
    """Return (blocks, start, goal). Blocks: 1=wall, 0=free, cells at odd indices."""
    blocks = np.array([
        [1,1,1,1,1,1,1,1,1,1,1,1,1,1,1],
        [1,0,0,0,1,0,0,0,0,0,1,0,0,0,1],
        [1,1,1,0,1,0,1,1,1,0,1,0,1,0,1],
        [1,0,0,0,0,0,0,0,1,0,0,0,1,0,1],
        [1,0,1,1,1,1,0,1,1,1,0,1,1,0,1],
        [1,0,1,0,0,0,0,0,0,1,0,0,0,0,1],
        [1,0,1,0,1,1,1,1,0,1,1,1,1,0,1],
        [1,0,0,0,1,0,0,0,0,0,0,0,1,0,1],
        [1,0,1,1,1,1,1,0,1,1,1,0,1,0,1],
        [1,0,0,0,0,0,1,0,0,0,1,0,0,0,1],
        [1,1,1,0,1,0,1,1,1,0,1,1,1,0,1],
        [1,0,0,0,1,0,0,0,0,0,0,0,1,0,1],
        [1,0,1,1,1,1,1,1,1,1,1,0,1,0,1],
        [1,0,0,0,0,0,0,0,0,0,0,0,0,0,1],
        [1,1,1,1,1,1,1,1,1,1,1,1,1,1,1],
    ], dtype=int)
    start = (1, 1)
    goal = (7, 5)
    return blocks, start, goal


class GridMaze:
    """
    Rectangular maze with walls between cells, a mouse pose and a goal cell.

    The mouse only ever sees it through `MazeMouseInterface`: relative wall
    sensing, turns and forward moves. Blocked moves are reported through the
    return value of `move_forward`, never raised.
    """

    def __init__(
        self, *,
        width: int,
        height: int,
        start: Coords,
        goal: Coords,
        direction: AbsDirection = AbsDirection.NORTH,
        name: str = "maze",
        ui: Optional[MazeUiDelegate] = None,
    ):
        self.grid = Grid(width=width, height=height, bordered=True)
        self.width = width
        self.height = height
        self.name = name
        self.ui = ui

        for pos, label in [(start, "start"), (goal, "goal")]:
            if not self.grid.in_bounds(pos):
                raise ValueError(f"{label} ({pos.x},{pos.y}) must be inside the {width}x{height} maze")

        self.start = start
        self.win = goal
        self.location = start
        self.direction = AbsDirection(direction)
        self.start_direction = self.direction
        self._mark_visited()

        logger.debug(f"{width}x{height} GridMaze '{name}' instantiated, goal@{goal}, start@{start}")

    @classmethod
    def from_blocks(
        cls, *,
        blocks: np.ndarray,
        start: Position,
        goal: Position,
        direction: Optional[AbsDirection] = None,
        name: str = "maze",
        ui: Optional[MazeUiDelegate] = None,
    ) -> "GridMaze":
        """
        Build a maze from a block array (1=wall, 0=free).

        Cells sit at odd (row, col) indices; the block between two cells is
        the wall separating them. Start and goal are given in block indices.
        Without an explicit `direction` the mouse faces the first open side
        of the start cell, checked north, east, south, west.
        """
        blocks = np.asarray(blocks, dtype=int)
        rows, cols = blocks.shape
        if rows < 3 or cols < 3 or rows % 2 == 0 or cols % 2 == 0:
            raise ValueError(f"Block array must have odd dimensions >= 3, got {rows}x{cols}")

        def to_cell(pos: Position, label: str) -> Coords:
            r, c = pos
            if r % 2 == 0 or c % 2 == 0 or not (0 < r < rows and 0 < c < cols) or blocks[r, c] != 0:
                raise ValueError(f"{label} {pos} must be on a free cell")
            return Coords((c - 1) // 2, (r - 1) // 2)

        start_cell, goal_cell = to_cell(start, "start"), to_cell(goal, "goal")
        maze = cls(
            width=(cols - 1) // 2, height=(rows - 1) // 2,
            start=start_cell, goal=goal_cell, name=name, ui=ui,
        )
        for y in range(maze.height):
            for x in range(maze.width):
                r, c = 2 * y + 1, 2 * x + 1
                pos = Coords(x, y)
                if x + 1 < maze.width:
                    maze.grid.set_wall(pos, AbsDirection.EAST, bool(blocks[r, c + 1]))
                if y + 1 < maze.height:
                    maze.grid.set_wall(pos, AbsDirection.SOUTH, bool(blocks[r + 1, c]))

        if direction is None:
            direction = next(
                (d for d in AbsDirection if not maze.grid.has_wall(start_cell, d)), None)
            if direction is None:
                raise ValueError(f"Can't detect mouse initial direction at {start}")
        maze.direction = maze.start_direction = AbsDirection(direction)
        return maze

    @classmethod
    def closed(cls, **kwargs) -> "GridMaze":
        """A maze with every wall in place, ready to be carved."""
        maze = cls(**kwargs)
        maze.grid.walls[:] = True
        return maze

    def carve(self, a: Coords, b: Coords) -> None:
        """Open the passage between two adjacent cells."""
        self.grid.set_wall(a, a.direction_to(b), False)

    def carve_path(self, cells: Iterable[Coords]) -> None:
        cells = list(cells)
        for a, b in zip(cells, cells[1:]):
            self.carve(a, b)

    def _mark_visited(self) -> None:
        self.grid.explored[self.location.y, self.location.x] = True

    def _notify_moved(self, dont_redraw: bool = False) -> None:
        if self.ui is not None:
            self.ui.on_mouse_moved(dont_redraw)

    # === Mouse interface ===

    def has_wall(self, *, direction: RelativeDirection) -> bool:
        """Wall next to the mouse, `direction` relative to its heading."""
        return self.grid.has_wall(self.location, self.direction.turned(direction))

    def has_reached_goal(self) -> bool:
        return self.location == self.win

    def get_size(self) -> Dict[str, int]:
        return {"width": self.width, "height": self.height}

    def get_maze_name(self) -> str:
        return self.name

    def turn(self, *, direction: RelativeDirection) -> None:
        self.direction = self.direction.turned(direction)
        self._notify_moved()

    def move_forward(self, *, cells: int = 1, dont_redraw: bool = False) -> bool:
        """
        Move `cells` cells straight ahead.

        Returns
        -------
        bool
            False, with nothing changed, if any wall on the way blocks the
            move or it would leave the maze. True otherwise.
        """
        if cells < 1:
            raise ValueError(f"Must move at least one cell, got {cells}")
        pos = self.location
        for _ in range(cells):
            if self.grid.has_wall(pos, self.direction) or self.grid.neighbour(pos, self.direction) is None:
                logger.debug(f"Blocked at ({pos.x},{pos.y}) heading {self.direction.name}")
                return False
            pos = pos.step(self.direction)

        self.location = pos
        self._mark_visited()
        self._notify_moved(dont_redraw)
        return True

    # === Perspective ===

    def get_board(self) -> List[List[Cell]]:
        return self.grid.board()

    def get_win_location(self) -> Optional[Coords]:
        return self.win

    def get_mouse_location(self) -> Coords:
        return self.location

    def get_mouse_direction(self) -> AbsDirection:
        return self.direction

    def get_width(self) -> int:
        return self.width

    def get_height(self) -> int:
        return self.height

    def get_text(self, cell: Cell, text_type: CellText) -> Optional[str]:
        return None
