"""Mouse that explores a maze it can only sense locally, then routes through its memory of it."""

import json
import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Optional

from mmaze_config import SOLVED_DWELL, MouseConfig, MouseSpeed, setup_logging
from mmaze_errors import CrashedIntoWallError, MazeNotFinishedError, MouseError, MouseStuckError
from mmaze_grid import AbsDirection, Cell, CellText, Coords, MemoryGrid, PathingGoal, RelativeDirection
from mmaze_maze import GridMaze, MazeMouseInterface, MazeUiDelegate, get_default_maze
from mmaze_planner import PathPlanner
from mmaze_store import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)

# Exploration preference, first match wins (right-hand wall following)
EXPLORE_ORDER = (RelativeDirection.RIGHT, RelativeDirection.LEFT, RelativeDirection.FRONT)


def main():
    """Demo: solve the default maze and print both perspectives."""
    from mmaze_render import render_ascii

    setup_logging()
    try:
        blocks, start, goal = get_default_maze()
        maze = GridMaze.from_blocks(blocks=blocks, start=start, goal=goal, name="default")
        mouse = RectMouse(maze=maze, store=MemoryStore(), config=MouseConfig(speed=MouseSpeed.INSTA))

        state = mouse.solve()
        print(f"{state.name} after {mouse.steps} steps, {mouse.backtrack_count} backtracks, "
              f"{mouse.explored_cells}/{mouse.total_cells} cells explored")
        print()
        print(render_ascii(maze))
        print()
        print(render_ascii(mouse, text_type=CellText.DEADEND))
        return True

    except MouseError as e:
        logger.exception(f"Error in main: {e}")
        return False


class MouseState(Enum):
    PLACED = auto()
    EXPLORING = auto()
    BACKTRACKING = auto()
    SOLVED = auto()
    FINISHED = auto()
    STUCK = auto()


@dataclass
class BacktrackInst:
    """Leg of the path since the last junction: `steps` cells heading `direction`."""
    direction: AbsDirection
    steps: int


class RectMouse:
    """
    Simple mouse solving a rectangular maze.

    The mouse doesn't know its absolute direction, so it assumes it was
    placed facing north, keeps a memory board double the maze size and
    starts in its middle. It explores depth first with a right, left, front
    preference, remembering junctions so it can backtrack from dead ends.

    Once the goal is found it can keep exploring until the whole maze is
    mapped (FINISHED), after which `goto` routes anywhere through memory.
    """

    def __init__(
        self, *,
        maze: MazeMouseInterface,
        ui: Optional[MazeUiDelegate] = None,
        store: Optional[KeyValueStore] = None,
        config: Optional[MouseConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.maze = maze
        self.ui = ui
        self.store = store
        self.config = config or MouseConfig()
        self._sleep = sleep
        self._stop = False
        self.solved = False

        # board state
        self.board: MemoryGrid
        self.location: Coords
        self.direction = AbsDirection.NORTH
        self.cheese: Optional[Coords] = None
        # board stats
        self.total_cells = 0
        self.explored_cells = 0
        self.backtrack_count = 0
        self.steps = 0

        # exploration state
        self.state = MouseState.PLACED
        self.junctions: List[List[BacktrackInst]] = []  # how to get back to each open junction
        self.create_new_junction = False
        self.path_by: PathingGoal = self.config.path_by

        self._init_memory_board()
        self.planner = PathPlanner(grid=self.board)

        logger.debug(f"RectMouse instantiated, memory {self.board.width}x{self.board.height}, state {self.state.name}")

    def _init_memory_board(self) -> None:
        size = self.maze.get_size()
        self.total_cells = size["width"] * size["height"]
        self.explored_cells = 0
        self.board = MemoryGrid(maze_width=size["width"], maze_height=size["height"])
        # middle of the memory maze
        self.location = self.board.center
        self.direction = AbsDirection.NORTH
        self.recall_maze()

    # === Control ===

    def solve(self) -> MouseState:
        """Explore until the goal, then (auto_continue) map the rest of the maze."""
        self._stop = False
        if not self._ready_to_explore():
            return self.state
        if self.solved:
            return self._continue()
        if not self.explore():
            return self.state

        logger.info(f"Mouse: Solved! {self.steps} steps, {self.backtrack_count} backtracks")
        if self.config.auto_continue:
            if not self._stop:
                self.dwell(SOLVED_DWELL)
            if self._stop:
                logger.info("Mouse: Stopped at the goal")
                return self.state
            return self._continue()
        return self.state

    def continue_(self) -> MouseState:
        """Explore the rest of the maze, then remember it and (go_home) return to the start."""
        self._stop = False
        if not self._ready_to_explore():
            return self.state
        return self._continue()

    def _continue(self) -> MouseState:
        if not self.solved:
            if not self.explore():
                return self.state
            logger.info(f"Mouse: Solved! {self.steps} steps, {self.backtrack_count} backtracks")
        if not self.explore():
            return self.state

        if self.state != MouseState.FINISHED:
            # every cell counted: open junctions have nothing left behind them
            self.junctions.clear()
            self._set_state(MouseState.FINISHED)
        logger.info(f"Mouse: Finished! {self.explored_cells}/{self.total_cells} cells explored")
        self.remember_maze()
        if self.config.go_home:
            self.go_home()
        return self.state

    def stop(self) -> None:
        """Ask exploration to halt after the current step."""
        self._stop = True

    def dwell(self, seconds: Optional[float] = None) -> None:
        if self.config.speed == MouseSpeed.INSTA:
            return
        self._sleep(self.config.speed.seconds if seconds is None else seconds)

    def _ready_to_explore(self) -> bool:
        if self.state == MouseState.FINISHED:
            logger.warning("Mouse: maze already finished, nothing left to explore")
            return False
        if self.state == MouseState.STUCK:
            logger.warning("Mouse: stuck, nothing left to explore")
            return False
        return True

    def _set_state(self, state: MouseState) -> None:
        self.state = state
        logger.debug(f"Mouse: {state.name}")
        if self.ui is not None:
            self.ui.on_mouse_changed_state(state)

    # === Exploration ===

    def explore(self) -> bool:
        """
        Run exploration steps until there is nothing left to do for now.

        Returns
        -------
        bool
            True if exploration ran to its natural end (goal found on the
            first run, maze mapped afterwards), False if it was stopped.
        """
        budget = self.steps + self.config.max_steps
        self._set_state(MouseState.EXPLORING)
        try:
            while self._should_keep_exploring():
                if self._stop:
                    logger.info(f"Mouse: Stopped after {self.steps} steps")
                    return False
                if self.steps >= budget:
                    logger.warning(f"Mouse: pausing after {self.config.max_steps} steps")
                    return False
                self.dwell()
                self.step()
        except MouseStuckError as e:
            logger.error(f"Mouse: Stuck! {e}")
            raise
        except MouseError as e:
            self._set_state(MouseState.STUCK)
            logger.exception(f"Mouse: Stuck! {type(e).__name__}: {e}")
            raise

        if not self.solved and self.maze.has_reached_goal():
            self.solved = True
            self.cheese = self.location
            self._set_state(MouseState.SOLVED)
        return True

    def _should_keep_exploring(self) -> bool:
        if self.state == MouseState.FINISHED:
            return False
        if self.solved:
            return self.explored_cells < self.total_cells
        return not self.maze.has_reached_goal()

    def step(self) -> None:
        """One exploration step: sense, then move to an unexplored cell or backtrack."""
        self.steps += 1
        first_visit = self.inspect_current_cell()
        walls = {rel: self.board.has_wall(self.location, self.direction.turned(rel)) for rel in RelativeDirection}

        candidates = list(EXPLORE_ORDER)
        if first_visit and self.location == self.board.center:
            # nothing was ever behind the mouse where it was placed
            candidates.append(RelativeDirection.BACK)
        options = [rel for rel in candidates if not walls[rel] and not self._rel_explored(rel)]
        is_deadend = walls[RelativeDirection.FRONT] and walls[RelativeDirection.LEFT] and walls[RelativeDirection.RIGHT]

        if len(options) > 1:
            logger.debug(f"Mouse: Junction detected at ({self.location.x},{self.location.y})")
            self.junctions.append([])

        if not options:
            # already explored or dead end
            self.backtrack(is_deadend=is_deadend)
            return
        choice = options[0]
        if choice != RelativeDirection.FRONT:
            self.turn(choice)
        self.move_forward(1)

    def inspect_current_cell(self) -> bool:
        """
        Sense the walls of the current cell, once.

        Returns
        -------
        bool
            True if the cell was sensed now, False if it was already known.
        """
        if self.board.is_explored(self.location) and not self.board.is_inferred(self.location):
            return False
        counted = self.board.is_explored(self.location)
        walls = {
            direction: self.maze.has_wall(direction=direction.relative_to(self.direction))
            for direction in AbsDirection
        }
        inferred = self.board.record_walls(self.location, walls)
        self.explored_cells += len(inferred) + (0 if counted else 1)
        return True

    def _rel_explored(self, relative: RelativeDirection) -> bool:
        nxt = self.board.neighbour(self.location, self.direction.turned(relative))
        if nxt is None:
            return True
        if not self.solved and self.board.is_inferred(nxt):
            # the goal may sit in a pocket, only a visit tells
            return False
        return self.board.is_explored(nxt)

    def turn(self, relative: RelativeDirection) -> None:
        logger.debug(f"Mouse: Turning {relative.name}")
        self.maze.turn(direction=relative)
        self.direction = self.direction.turned(relative)

        # record backtrack instructions
        if self.state == MouseState.EXPLORING and self.junctions:
            self.create_new_junction = False
            self.junctions[-1].append(BacktrackInst(direction=self.direction, steps=0))

    def move_forward(
        self,
        cells: int,
        *,
        dont_redraw: bool = False,
        pre_move: Optional[Callable[[Coords], None]] = None,
    ) -> None:
        logger.debug(f"Mouse: Moving forward {cells}")
        if not self.maze.move_forward(cells=cells, dont_redraw=dont_redraw):
            raise CrashedIntoWallError(
                f"Crashed into a wall at ({self.location.x},{self.location.y}) heading {self.direction.name}")

        for _ in range(cells):
            if pre_move is not None:
                pre_move(self.location)
            self.location = self.location.step(self.direction)

        # record backtrack instructions
        if self.state == MouseState.EXPLORING and self.junctions:
            if self.create_new_junction:
                self.create_new_junction = False
                self.junctions.append([])
            junction = self.junctions[-1]
            if not junction:
                junction.append(BacktrackInst(direction=self.direction, steps=cells))
            else:
                junction[-1].steps += cells

    def backtrack(self, *, is_deadend: bool) -> None:
        """Go back to the last junction; at a genuine dead end, mark the way out as dead."""
        if not self.junctions:
            if self.solved:
                self._set_state(MouseState.FINISHED)
                return
            self._set_state(MouseState.STUCK)
            raise MouseStuckError("No more junctions!")
        self.backtrack_count += 1
        logger.info(f"Mouse: Backtracking #{self.backtrack_count}")
        instructions = self.junctions.pop()

        self._set_state(MouseState.BACKTRACKING)
        self.turn(RelativeDirection.BACK)

        # only the first leg leads out of the dead end
        pre_move = self.board.mark_deadend if is_deadend else None
        while instructions:
            inst = instructions.pop()
            self.dwell()
            self.turn(inst.direction.opposite.relative_to(self.direction))
            if inst.steps:
                self.move_forward(inst.steps, pre_move=pre_move)
            pre_move = None

        self._set_state(MouseState.EXPLORING)
        self.create_new_junction = True

    # === Pathing ===

    def goto(self, offset: Coords, path_by: Optional[PathingGoal] = None) -> List[Coords]:
        """
        Drive to `location + offset` along the cheapest route through memory.

        Returns
        -------
        List[Coords]
            Memory cells entered, destination last.
        """
        self.path_by = path_by or self.path_by
        if self.state != MouseState.FINISHED:
            logger.warning("Mouse: Must finish maze first!")
            raise MazeNotFinishedError(f"Must finish maze first! (state {self.state.name})")

        started = time.time()
        dest = self.location + offset
        logger.info(f"Goto {offset.x},{offset.y} -> {dest.x},{dest.y} by {self.path_by.value}")

        route = self.planner.plan(source=self.location, dest=dest, path_by=self.path_by)
        self._redraw()
        for nxt in route:
            relative = self.location.direction_to(nxt).relative_to(self.direction)
            if relative != RelativeDirection.FRONT:
                self.turn(relative)
            self.move_forward(1)
            self.dwell()
        self._redraw()

        logger.info(f"It took {(time.time() - started) * 1000:.0f}ms! "
                    f"{len(route)} cells, cost {self.planner.route_cost(route, self.path_by):.1f}")
        return route

    def go_home(self) -> List[Coords]:
        """Return to the cell the mouse was placed in."""
        return self.goto(self.board.center - self.location, self.config.path_by)

    def _redraw(self) -> None:
        if self.ui is not None:
            self.ui.redraw_required()

    # === Memory ===

    def get_maze_memory_key(self) -> str:
        return f"mouse-maze-{self.maze.get_maze_name()}"

    def remember_maze(self) -> bool:
        if self.store is None or self.state != MouseState.FINISHED:
            return False
        snapshot = {
            "board": self.board.to_dict(),
            "cheese": self.cheese.as_dict() if self.cheese else None,
            "totalCells": self.total_cells,
            "exploredCells": self.explored_cells,
            "state": self.state.name,
        }
        self.store.set(self.get_maze_memory_key(), json.dumps(snapshot))
        logger.info(f"Mouse: remembered maze as '{self.get_maze_memory_key()}'")
        return True

    def forget_maze(self) -> None:
        if self.store is not None:
            self.store.remove(self.get_maze_memory_key())

    def recall_maze(self) -> bool:
        """Restore a previously finished maze from the store, if there is one."""
        if self.store is None:
            return False
        key = self.get_maze_memory_key()
        raw = self.store.get(key)
        if raw is None:
            return False
        try:
            snapshot = json.loads(raw)
            board = MemoryGrid.from_dict(snapshot["board"])
            cheese = Coords.from_dict(snapshot["cheese"]) if snapshot.get("cheese") else None
            total_cells = int(snapshot["totalCells"])
            explored_cells = int(snapshot["exploredCells"])
            state = MouseState[snapshot["state"]]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable memory '{key}': {type(e).__name__}: {e}")
            return False
        if (board.width, board.height) != (self.board.width, self.board.height) or state != MouseState.FINISHED:
            logger.warning(f"Ignoring memory '{key}': doesn't match this maze")
            return False

        self.board = board
        self.cheese = cheese
        self.total_cells = total_cells
        self.explored_cells = explored_cells
        self.state = state
        self.solved = True
        logger.info(f"Mouse: recalled maze '{key}', {explored_cells}/{total_cells} cells explored")
        return True

    # === Perspective ===

    def get_board(self) -> List[List[Cell]]:
        return self.board.board()

    def get_win_location(self) -> Optional[Coords]:
        return self.cheese

    def get_mouse_location(self) -> Coords:
        return self.location

    def get_mouse_direction(self) -> AbsDirection:
        return self.direction

    def get_width(self) -> int:
        return self.board.width

    def get_height(self) -> int:
        return self.board.height

    def get_text(self, cell: Cell, text_type: CellText) -> Optional[str]:
        time_text = f"{round(cell.time * 10) / 10:g}" if cell.time else ''
        distance_text = f"{cell.distance:g}" if cell.distance else ''
        if text_type == CellText.TIME:
            return time_text
        if text_type == CellText.DISTANCE:
            return distance_text
        if text_type == CellText.PATH_BY:
            if cell.deadend:
                return 'D'
            return distance_text if self.path_by == PathingGoal.DISTANCE else time_text
        if text_type == CellText.DEADEND:
            return 'D' if cell.deadend else ''
        return ''


if __name__ == "__main__":
    main()
