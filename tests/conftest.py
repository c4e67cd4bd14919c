"""Shared maze builders and a recording UI delegate for the mouse tests."""

import matplotlib

matplotlib.use("Agg")

import pytest

from mmaze_config import MouseConfig, MouseSpeed
from mmaze_grid import AbsDirection, Coords
from mmaze_maze import GridMaze, get_default_maze
from mmaze_mouse import RectMouse


# ==========================================
# UI DELEGATE
# ==========================================

class RecordingUi:
    """Collects every notification; `trail` holds each cell the mouse entered."""

    def __init__(self, maze=None):
        self.maze = maze
        self.mouse = None
        self.moves = 0
        self.trail = []
        self.states = []
        self.redraws = 0
        self.on_enter = None  # called with the trail after each new cell

    def on_mouse_moved(self, dont_redraw: bool = False):
        self.moves += 1
        if self.maze is None:
            return
        last = self.trail[-1] if self.trail else self.maze.start
        if self.maze.location != last:
            self.trail.append(self.maze.location)
            if self.on_enter is not None:
                self.on_enter(self.trail)

    def on_mouse_changed_state(self, state):
        self.states.append(state)

    def redraw_required(self):
        self.redraws += 1


# ==========================================
# MAZES
# ==========================================

def open_3x3() -> GridMaze:
    """No inner walls, mouse top-left facing north, goal bottom-right."""
    return GridMaze(width=3, height=3, start=Coords(0, 0), goal=Coords(2, 2), name="open-3x3")


def corridor_with_branch() -> GridMaze:
    """
    Corridor along the top row with a blind branch going down from (2,0).

        S . J . G
            .
            .
    """
    maze = GridMaze.closed(width=5, height=3, start=Coords(0, 0), goal=Coords(4, 0),
                           direction=AbsDirection.EAST, name="corridor")
    maze.carve_path([Coords(x, 0) for x in range(5)])
    maze.carve_path([Coords(2, 0), Coords(2, 1), Coords(2, 2)])
    return maze


def two_routes() -> GridMaze:
    """
    Short staircase with many turns vs. a longer U with long straights.

        S . # #
        . . . #
        . # . .
        . # # G
        . . . .
    """
    maze = GridMaze.closed(width=4, height=5, start=Coords(0, 0), goal=Coords(3, 3), name="two-routes")
    maze.carve_path([Coords(0, 0), Coords(1, 0), Coords(1, 1), Coords(2, 1),
                     Coords(2, 2), Coords(3, 2), Coords(3, 3)])
    maze.carve_path([Coords(0, 0), Coords(0, 1), Coords(0, 2), Coords(0, 3), Coords(0, 4),
                     Coords(1, 4), Coords(2, 4), Coords(3, 4), Coords(3, 3)])
    return maze


def default_maze() -> GridMaze:
    blocks, start, goal = get_default_maze()
    return GridMaze.from_blocks(blocks=blocks, start=start, goal=goal, name="default")


# ==========================================
# FRAME CONVERSION
# ==========================================

def truth_to_memory(mouse: RectMouse, maze: GridMaze, pos: Coords) -> Coords:
    """Memory cell of a maze cell, undoing the heading the mouse was really placed with."""
    dx, dy = pos.x - maze.start.x, pos.y - maze.start.y
    for _ in range(int(maze.start_direction)):
        dx, dy = dy, -dx
    return mouse.board.center + Coords(dx, dy)


def memory_to_truth(mouse: RectMouse, maze: GridMaze, pos: Coords) -> Coords:
    dx, dy = pos.x - mouse.board.center.x, pos.y - mouse.board.center.y
    for _ in range(int(maze.start_direction)):
        dx, dy = -dy, dx
    return maze.start + Coords(dx, dy)


def truth_to_memory_direction(maze: GridMaze, direction: AbsDirection) -> AbsDirection:
    return AbsDirection((direction - maze.start_direction) % 4)


def reachable_cells(maze: GridMaze):
    """Every maze cell connected to the start, by plain graph search on the true walls."""
    seen = {maze.start}
    frontier = [maze.start]
    while frontier:
        pos = frontier.pop()
        for direction in AbsDirection:
            if maze.grid.has_wall(pos, direction):
                continue
            nxt = maze.grid.neighbour(pos, direction)
            if nxt is not None and nxt not in seen:
                seen.add(nxt)
                frontier.append(nxt)
    return seen


# ==========================================
# FIXTURES
# ==========================================

@pytest.fixture
def make_mouse():
    """Factory: wire a maze, a RecordingUi and an instant RectMouse together."""

    def _make(maze: GridMaze, *, store=None, **overrides):
        ui = RecordingUi(maze=maze)
        maze.ui = ui
        config = MouseConfig(speed=MouseSpeed.INSTA, **overrides)
        mouse = RectMouse(maze=maze, ui=ui, store=store, config=config)
        ui.mouse = mouse
        return mouse, ui

    return _make
