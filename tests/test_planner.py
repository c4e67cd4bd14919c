"""Flood-fill labelling, greedy descent and goto routing through memory."""

import math

import numpy as np
import pytest

from mmaze_errors import MazeNotFinishedError, PathingStuckError
from mmaze_grid import AbsDirection, Coords, MemoryGrid, PathingGoal
from mmaze_mouse import MouseState
from mmaze_planner import PathPlanner

from conftest import memory_to_truth, open_3x3, truth_to_memory, two_routes


# ==========================================
# PLANNER ON HAND-BUILT MEMORY
# ==========================================

def open_memory() -> MemoryGrid:
    # 5x5 memory with no walls at all
    return MemoryGrid(maze_width=2, maze_height=1)


def test_distance_labels_are_cell_counts():
    memory = open_memory()
    PathPlanner(grid=memory).flood_fill(source=Coords(0, 0), dest=Coords(2, 1), path_by=PathingGoal.DISTANCE)

    assert memory.distance[1, 2] == 0
    assert memory.distance[1, 4] == 2
    assert memory.distance[2, 0] == 3
    # the source is never entered
    assert math.isnan(memory.distance[0, 0])


def test_time_labels_charge_turns():
    memory = open_memory()
    PathPlanner(grid=memory).flood_fill(source=Coords(0, 0), dest=Coords(2, 1), path_by=PathingGoal.TIME)

    assert memory.time[1, 2] == 0
    # first move out of the destination always counts as a turn
    assert memory.time[1, 3] == pytest.approx(1.0)
    assert memory.time[1, 4] == pytest.approx(1.1)
    assert memory.time[0, 2] == pytest.approx(1.0)
    assert memory.time[0, 3] == pytest.approx(2.0)


def test_plan_descends_to_destination():
    memory = open_memory()
    route = PathPlanner(grid=memory).plan(source=Coords(0, 0), dest=Coords(2, 1), path_by=PathingGoal.DISTANCE)

    assert len(route) == 3
    assert route[-1] == Coords(2, 1)
    cells = [Coords(0, 0)] + route
    for a, b in zip(cells, cells[1:]):
        a.direction_to(b)


def test_plan_respects_walls():
    memory = MemoryGrid(maze_width=1, maze_height=1)
    # wall between (0,1) and (1,1), go round through the top row
    memory.set_wall(Coords(0, 1), AbsDirection.EAST)
    memory.set_wall(Coords(0, 1), AbsDirection.SOUTH)

    route = PathPlanner(grid=memory).plan(source=Coords(0, 1), dest=Coords(1, 1), path_by=PathingGoal.DISTANCE)

    assert route == [Coords(0, 0), Coords(1, 0), Coords(1, 1)]


def test_plan_same_cell_is_empty():
    memory = open_memory()
    assert PathPlanner(grid=memory).plan(source=Coords(1, 1), dest=Coords(1, 1), path_by=PathingGoal.TIME) == []


def test_plan_outside_memory_rejected():
    memory = open_memory()
    with pytest.raises(ValueError):
        PathPlanner(grid=memory).plan(source=Coords(1, 1), dest=Coords(5, 1), path_by=PathingGoal.TIME)


def test_walled_off_destination_gets_stuck():
    memory = open_memory()
    for direction in AbsDirection:
        memory.set_wall(Coords(4, 1), direction)

    with pytest.raises(PathingStuckError):
        PathPlanner(grid=memory).plan(source=Coords(0, 1), dest=Coords(4, 1), path_by=PathingGoal.DISTANCE)


def test_plan_is_deterministic():
    memory = open_memory()
    memory.set_wall(Coords(2, 1), AbsDirection.NORTH)
    planner = PathPlanner(grid=memory)

    first = planner.plan(source=Coords(0, 2), dest=Coords(4, 0), path_by=PathingGoal.TIME)
    first_time = memory.time.copy()
    second = planner.plan(source=Coords(0, 2), dest=Coords(4, 0), path_by=PathingGoal.TIME)

    assert first == second
    assert np.array_equal(first_time, memory.time, equal_nan=True)


def test_route_cost_is_first_label():
    memory = open_memory()
    planner = PathPlanner(grid=memory)
    route = planner.plan(source=Coords(0, 1), dest=Coords(3, 1), path_by=PathingGoal.DISTANCE)
    assert planner.route_cost(route, PathingGoal.DISTANCE) == 2
    assert planner.route_cost([], PathingGoal.DISTANCE) == 0.0


# ==========================================
# GOTO
# ==========================================

def to_truth(mouse, maze, route):
    return [memory_to_truth(mouse, maze, pos) for pos in route]


def test_goto_needs_finished_maze(make_mouse):
    mouse, _ = make_mouse(open_3x3())
    with pytest.raises(MazeNotFinishedError):
        mouse.goto(Coords(1, 1))
    assert mouse.state == MouseState.PLACED


def test_two_routes_maze_is_mapped(make_mouse):
    maze = two_routes()
    mouse, _ = make_mouse(maze)

    assert mouse.solve() == MouseState.FINISHED
    assert maze.location == maze.start
    assert mouse.location == mouse.board.center
    assert mouse.total_cells == 20
    # 14 reachable cells plus two sealed cells proven dead from outside
    assert mouse.explored_cells == 16


def test_goto_by_distance_vs_time(make_mouse):
    maze = two_routes()
    mouse, _ = make_mouse(maze)
    mouse.solve()
    goal = truth_to_memory(mouse, maze, Coords(3, 3)) - mouse.location

    shortest = mouse.goto(goal, PathingGoal.DISTANCE)

    assert to_truth(mouse, maze, shortest) == [
        Coords(1, 0), Coords(1, 1), Coords(2, 1), Coords(2, 2), Coords(3, 2), Coords(3, 3)]
    assert mouse.planner.route_cost(shortest, PathingGoal.DISTANCE) == 5
    assert maze.location == Coords(3, 3)

    mouse.go_home()
    assert maze.location == maze.start

    quickest = mouse.goto(goal, PathingGoal.TIME)

    assert to_truth(mouse, maze, quickest) == [
        Coords(0, 1), Coords(0, 2), Coords(0, 3), Coords(0, 4),
        Coords(1, 4), Coords(2, 4), Coords(3, 4), Coords(3, 3)]
    assert mouse.planner.route_cost(quickest, PathingGoal.TIME) == pytest.approx(3.4)
    assert maze.location == Coords(3, 3)
    assert mouse.path_by == PathingGoal.TIME


def test_goto_zero_offset_stays_put(make_mouse):
    maze = open_3x3()
    mouse, ui = make_mouse(maze)
    mouse.solve()
    moves = ui.moves

    assert mouse.goto(Coords(0, 0)) == []
    assert ui.moves == moves


def test_goto_keeps_mouse_and_maze_in_step(make_mouse):
    maze = open_3x3()
    mouse, _ = make_mouse(maze)
    mouse.solve()

    for truth in (Coords(2, 0), Coords(0, 2), Coords(1, 1), Coords(2, 2)):
        offset = truth_to_memory(mouse, maze, truth) - mouse.location
        route = mouse.goto(offset, PathingGoal.TIME)
        assert maze.location == truth
        assert memory_to_truth(mouse, maze, route[-1]) == truth
