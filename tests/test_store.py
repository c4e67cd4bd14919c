"""Key-value stores and remembering a finished maze across mice."""

import json
import os

import pytest

from mmaze_grid import Coords, PathingGoal
from mmaze_maze import GridMaze
from mmaze_mouse import MouseState
from mmaze_store import JsonFileStore, MemoryStore

from conftest import memory_to_truth, truth_to_memory, two_routes


# ==========================================
# STORES
# ==========================================

def test_memory_store_roundtrip():
    store = MemoryStore()
    assert store.get("a") is None
    store.set("a", "1")
    assert store.get("a") == "1"
    store.remove("a")
    store.remove("a")
    assert store.get("a") is None


def test_memory_store_copies_initial_data():
    data = {"k": "v"}
    store = MemoryStore(data)
    store.set("k", "w")
    assert data == {"k": "v"}


def test_json_file_store(tmp_path):
    store = JsonFileStore(directory=str(tmp_path / "mice"))
    assert store.get("mouse-maze-a/b") is None

    store.set("mouse-maze-a/b", '{"x": 1}')
    files = os.listdir(tmp_path / "mice")
    assert files == ["mouse-maze-a_b.json"]
    assert json.loads(store.get("mouse-maze-a/b")) == {"x": 1}

    store.remove("mouse-maze-a/b")
    store.remove("mouse-maze-a/b")
    assert store.get("mouse-maze-a/b") is None


# ==========================================
# REMEMBERING A MAZE
# ==========================================

def test_finished_maze_is_remembered(make_mouse):
    store = MemoryStore()
    mouse, _ = make_mouse(two_routes(), store=store)
    mouse.solve()

    snapshot = json.loads(store.get("mouse-maze-two-routes"))
    assert snapshot["state"] == "FINISHED"
    assert snapshot["totalCells"] == 20
    assert snapshot["exploredCells"] == 16
    assert Coords.from_dict(snapshot["cheese"]) == mouse.cheese


def test_unfinished_maze_is_not_remembered(make_mouse):
    store = MemoryStore()
    mouse, _ = make_mouse(two_routes(), store=store, auto_continue=False)
    assert mouse.solve() == MouseState.SOLVED
    assert mouse.remember_maze() is False
    assert store.data == {}


def test_second_mouse_recalls_and_routes(make_mouse):
    store = MemoryStore()
    first, _ = make_mouse(two_routes(), store=store)
    first.solve()

    maze = two_routes()
    mouse, ui = make_mouse(maze, store=store)

    assert mouse.state == MouseState.FINISHED
    assert mouse.explored_cells == first.explored_cells
    assert mouse.cheese == first.cheese

    assert mouse.solve() == MouseState.FINISHED
    assert ui.moves == 0

    route = mouse.goto(mouse.cheese - mouse.location, PathingGoal.TIME)
    assert memory_to_truth(mouse, maze, route[-1]) == Coords(3, 3)
    assert maze.has_reached_goal()


def test_forget_maze(make_mouse):
    store = MemoryStore()
    mouse, _ = make_mouse(two_routes(), store=store)
    mouse.solve()
    key = mouse.get_maze_memory_key()
    assert store.get(key) is not None

    mouse.forget_maze()

    assert store.get(key) is None
    fresh, _ = make_mouse(two_routes(), store=store)
    assert fresh.state == MouseState.PLACED


@pytest.mark.parametrize("raw", ["not json", "{}", '{"board": 1, "state": "FINISHED"}'])
def test_unreadable_memory_is_ignored(make_mouse, raw):
    store = MemoryStore({"mouse-maze-two-routes": raw})
    mouse, _ = make_mouse(two_routes(), store=store)
    assert mouse.state == MouseState.PLACED
    assert mouse.explored_cells == 0


def test_memory_of_other_size_is_ignored(make_mouse):
    store = MemoryStore()
    mouse, _ = make_mouse(two_routes(), store=store)
    mouse.solve()

    other = GridMaze(width=2, height=2, start=Coords(0, 0), goal=Coords(1, 1), name="two-routes")
    stranger, _ = make_mouse(other, store=store)
    assert stranger.state == MouseState.PLACED
    assert stranger.board.width == 5


def test_file_store_survives_new_store_object(make_mouse, tmp_path):
    mouse, _ = make_mouse(two_routes(), store=JsonFileStore(directory=str(tmp_path)))
    mouse.solve()

    maze = two_routes()
    recalled, _ = make_mouse(maze, store=JsonFileStore(directory=str(tmp_path)))
    assert recalled.state == MouseState.FINISHED
    goal = truth_to_memory(recalled, maze, Coords(3, 3))
    assert recalled.cheese == goal
