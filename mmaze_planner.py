"""Flood-fill path planning over the mouse's memory grid."""

import logging
import math
from typing import List, Optional

from mmaze_errors import PathingStuckError
from mmaze_grid import AbsDirection, Coords, MemoryGrid, PathingGoal

logger = logging.getLogger(__name__)

STRAIGHT_COST = 0.1
TURN_COST = 1.0

# Propagation order of the flood fill and probe order of the descent
FILL_ORDER = (AbsDirection.NORTH, AbsDirection.SOUTH, AbsDirection.WEST, AbsDirection.EAST)
DESCENT_ORDER = (AbsDirection.NORTH, AbsDirection.SOUTH, AbsDirection.EAST, AbsDirection.WEST)


class PathPlanner:
    """
    Routes between memory cells once the maze has been mapped.

    A flood fill labels cells with their cost to reach the destination, then
    a greedy descent walks the labels down from the source. Two cost modes:

    - DISTANCE: one per cell.
    - TIME: 0.1 for carrying on straight, 1.0 for any change of direction,
      since turning is slower than running a straight.
    """

    def __init__(self, *, grid: MemoryGrid):
        self.grid = grid

    def flood_fill(self, *, source: Coords, dest: Coords, path_by: PathingGoal) -> None:
        """
        Label cells outward from `dest` with distance and time costs.

        Depth-first propagation that only stops where a cell already holds a
        cost no worse than the one being offered, so every cell ends up with
        its best label. The source itself is never entered. Runs on an
        explicit stack in the same order a recursive fill would.
        """
        self.grid.reset_annotations()
        costs = self.grid.costs(path_by)
        stack = [(dest, 0, 0.0, None)]
        while stack:
            pos, distance, elapsed, arrived = stack.pop()
            if pos == source or not self.grid.in_bounds(pos):
                continue
            offered = distance if path_by == PathingGoal.DISTANCE else elapsed
            if self.grid.explored[pos.y, pos.x] and costs[pos.y, pos.x] <= offered:
                continue

            self.grid.explored[pos.y, pos.x] = True
            self.grid.distance[pos.y, pos.x] = distance
            self.grid.time[pos.y, pos.x] = elapsed

            for direction in reversed(FILL_ORDER):
                if self.grid.has_wall(pos, direction):
                    continue
                step_cost = STRAIGHT_COST if direction == arrived else TURN_COST
                stack.append((pos.step(direction), distance + 1, elapsed + step_cost, direction))

    def descend(self, *, source: Coords, dest: Coords, path_by: PathingGoal) -> List[Coords]:
        """
        Walk from `source` to the cheapest unvisited neighbour until `dest`.

        Returns
        -------
        List[Coords]
            Cells entered on the way, `dest` last. Empty if source is dest.
        """
        costs = self.grid.costs(path_by)
        route = []
        pos = source
        while pos != dest:
            self.grid.visited[pos.y, pos.x] = True
            best: Optional[Coords] = None
            best_value = math.inf
            for direction in DESCENT_ORDER:
                if self.grid.has_wall(pos, direction):
                    continue
                nxt = self.grid.neighbour(pos, direction)
                if nxt is None or self.grid.visited[nxt.y, nxt.x]:
                    continue
                value = costs[nxt.y, nxt.x]
                if not math.isnan(value) and value < best_value:
                    best, best_value = nxt, value
            if best is None:
                raise PathingStuckError(f"Got stuck at ({pos.x},{pos.y}) on the way to ({dest.x},{dest.y})")
            route.append(best)
            pos = best
        return route

    def plan(self, *, source: Coords, dest: Coords, path_by: PathingGoal) -> List[Coords]:
        if not self.grid.in_bounds(dest):
            raise ValueError(f"Destination ({dest.x},{dest.y}) is outside the memory grid")
        if source == dest:
            return []
        self.flood_fill(source=source, dest=dest, path_by=path_by)
        route = self.descend(source=source, dest=dest, path_by=path_by)
        logger.debug(f"Planned {len(route)} cells by {path_by.value} from ({source.x},{source.y}) to ({dest.x},{dest.y})")
        return route

    def route_cost(self, route: List[Coords], path_by: PathingGoal) -> float:
        """Cost label of the first cell of a planned route, i.e. what the whole trip costs from there."""
        if not route:
            return 0.0
        first = route[0]
        return float(self.grid.costs(path_by)[first.y, first.x])
