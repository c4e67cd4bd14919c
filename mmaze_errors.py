"""Exceptions raised by the mouse engine and its path planner."""


class MouseError(RuntimeError):
    """Base class for mouse failures that end the current operation."""


class CrashedIntoWallError(MouseError):
    """The mouse tried a move it believed legal and the maze refused it."""


class MouseStuckError(MouseError):
    """No junctions are left to backtrack to and the goal was never reached."""


class MazeNotFinishedError(MouseError):
    """A route was requested before the maze was fully explored."""


class PathingStuckError(MouseError):
    """Greedy descent found no cheaper neighbour before reaching the destination."""
