"""Text and matplotlib rendering of any maze perspective (real maze or mouse memory)."""

from typing import Any, Dict, List, Optional

import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection
from matplotlib.patches import Circle

from mmaze_grid import AbsDirection, CellText
from mmaze_maze import MazePerspective

MOUSE_ARROWS = {
    AbsDirection.NORTH: "^",
    AbsDirection.EAST: ">",
    AbsDirection.SOUTH: "v",
    AbsDirection.WEST: "<",
}

# colors
COLORS = {
    "wall_gray": "#6E6E6E",
    "goal_red": "#D55E00",
    "mouse_yellow": "#F0E442",
    "explored_light": "#EFEFEF",
    "unexplored_dark": "#BBBBBB",
    "deadend_blue": "#A6D5F7",
    "text_black": "#000000",
}


def render_ascii(perspective: MazePerspective, *, text_type: Optional[CellText] = None) -> str:
    """
    Render a perspective as ASCII art, one 3-character slot per cell.

        +---+---+
        | ^   G |
        +   +---+

    The mouse is drawn as an arrow, the goal as G. Unexplored cells show
    '#', otherwise the perspective's text for `text_type` (if any).
    """
    board = perspective.get_board()
    mouse = perspective.get_mouse_location()
    win = perspective.get_win_location()
    arrow = MOUSE_ARROWS[perspective.get_mouse_direction()]

    lines = []
    for row in board:
        top = "+"
        middle = ""
        for cell in row:
            top += "---+" if cell.north_wall else "   +"
            middle += "|" if cell.west_wall else " "
            if cell.coords == mouse:
                label = arrow
            elif win is not None and cell.coords == win:
                label = "G"
            elif not cell.explored:
                label = "#"
            else:
                label = (perspective.get_text(cell, text_type) if text_type else None) or ""
            middle += f"{label[:3]:^3}"
        middle += "|" if row[-1].east_wall else " "
        lines.extend([top, middle])
    bottom = "+" + "".join("---+" if cell.south_wall else "   +" for cell in board[-1])
    lines.append(bottom)
    return "\n".join(lines)


def prepare_render(perspective: MazePerspective, *, text_type: Optional[CellText] = None, title: str = "Maze") -> Dict[str, Any]:
    """Collect everything `render_payload_matplotlib` draws into a plain dict."""
    board = perspective.get_board()
    rows, cols = perspective.get_height(), perspective.get_width()

    # sizes (data units, i.e., fractions of a cell)
    R = {"goal": 0.30, "mouse": 0.30}

    segments = []
    explored, deadends, texts = [], [], []
    for row in board:
        for cell in row:
            x, y = cell.x, cell.y
            if cell.north_wall:
                segments.append(((x - 0.5, y - 0.5), (x + 0.5, y - 0.5)))
            if cell.west_wall:
                segments.append(((x - 0.5, y - 0.5), (x - 0.5, y + 0.5)))
            if cell.south_wall and y == rows - 1:
                segments.append(((x - 0.5, y + 0.5), (x + 0.5, y + 0.5)))
            if cell.east_wall and x == cols - 1:
                segments.append(((x + 0.5, y - 0.5), (x + 0.5, y + 0.5)))
            if cell.explored:
                explored.append((y, x))
            if cell.deadend:
                deadends.append((y, x))
            if text_type is not None:
                text = perspective.get_text(cell, text_type)
                if text:
                    texts.append({"rc": (y, x), "text": text})

    mouse = perspective.get_mouse_location()
    win = perspective.get_win_location()
    return {
        "extent": {"rows": rows, "cols": cols},
        "walls": {"segments": segments, "color": COLORS["wall_gray"], "linewidth": 2},
        "explored": {"points": explored, "facecolor": COLORS["explored_light"]},
        "deadends": {"points": deadends, "facecolor": COLORS["deadend_blue"]},
        "background": COLORS["unexplored_dark"],
        "goal": None if win is None else {"rc": (win.y, win.x), "radius": R["goal"], "facecolor": COLORS["goal_red"]},
        "mouse": {"rc": (mouse.y, mouse.x), "radius": R["mouse"], "facecolor": COLORS["mouse_yellow"],
                  "label": {"text": MOUSE_ARROWS[perspective.get_mouse_direction()], "color": "black", "weight": "bold"}},
        "texts": texts,
        "styles": {"title": title},
    }


def render_payload_matplotlib(payload: Dict[str, Any]):
    rows = payload["extent"]["rows"]
    cols = payload["extent"]["cols"]

    size = max(4, min(12, max(rows, cols) * 0.5))
    fig, ax = plt.subplots(1, 1, figsize=(size, size))
    ax.set_facecolor(payload["background"])

    def square(points: List, fc: str, z: int):
        for r, c in points:
            ax.add_patch(plt.Rectangle((c - 0.5, r - 0.5), 1, 1, facecolor=fc, edgecolor="none", zorder=z))

    # no edgecolor, no linewidth
    def dot(c, r, rad, fc, z=3, txt=None, fs=12):
        ax.add_patch(Circle((c, r), rad, facecolor=fc, edgecolor="none", linewidth=0, zorder=z))
        if txt:
            ax.text(c, r, txt, ha="center", va="center", color="black", weight="bold", zorder=z + 1, fontsize=fs)

    square(payload["explored"]["points"], payload["explored"]["facecolor"], z=1)
    square(payload["deadends"]["points"], payload["deadends"]["facecolor"], z=2)

    walls = payload["walls"]
    ax.add_collection(LineCollection(walls["segments"], colors=walls["color"], linewidths=walls["linewidth"], zorder=3))

    for item in payload["texts"]:
        r, c = item["rc"]
        ax.text(c, r, item["text"], ha="center", va="center", fontsize=6, zorder=4)

    if payload["goal"]:
        gr, gc = payload["goal"]["rc"]
        dot(gc, gr, payload["goal"]["radius"], payload["goal"]["facecolor"], z=5)
    mr, mc = payload["mouse"]["rc"]
    dot(mc, mr, payload["mouse"]["radius"], payload["mouse"]["facecolor"], z=6,
        txt=payload["mouse"]["label"]["text"], fs=8)

    ax.set_xlim(-0.5, cols - 0.5)
    ax.set_ylim(rows - 0.5, -0.5)
    ax.set_xticks([])
    ax.set_yticks([])
    ax.set_aspect("equal")
    ax.set_title(payload["styles"]["title"])
    for sp in ax.spines.values():
        sp.set_visible(False)
    plt.tight_layout()
    return fig
