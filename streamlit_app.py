import streamlit as st
import matplotlib.pyplot as plt

from mmaze_config import MouseSpeed, load_config, setup_logging, __version__
from mmaze_errors import MouseError
from mmaze_grid import CellText, Coords, PathingGoal
from mmaze_maze import GridMaze, get_default_maze
from mmaze_mouse import MouseState, RectMouse
from mmaze_render import prepare_render, render_payload_matplotlib
from mmaze_store import JsonFileStore, MemoryStore


class StreamlitUi:
    """Draws both perspectives into placeholders whenever the mouse moves."""

    def __init__(self):
        self.maze_placeholder = None
        self.memory_placeholder = None
        self.state_placeholder = None
        self.maze = None
        self.mouse = None

    def bind(self, *, maze_placeholder, memory_placeholder, state_placeholder):
        self.maze_placeholder = maze_placeholder
        self.memory_placeholder = memory_placeholder
        self.state_placeholder = state_placeholder

    def draw(self):
        if self.maze_placeholder is None or self.maze is None:
            return
        for placeholder, perspective, title in [
            (self.maze_placeholder, self.maze, "Maze"),
            (self.memory_placeholder, self.mouse, "Mouse memory"),
        ]:
            if perspective is None:
                continue
            fig = render_payload_matplotlib(prepare_render(perspective, text_type=CellText.PATH_BY, title=title))
            placeholder.pyplot(fig)
            plt.close(fig)

    # === MazeUiDelegate ===

    def on_mouse_moved(self, dont_redraw: bool = False):
        if not dont_redraw:
            self.draw()

    def on_mouse_changed_state(self, state: MouseState):
        if self.state_placeholder is not None and self.mouse is not None:
            self.state_placeholder.markdown(
                f"**{state.name}**: {self.mouse.steps} steps, {self.mouse.backtrack_count} backtracks, "
                f"{self.mouse.explored_cells}/{self.mouse.total_cells} cells explored")

    def redraw_required(self):
        self.draw()


def reset_maze():
    config = st.session_state.config
    blocks, start, goal = get_default_maze()
    ui = st.session_state.ui
    maze = GridMaze.from_blocks(blocks=blocks, start=start, goal=goal, name="default", ui=ui)
    mouse = RectMouse(maze=maze, ui=ui, store=st.session_state.store, config=config)
    ui.maze, ui.mouse = maze, mouse
    st.session_state.maze_obj = maze
    st.session_state.mouse_obj = mouse


def main():
    st.set_page_config(layout="wide")
    st.title("Micromouse maze")

    if 'app_version' not in st.session_state:
        st.session_state.app_version = __version__
        setup_logging()

    if 'config' not in st.session_state:
        st.session_state.config = load_config()
        store_dir = st.session_state.config.store_dir
        st.session_state.store = JsonFileStore(directory=store_dir) if store_dir else MemoryStore()
        st.session_state.ui = StreamlitUi()

    if 'maze_obj' not in st.session_state:
        reset_maze()

    config = st.session_state.config
    mouse: RectMouse = st.session_state.mouse_obj
    ui: StreamlitUi = st.session_state.ui

    # Split screen into two columns
    left_col, right_col = st.columns([2, 3])

    with left_col:
        speed_name = st.selectbox("Speed", [s.name for s in MouseSpeed], index=list(MouseSpeed).index(config.speed))
        config.speed = MouseSpeed[speed_name]
        path_name = st.radio("Path by", [p.name for p in PathingGoal], index=list(PathingGoal).index(config.path_by))
        config.path_by = PathingGoal[path_name]
        config.auto_continue = st.checkbox("Map the whole maze after solving", value=config.auto_continue)

        solve_clicked = st.button("Solve")
        continue_clicked = st.button("Continue")
        home_clicked = st.button("Go home")
        x_offset = st.number_input("Goto x offset", value=0, step=1)
        y_offset = st.number_input("Goto y offset", value=0, step=1)
        goto_clicked = st.button("Goto")
        if st.button("Reset maze"):
            mouse.stop()
            reset_maze()
            mouse = st.session_state.mouse_obj
        if st.button("Forget maze"):
            mouse.forget_maze()
            reset_maze()
            mouse = st.session_state.mouse_obj

        state_placeholder = st.empty()
        state_placeholder.markdown(f"**{mouse.state.name}**")

    with right_col:
        maze_col, memory_col = st.columns(2)
        with maze_col:
            maze_placeholder = st.empty()
        with memory_col:
            memory_placeholder = st.empty()

    ui.bind(maze_placeholder=maze_placeholder, memory_placeholder=memory_placeholder,
            state_placeholder=state_placeholder)
    ui.draw()

    try:
        if solve_clicked:
            mouse.solve()
        elif continue_clicked:
            mouse.continue_()
        elif home_clicked:
            mouse.go_home()
        elif goto_clicked:
            mouse.goto(Coords(int(x_offset), int(y_offset)), config.path_by)
    except (MouseError, ValueError) as e:
        st.error(f"{type(e).__name__}: {e}")
    ui.draw()

    st.divider()

    with st.expander('session state'):
        st.write(st.session_state)


if __name__ == "__main__":
    main()
