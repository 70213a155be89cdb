import streamlit as st
import streamlit.components.v1 as components
import loop_core
import loop_render
import re

st.set_page_config(page_title="Loop Preview", layout="wide")
st.title("Loop Preview")

with st.sidebar:
    st.header("Grid Settings")
    grid_width = st.slider("Grid Width", 1, 40, 12)
    grid_height = st.slider("Grid Height", 1, 40, 10)

    mirror_h = st.checkbox("Mirror left/right", value=False,
                           help="Needs an even width")
    mirror_v = st.checkbox("Mirror top/bottom", value=False,
                           help="Needs an even height")

    st.header("Tile Weights")
    with st.expander("Shape Weights"):
        tile_weights = {}
        for name, variant in loop_core.VARIANTS.items():
            tile_weights[name] = st.slider(name.capitalize(), 0.0, 2.0,
                                           float(variant.weight), 0.05)

    st.header("Drawing")
    style = st.selectbox("Style", list(loop_render.RENDER_STYLES), index=0)
    stroke_width = st.slider("Stroke Width", 0.2, 3.0, 0.5, 0.1)
    pipe_width = st.slider("Pipe Width", 4, 60, 24, 1,
                           help="Wall-to-wall width in outline style (cell = 100)")
    show_grid = st.checkbox("Show cell lines", value=False)
    zoom_level = st.slider("Zoom", 25, 200, 100, 5, help="Zoom level (100% = fit to window)")

    if st.button("Regenerate Layout", type="primary"):
        st.session_state.pop('grid', None)
        st.session_state.pop('grid_key', None)

mirror_directions = []
if mirror_h:
    mirror_directions.append(loop_core.HORIZONTAL)
if mirror_v:
    mirror_directions.append(loop_core.VERTICAL)

current_key = (grid_width, grid_height, tuple(mirror_directions),
               tuple(sorted(tile_weights.items())))

if 'grid' not in st.session_state or st.session_state.get('grid_key') != current_key:
    fill_progress = st.progress(0, text="Generating layout...")

    def fill_update(done, total):
        fill_progress.progress(done / total, text="{}/{} cells".format(done, total))

    grid = loop_core.create_grid(grid_width, grid_height)
    success = loop_core.fill_all(grid, tile_weights=tile_weights,
                                 progress_callback=fill_update)
    for direction in mirror_directions:
        if not loop_core.mirror(grid, direction):
            success = False
    fill_progress.empty()
    st.session_state.grid = grid
    st.session_state.grid_ok = success
    st.session_state.forest = loop_core.compute_forest(grid)
    st.session_state.grid_key = current_key

grid = st.session_state.grid
forest = st.session_state.forest

if not st.session_state.grid_ok:
    st.warning("Some cells could not be filled or mirrored. "
               "Mirroring needs an even dimension on the mirrored axis.")

st.header("Reveal")
step_time = st.slider("Step (ms)", 5, 200, 20, 5)
duration = loop_render.reveal_duration(forest, step_time)
elapsed = st.slider("Time (ms)", 0, max(duration, 1), max(duration, 1))
st.caption("{} trees, {} levels".format(len(forest), len(loop_core.forest_levels(forest))))

progress_bar = st.progress(0, text="Rendering tiles...")

def update_progress(current, total):
    progress_bar.progress(current / total, text="Rendering tile {} / {}".format(current, total))

svg_string = loop_render.render_svg(
    grid, stroke_width=stroke_width, pipe_width=pipe_width, style=style,
    progress=loop_render.reveal_progress(forest, elapsed, step_time),
    show_grid=show_grid, progress_callback=update_progress,
)
progress_bar.empty()
# Make SVG responsive for display
display_svg = re.sub(r'width="\d+"', 'width="100%"', svg_string, count=1)
display_svg = re.sub(r'height="\d+"', 'height="100%"', display_svg, count=1)

svg_size = zoom_level

html_content = f'''
<div style="background:#f0f0f0; height:100%; display:flex; align-items:center;
            justify-content:center; overflow:auto; padding:20px; box-sizing:border-box;">
    <div style="background:white; padding:10px; box-shadow: 0 2px 8px rgba(0,0,0,0.1);">
        <div style="width:{svg_size}vmin; height:{svg_size}vmin;">
            {display_svg}
        </div>
    </div>
</div>
'''
components.html(html_content, height=700, scrolling=True)

st.download_button(
    "Download SVG",
    svg_string,
    file_name="loops-preview.svg",
    mime="image/svg+xml"
)
