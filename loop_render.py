import logging
import math

import drawsvg as draw
from shapely import affinity
from shapely.geometry import LineString, Point
from shapely.ops import substring, unary_union

import loop_core

logger = logging.getLogger(__name__)

CELL_SIZE = 100
HALF_CELL = CELL_SIZE / 2

DEFAULT_RENDER_PARAMS = {
    'stroke_width': 0.5,    # outline / centre line width
    'pipe_width': 24,       # wall-to-wall width in 'outline' style
    'cap_radius': 18,       # radius of the knob drawn on end tiles
    'arc_points': 16,       # polyline resolution of curve arcs
    'color': 'black',
}

RENDER_STYLES = ('outline', 'line')


# ============================================================================
# TILE GEOMETRY
# ============================================================================

def _arc_points(cx, cy, r, start_deg, end_deg, num_points=16):
    pts = []
    for i in range(num_points + 1):
        a = math.radians(start_deg + (end_deg - start_deg) * i / num_points)
        pts.append((cx + r * math.cos(a), cy + r * math.sin(a)))
    return pts


def _straight_arm(side):
    """Line from the midpoint of side to the cell centre, canonical frame."""
    dx, dy = loop_core.SIDE_OFFSETS[side]
    return LineString([(dx * HALF_CELL, dy * HALF_CELL), (0, 0)])


def get_tile_arms(variant_name, arc_points=16, cap_radius=0):
    """Return [(canonical_side, LineString)] for an unrotated variant.

    Every arm starts at its side of the cell so a partial reveal grows
    inward from the connector. Curves are two quarter-arc halves around the
    north-east corner; the end arm stops at the cap.
    """
    variant = loop_core.get_variant(variant_name)
    if variant_name == loop_core.CURVE:
        half = max(1, arc_points // 2)
        north_half = _arc_points(HALF_CELL, -HALF_CELL, HALF_CELL, 180, 135, half)
        east_half = _arc_points(HALF_CELL, -HALF_CELL, HALF_CELL, 90, 135, half)
        return [(loop_core.NORTH, LineString(north_half)),
                (loop_core.EAST, LineString(east_half))]
    if variant_name == loop_core.END:
        return [(loop_core.NORTH, LineString([(0, -HALF_CELL), (0, -cap_radius)]))]
    return [(side, _straight_arm(side))
            for side in loop_core.SIDES if variant.connectors[side]]


def _place(geom, rotation, xloc, yloc):
    # Positive angles turn clockwise on a y-down canvas, N -> E for rotation 1
    if rotation:
        geom = affinity.rotate(geom, 90 * rotation, origin=(0, 0))
    return affinity.translate(geom, xoff=xloc, yoff=yloc)


def get_tile_lines(tile, xloc, yloc, progress=None, arc_points=16, cap_radius=0):
    """World-space centre lines of a placed tile.

    progress is an optional 4-sequence indexed by effective side (0..1);
    each arm is trimmed to that fraction of its length.
    """
    if tile is None:
        return []
    lines = []
    for side, arm in get_tile_arms(tile.variant.name, arc_points, cap_radius):
        effective_side = (side + tile.rotation) % 4
        p = 1.0 if progress is None else progress[effective_side]
        if p <= 0:
            continue
        if p < 1:
            arm = substring(arm, 0, p, normalized=True)
        lines.append(_place(arm, tile.rotation, xloc, yloc))
    return lines


def get_tile_cap(tile, xloc, yloc, cap_radius, progress=None):
    """Cap circle of an end tile, or None."""
    if tile is None or tile.variant.name != loop_core.END:
        return None
    if progress is not None and max(progress) <= 0:
        return None
    return Point(xloc, yloc).buffer(cap_radius)


def cell_origin(x, y, width, height):
    """Centre of cell (x, y) on a drawing whose origin is the grid centre."""
    xloc = (x - (width - 1) / 2.0) * CELL_SIZE
    yloc = (y - (height - 1) / 2.0) * CELL_SIZE
    return xloc, yloc


# ============================================================================
# SVG OUTPUT
# ============================================================================

def _iter_polygons(geom):
    if geom is None or geom.is_empty:
        return []
    return list(getattr(geom, 'geoms', [geom]))


def _draw_ring(drawing, coords, sw, color):
    flat = [c for pt in coords for c in pt]
    drawing.append(draw.Lines(*flat, close=True, stroke=color,
                              stroke_width=sw, fill='none'))


def _draw_line(drawing, line, sw, color):
    flat = [c for pt in line.coords for c in pt]
    if len(flat) < 4:
        return
    drawing.append(draw.Lines(*flat, close=False, stroke=color,
                              stroke_width=sw, fill='none'))


def _draw_grid_lines(drawing, width, height, sw):
    left = -width * HALF_CELL
    top = -height * HALF_CELL
    for i in range(1, width):
        x = left + i * CELL_SIZE
        drawing.append(draw.Line(x, top, x, -top, stroke='#cccccc',
                                 stroke_width=sw, fill='none'))
    for j in range(1, height):
        y = top + j * CELL_SIZE
        drawing.append(draw.Line(left, y, -left, y, stroke='#cccccc',
                                 stroke_width=sw, fill='none'))


def render_svg(grid, stroke_width=None, pipe_width=None, style='outline',
               progress=None, show_grid=False, render_params=None,
               progress_callback=None):
    """Render a generated grid to an SVG string.

    Args:
        grid: grid from loop_core.create_grid / fill_all
        stroke_width: outline width (defaults to DEFAULT_RENDER_PARAMS)
        pipe_width: wall-to-wall pipe width for 'outline' style
        style: 'outline' draws pipe walls only (plotter friendly),
               'line' draws centre lines
        progress: optional {(x, y): (n, e, s, w)} reveal fractions; cells
                  missing from the mapping are not drawn
        show_grid: draw light cell separators
        render_params: dict overriding DEFAULT_RENDER_PARAMS
        progress_callback: called as (current, total) per tile
    """
    if style not in RENDER_STYLES:
        raise ValueError("style must be one of {}, got {!r}".format(RENDER_STYLES, style))
    params = dict(DEFAULT_RENDER_PARAMS)
    if render_params:
        params.update(render_params)
    if stroke_width is not None:
        params['stroke_width'] = stroke_width
    if pipe_width is not None:
        params['pipe_width'] = pipe_width
    if params['arc_points'] < 2:
        raise ValueError("arc_points must be at least 2, got {}".format(params['arc_points']))
    sw = params['stroke_width']
    color = params['color']
    half_width = params['pipe_width'] / 2.0
    cap_radius = params['cap_radius']

    width, height = loop_core.grid_size(grid)
    d = draw.Drawing(width * CELL_SIZE, height * CELL_SIZE, origin='center',
                     displayInline=False)
    if show_grid:
        _draw_grid_lines(d, width, height, sw)

    # 'line' keeps the cap hollow so the arm ends at its rim
    arm_cap = cap_radius if style == 'line' else 0

    lines = []
    caps = []
    total = width * height
    count = 0
    for x, y in loop_core.iter_coords(grid):
        count += 1
        tile = grid[x][y]
        if progress is not None and (x, y) not in progress:
            if progress_callback:
                progress_callback(count, total)
            continue
        cell_progress = progress[(x, y)] if progress is not None else None
        xloc, yloc = cell_origin(x, y, width, height)
        lines.extend(get_tile_lines(tile, xloc, yloc, cell_progress,
                                    arc_points=params['arc_points'],
                                    cap_radius=arm_cap))
        cap = get_tile_cap(tile, xloc, yloc, cap_radius, cell_progress)
        if cap is not None:
            caps.append(cap)
        if progress_callback:
            progress_callback(count, total)

    if style == 'line':
        for line in lines:
            _draw_line(d, line, sw, color)
        for cap in caps:
            _draw_ring(d, cap.exterior.coords, sw, color)
    else:
        walls = [line.buffer(half_width, cap_style=2, join_style=2) for line in lines]
        body = unary_union(walls + caps) if (walls or caps) else None
        for poly in _iter_polygons(body):
            _draw_ring(d, poly.exterior.coords, sw, color)
            for interior in poly.interiors:
                _draw_ring(d, interior.coords, sw, color)

    return d.as_svg()


# ============================================================================
# REVEAL TIMING
# ============================================================================

def reveal_schedule(forest, step_time=20):
    """Start time (ms) of each coordinate: depth * step_time.

    All trees start together, one level per step.
    """
    if step_time <= 0:
        raise ValueError("step_time must be positive, got {}".format(step_time))
    schedule = {}
    for depth, level in enumerate(loop_core.forest_levels(forest)):
        for coord in level:
            schedule[coord] = depth * step_time
    return schedule


def reveal_duration(forest, step_time=20):
    return len(loop_core.forest_levels(forest)) * step_time


def reveal_progress(forest, elapsed, step_time=20):
    """Per-side reveal fraction of every coordinate after elapsed ms."""
    progress = {}
    for coord, start in reveal_schedule(forest, step_time).items():
        p = (elapsed - start) / float(step_time)
        p = min(max(p, 0.0), 1.0)
        progress[coord] = (p, p, p, p)
    return progress


def render_reveal_frames(grid, forest, step_time=20, frame_time=None, **render_kwargs):
    """SVG frames of the reveal animation from t=0 to the full network."""
    if frame_time is None:
        frame_time = step_time
    if frame_time <= 0:
        raise ValueError("frame_time must be positive, got {}".format(frame_time))
    duration = reveal_duration(forest, step_time)
    frames = []
    elapsed = 0
    while True:
        progress = reveal_progress(forest, elapsed, step_time)
        frames.append(render_svg(grid, progress=progress, **render_kwargs))
        if elapsed >= duration:
            break
        elapsed = min(elapsed + frame_time, duration)
    logger.debug("rendered %d reveal frames over %d ms", len(frames), duration)
    return frames
