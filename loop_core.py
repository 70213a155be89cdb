import logging
import random
from collections import namedtuple

logger = logging.getLogger(__name__)


# ============================================================================
# SIDES & CONNECTOR VECTORS
# ============================================================================

NORTH, EAST, SOUTH, WEST = 0, 1, 2, 3
SIDES = (NORTH, EAST, SOUTH, WEST)
SIDE_NAMES = ('N', 'E', 'S', 'W')

# y grows southwards, same as the SVG canvas
SIDE_OFFSETS = {
    NORTH: (0, -1),
    EAST: (1, 0),
    SOUTH: (0, 1),
    WEST: (-1, 0),
}

CLOSED = 0
OPEN = 1
UNCONSTRAINED = -1

HORIZONTAL = 0  # flip across the vertical axis, swaps E and W
VERTICAL = 1    # flip across the horizontal axis, swaps N and S


def opposite(side):
    return (side + 2) % 4


def rotate(connectors, rotation):
    """Rotate a connector vector by quarter turns clockwise.

    result[(i + rotation) % 4] = connectors[i]
    """
    result = [0, 0, 0, 0]
    for i in SIDES:
        result[(i + rotation) % 4] = connectors[i]
    return tuple(result)


def mirror_connectors(connectors, direction=HORIZONTAL):
    """Swap E/W (direction 0) or N/S (direction 1) of a connector vector."""
    n, e, s, w = connectors
    if direction == HORIZONTAL:
        return (n, w, s, e)
    if direction == VERTICAL:
        return (s, e, n, w)
    raise ValueError("mirror direction must be 0 or 1, got {!r}".format(direction))


# ============================================================================
# TILE VARIANT CATALOG
# ============================================================================

TileVariant = namedtuple('TileVariant', ['name', 'connectors', 'weight'])
PlacedTile = namedtuple('PlacedTile', ['variant', 'rotation'])

EMPTY = 'empty'
END = 'end'
CURVE = 'curve'
STRAIGHT = 'straight'
BRANCH = 'branch'
CROSS = 'cross'

VARIANTS = {
    EMPTY: TileVariant(EMPTY, (0, 0, 0, 0), 0.25),
    END: TileVariant(END, (1, 0, 0, 0), 0.25),
    CURVE: TileVariant(CURVE, (1, 1, 0, 0), 0.4),
    STRAIGHT: TileVariant(STRAIGHT, (1, 0, 1, 0), 0.4),
    BRANCH: TileVariant(BRANCH, (1, 1, 1, 0), 0.4),
    CROSS: TileVariant(CROSS, (1, 1, 1, 1), 0.4),
}

DEFAULT_TILE_WEIGHTS = {name: v.weight for name, v in VARIANTS.items()}


def get_variant(name):
    return VARIANTS[name]


def get_tile_weight(name, tile_weights=None):
    """Weight of a variant, taken from tile_weights when it names it.

    tile_weights maps variant name -> non-negative float. Variants the
    mapping leaves out keep their catalog weight.
    """
    if tile_weights is not None and name in tile_weights:
        weight = float(tile_weights[name])
        if weight < 0:
            raise ValueError("weight for {!r} must be >= 0, got {}".format(name, weight))
        return weight
    return VARIANTS[name].weight


def distinct_rotations(variant):
    """Rotations of variant giving distinct effective connectors, lowest first.

    Empty and cross only have rotation 0, straight has 0 and 1.
    """
    seen = set()
    rotations = []
    for r in range(4):
        connectors = rotate(variant.connectors, r)
        if connectors not in seen:
            seen.add(connectors)
            rotations.append(r)
    return rotations


def _matches(connectors, requirement):
    return all(req == UNCONSTRAINED or conn == req
               for conn, req in zip(connectors, requirement))


def get_fitting_rotation(variant, requirement, rng=None):
    """Pick a rotation of variant that satisfies a border requirement.

    Every side must equal the requirement or the requirement must be -1.
    Ties are broken uniformly at random. Returns None when no rotation fits.
    """
    rng = rng if rng is not None else random
    candidates = [r for r in distinct_rotations(variant)
                  if _matches(rotate(variant.connectors, r), requirement)]
    if not candidates:
        return None
    return rng.choice(candidates)


def get_exact_rotation(variant, connectors):
    """Rotation of variant reproducing connectors exactly, or None."""
    for r in distinct_rotations(variant):
        if rotate(variant.connectors, r) == tuple(connectors):
            return r
    return None


def effective_connectors(tile):
    if tile is None:
        return (0, 0, 0, 0)
    return rotate(tile.variant.connectors, tile.rotation)


# ============================================================================
# GRID
# ============================================================================

def create_grid(width, height):
    """Create an all-empty grid, indexed grid[x][y]."""
    if isinstance(width, bool) or isinstance(height, bool):
        raise ValueError("grid dimensions must be integers, not booleans")
    if not isinstance(width, int) or not isinstance(height, int):
        raise ValueError("grid dimensions must be integers")
    if width <= 0 or height <= 0:
        raise ValueError("grid dimensions must be positive, got {}x{}".format(width, height))
    return [[None for _ in range(height)] for _ in range(width)]


def grid_size(grid):
    width = len(grid)
    height = len(grid[0]) if width > 0 else 0
    return width, height


def in_bounds(grid, x, y):
    width, height = grid_size(grid)
    return 0 <= x < width and 0 <= y < height


def get_tile(grid, x, y):
    """Placed tile at (x, y); None for an empty slot or off-grid."""
    if not in_bounds(grid, x, y):
        return None
    return grid[x][y]


def set_tile(grid, x, y, tile):
    if not in_bounds(grid, x, y):
        raise IndexError("({}, {}) is outside the grid".format(x, y))
    grid[x][y] = tile


def iter_coords(grid):
    width, height = grid_size(grid)
    for x in range(width):
        for y in range(height):
            yield (x, y)


def neighbor(x, y, side):
    dx, dy = SIDE_OFFSETS[side]
    return (x + dx, y + dy)


def border_requirement(grid, x, y):
    """Per-side constraint the neighbours of (x, y) impose.

    Off-grid -> 0, empty neighbour -> -1, filled neighbour -> its effective
    connector on the side facing back toward (x, y).
    """
    requirement = []
    for side in SIDES:
        nx, ny = neighbor(x, y, side)
        if not in_bounds(grid, nx, ny):
            requirement.append(CLOSED)
            continue
        tile = grid[nx][ny]
        if tile is None:
            requirement.append(UNCONSTRAINED)
            continue
        requirement.append(effective_connectors(tile)[opposite(side)])
    return tuple(requirement)


# ============================================================================
# GENERATOR
# ============================================================================

def rank_variants(tile_weights=None, rng=None):
    """Variant names ordered by weight plus fresh uniform jitter, highest first."""
    rng = rng if rng is not None else random
    scored = [(get_tile_weight(name, tile_weights) + rng.random(), name)
              for name in VARIANTS]
    scored.sort(key=lambda item: item[0], reverse=True)
    return [name for _, name in scored]


def fill(grid, x, y, tile_weights=None, rng=None):
    """Place the first ranked variant that fits at (x, y).

    Returns False and leaves the slot as it was (empty on a fresh grid) when
    nothing in the catalog fits.
    """
    requirement = border_requirement(grid, x, y)
    for name in rank_variants(tile_weights, rng):
        variant = VARIANTS[name]
        rotation = get_fitting_rotation(variant, requirement, rng)
        if rotation is not None:
            grid[x][y] = PlacedTile(variant, rotation)
            return True
    logger.debug("no variant fits (%d, %d) for requirement %s", x, y, requirement)
    return False


def fill_all(grid, only_empty=False, tile_weights=None, rng=None,
             progress_callback=None):
    """Fill every cell in scan order. Best effort: failures do not abort.

    Returns True only if every visited cell was filled.
    """
    width, height = grid_size(grid)
    total = width * height
    success = True
    failed = 0
    done = 0
    for x, y in iter_coords(grid):
        if not (only_empty and grid[x][y] is not None):
            if not fill(grid, x, y, tile_weights, rng):
                success = False
                failed += 1
        done += 1
        if progress_callback:
            progress_callback(done, total)
    if failed:
        logger.info("fill pass left %d of %d cells empty", failed, total)
    return success


def mirror(grid, direction=HORIZONTAL):
    """Copy the first half of the grid onto the second half, flipped.

    Direction 0 mirrors columns (needs even width), direction 1 mirrors rows
    (needs even height). Returns False without touching the grid on odd
    parity. A donor with no rotation reproducing its flipped connectors is
    skipped and the call reports False, but the other cells are still written.
    """
    if direction not in (HORIZONTAL, VERTICAL):
        raise ValueError("mirror direction must be 0 or 1, got {!r}".format(direction))
    width, height = grid_size(grid)
    if direction == HORIZONTAL and width % 2 != 0:
        logger.debug("cannot mirror horizontally, width %d is odd", width)
        return False
    if direction == VERTICAL and height % 2 != 0:
        logger.debug("cannot mirror vertically, height %d is odd", height)
        return False

    x_end = width // 2 if direction == HORIZONTAL else width
    y_end = height // 2 if direction == VERTICAL else height

    success = True
    for i in range(x_end):
        for j in range(y_end):
            donor = grid[i][j]
            if donor is None:
                logger.debug("mirror donor (%d, %d) is empty", i, j)
                success = False
                continue
            needed = mirror_connectors(effective_connectors(donor), direction)
            rotation = get_exact_rotation(donor.variant, needed)
            if rotation is None:
                logger.debug("no %s rotation gives %s at (%d, %d)",
                             donor.variant.name, needed, i, j)
                success = False
                continue
            if direction == HORIZONTAL:
                grid[width - 1 - i][j] = PlacedTile(donor.variant, rotation)
            else:
                grid[i][height - 1 - j] = PlacedTile(donor.variant, rotation)
    return success


def generate(width, height, tile_weights=None, mirror_directions=(), rng=None):
    """Create, fill and optionally mirror a grid. Returns (grid, success)."""
    grid = create_grid(width, height)
    success = fill_all(grid, tile_weights=tile_weights, rng=rng)
    for direction in mirror_directions:
        if not mirror(grid, direction):
            success = False
    return grid, success


# ============================================================================
# TRAVERSAL
# ============================================================================

PathNode = namedtuple('PathNode', ['coordinate', 'children'])


def _next_candidates(grid, coord):
    x, y = coord
    connectors = effective_connectors(grid[x][y])
    out = []
    for side in SIDES:
        if connectors[side] != OPEN:
            continue
        nx, ny = neighbor(x, y, side)
        # Open sides facing off-grid or an empty slot break generation
        # invariants; the walk just stops there.
        if in_bounds(grid, nx, ny) and grid[nx][ny] is not None:
            out.append((nx, ny))
    return out


def _walk(grid, start, visited):
    """Depth-first walk from start along open connectors, on an explicit stack.

    Children are attached in N, E, S, W order of discovery. Nodes are frozen
    into PathNode tuples once their subtree is complete.
    """
    visited.add(start)
    stack = [(start, [], iter(_next_candidates(grid, start)))]
    while True:
        coord, children, candidates = stack[-1]
        for nxt in candidates:
            if nxt not in visited:
                visited.add(nxt)
                stack.append((nxt, [], iter(_next_candidates(grid, nxt))))
                break
        else:
            stack.pop()
            node = PathNode(coord, tuple(children))
            if not stack:
                return node
            stack[-1][1].append(node)


def compute_forest(grid, rng=None):
    """Spanning forest of the grid's open-connector graph.

    End tiles root the first trees in shuffled order. Anything left after
    that (closed loops, empty cells) is rooted in scan order. Every
    coordinate appears exactly once across the returned roots.
    """
    rng = rng if rng is not None else random
    starts = [(x, y) for x, y in iter_coords(grid)
              if grid[x][y] is not None and grid[x][y].variant.name == END]
    rng.shuffle(starts)

    visited = set()
    forest = []
    for coord in starts:
        if coord in visited:
            continue
        forest.append(_walk(grid, coord, visited))

    end_roots = len(forest)
    for coord in iter_coords(grid):
        if coord not in visited:
            forest.append(_walk(grid, coord, visited))

    logger.debug("forest has %d end-rooted and %d fallback trees",
                 end_roots, len(forest) - end_roots)
    return forest


def iter_nodes(node):
    """Pre-order iteration over a tree."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def forest_coords(forest):
    return [node.coordinate for root in forest for node in iter_nodes(root)]


def forest_levels(forest):
    """Coordinates grouped by depth; all roots share level 0."""
    levels = []
    frontier = list(forest)
    while frontier:
        levels.append([node.coordinate for node in frontier])
        frontier = [child for node in frontier for child in node.children]
    return levels
