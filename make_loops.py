"""Generate a loop grid and save it as an SVG file."""

import argparse
import logging
import random
from datetime import datetime

import loop_core
import loop_render

logger = logging.getLogger("make_loops")


def parse_weight(text):
    """Parse NAME=VALUE into (name, float)."""
    name, sep, value = text.partition('=')
    name = name.strip()
    if not sep or name not in loop_core.VARIANTS:
        raise ValueError("expected NAME=VALUE with NAME one of {}, got {!r}".format(
            ', '.join(loop_core.VARIANTS), text))
    try:
        weight = float(value)
    except ValueError:
        raise ValueError("weight for {!r} is not a number: {!r}".format(name, value))
    if weight < 0:
        raise ValueError("weight for {!r} must be >= 0".format(name))
    return name, weight


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate a grid of connected loop tiles and save it as SVG."
    )
    parser.add_argument("--width", type=int, default=12, help="Grid width in tiles")
    parser.add_argument("--height", type=int, default=10, help="Grid height in tiles")
    parser.add_argument(
        "--mirror",
        dest="mirror_directions",
        action="append",
        type=int,
        choices=(loop_core.HORIZONTAL, loop_core.VERTICAL),
        default=[],
        help="Mirror the grid: 0 = left/right, 1 = top/bottom. Can be repeated.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--weight",
        dest="weights",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Override a tile weight, e.g. --weight cross=0.1. Can be repeated.",
    )
    parser.add_argument("--style", choices=loop_render.RENDER_STYLES, default="outline")
    parser.add_argument("--stroke-width", type=float, default=None)
    parser.add_argument("--pipe-width", type=float, default=None)
    parser.add_argument("--grid-lines", action="store_true", help="Draw cell separators")
    parser.add_argument("--out", default=None, help="Output file (default: timestamped)")
    parser.add_argument("--verbose", action="store_true", help="Log per-cell failures")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        tile_weights = dict(parse_weight(w) for w in args.weights)
        rng = random.Random(args.seed)
        grid, success = loop_core.generate(args.width, args.height,
                                           tile_weights=tile_weights or None,
                                           mirror_directions=args.mirror_directions,
                                           rng=rng)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    if not success:
        logger.warning("generation reported failures; saving partial grid")

    svg = loop_render.render_svg(grid, stroke_width=args.stroke_width,
                                 pipe_width=args.pipe_width, style=args.style,
                                 show_grid=args.grid_lines)
    filename = args.out or "loops-{}.svg".format(datetime.now().strftime('%Y%m%d-%H%M%S'))
    with open(filename, "w") as fh:
        fh.write(svg)
    logger.info("Saved: %s (%dx%d)", filename, args.width, args.height)
    return 0 if success else 1


if __name__ == "__main__":
    raise SystemExit(main())
