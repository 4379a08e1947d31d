# cli.py
"""Command-line entry point: render a cellular texture to a PNG file."""

from __future__ import annotations

import argparse
import sys

from ._common import DEFAULT_LEAF_SIZE, PRUNING_MODES
from ._logger import logger, set_debug
from .cells import generate_cells, make_rng
from .render import EXECUTORS, RenderConfig, render, write_png


class _ArgumentParser(argparse.ArgumentParser):
    """Parser that exits with status 1 on bad arguments."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def parse_size(text: str) -> tuple[int, int]:
    """Parse ``WIDTHxHEIGHT`` into a pair of positive ints."""
    width, sep, height = text.partition("x")
    try:
        if not sep:
            raise ValueError
        size = (int(width), int(height))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Unexpected dimensions: {text}") from None
    if size[0] <= 0 or size[1] <= 0:
        raise argparse.ArgumentTypeError(f"Unexpected dimensions: {text}")
    return size


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {text!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {text!r}")
    return value


def _cell_count(text: str) -> int:
    try:
        return _positive_int(text)
    except argparse.ArgumentTypeError:
        raise argparse.ArgumentTypeError(f"Unexpected cell counts: {text}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="cellular-textures",
        description="Render a cellular (Worley) noise texture to a grayscale PNG.",
        epilog="Example: cellular-textures 3000x3000 10",
    )
    parser.add_argument("pixels", metavar="PIXELS", type=parse_size, help="image size as WIDTHxHEIGHT")
    parser.add_argument("cells", metavar="CELLS", type=_cell_count, help="number of seed points")
    parser.add_argument("-o", "--output", default="output.png", help="output PNG path")
    parser.add_argument("--seed", type=int, default=0, help="random seed for cell placement")
    parser.add_argument(
        "--wrap",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="mirror queries across the image borders",
    )
    parser.add_argument("--leaf-size", type=_positive_int, default=DEFAULT_LEAF_SIZE)
    parser.add_argument("--pruning", choices=PRUNING_MODES, default="squared")
    parser.add_argument("--workers", type=_positive_int, default=None, help="query workers")
    parser.add_argument(
        "--executor", choices=EXECUTORS, default="thread", help="pool for query workers"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    set_debug(args.verbose)

    width, height = args.pixels
    cells = generate_cells(width, height, args.cells, make_rng(args.seed))
    config = RenderConfig(
        leaf_size=args.leaf_size,
        pruning=args.pruning,
        wrap=args.wrap,
        workers=args.workers,
        executor=args.executor,
    )
    pixels = render(cells, width, height, config)

    try:
        path = write_png(args.output, pixels)
    except OSError as exc:
        logger.error("Could not write %s: %s", args.output, exc)
        return 1

    logger.info("Wrote %s (%dx%d, %d cells)", path, width, height, args.cells)
    return 0


if __name__ == "__main__":
    sys.exit(main())
