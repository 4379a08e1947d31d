"""cellular_textures - Worley noise textures backed by a 2D k-d tree."""

from ._common import DistancePoint, Point, sqr_distance
from ._errors import InvalidInputError, InvariantViolationError
from .cells import generate_cells, make_rng
from .kdtree import KdTree, build, nearest
from .render import RenderConfig, distance_field, quantize, render, write_png

__all__ = [
    "DistancePoint",
    "InvalidInputError",
    "InvariantViolationError",
    "KdTree",
    "Point",
    "RenderConfig",
    "build",
    "distance_field",
    "generate_cells",
    "make_rng",
    "nearest",
    "quantize",
    "render",
    "sqr_distance",
    "write_png",
]
