# _common.py
"""Common types, the distance primitive, and validation helpers."""

from __future__ import annotations

from typing import Any

# Type aliases
Point = tuple[int, int]
"""Grid point as (x, y) with non-negative integer coordinates."""

DistancePoint = tuple[float, Point]
"""Squared distance paired with the point that produced it."""

DEFAULT_LEAF_SIZE = 15
"""Point-set size below which the builder stops splitting."""

PRUNING_MODES = ("squared", "reference")
"""Supported far-subtree pruning comparisons."""


def _is_np_array(x: Any) -> bool:
    """
    Check if x is a NumPy array without importing NumPy.

    Args:
        x: Object to check.

    Returns:
        True if x is a NumPy array.
    """
    mod = getattr(x.__class__, "__module__", "")
    return mod.startswith("numpy") and hasattr(x, "ndim") and hasattr(x, "shape")


def sqr_distance(p1: Point, p2: Point) -> float:
    """
    Squared euclidean distance between two grid points.

    The per-axis difference is taken as an absolute value first so the
    result never depends on argument order.
    """
    dx = abs(p1[0] - p2[0])
    dy = abs(p1[1] - p2[1])
    return float(dx * dx + dy * dy)


def closer_of(a: DistancePoint, b: DistancePoint) -> DistancePoint:
    """Return ``a`` unless ``b`` is strictly closer. Ties keep ``a``."""
    if b[0] < a[0]:
        return b
    return a


def validate_point(point: Any) -> Point:
    """
    Validate and normalize a point to a tuple of two non-negative ints.

    Args:
        point: Point as a sequence of two integers.

    Returns:
        Validated point as tuple.

    Raises:
        TypeError: If a coordinate is not an integer.
        ValueError: If the point does not have two coordinates or one is negative.
    """
    if type(point) is not tuple:
        point = tuple(point)
    if len(point) != 2:
        raise ValueError(f"point must be a pair of coordinates (x, y), got {point!r}")
    x, y = point
    # NumPy integer scalars expose __index__; bools are rejected explicitly.
    if isinstance(x, bool) or isinstance(y, bool):
        raise TypeError(f"point coordinates must be integers, got {point!r}")
    try:
        x, y = x.__index__(), y.__index__()
    except AttributeError:
        raise TypeError(f"point coordinates must be integers, got {point!r}") from None
    if x < 0 or y < 0:
        raise ValueError(f"point coordinates must be non-negative, got {point!r}")
    return (x, y)


def validate_leaf_size(leaf_size: Any) -> int:
    """
    Validate the leaf threshold.

    Raises:
        ValueError: If leaf_size is not an integer of at least 1.
    """
    if isinstance(leaf_size, bool) or not isinstance(leaf_size, int) or leaf_size < 1:
        raise ValueError(f"leaf_size must be an integer >= 1, got {leaf_size!r}")
    return leaf_size


def validate_pruning(pruning: str) -> str:
    """
    Validate the pruning mode name.

    Raises:
        ValueError: If pruning is not one of PRUNING_MODES.
    """
    if pruning not in PRUNING_MODES:
        raise ValueError(
            f"pruning must be one of {', '.join(PRUNING_MODES)}, got {pruning!r}"
        )
    return pruning


def validate_np_points(geoms: Any) -> list[list[int]]:
    """
    Validate a NumPy array of points and convert it to Python rows.

    Args:
        geoms: NumPy array with shape (N, 2) and an integer dtype.

    Returns:
        The rows as lists of Python ints.

    Raises:
        ValueError: If the array does not have shape (N, 2).
        TypeError: If the dtype is not an integer type.
    """
    import numpy as np

    if geoms.ndim != 2 or geoms.shape[1] != 2:
        raise ValueError(f"points must have shape (N, 2), got {geoms.shape}")
    if geoms.size and not np.issubdtype(geoms.dtype, np.integer):
        raise TypeError(f"points must be an integer array, got dtype {geoms.dtype}")
    return geoms.tolist()
