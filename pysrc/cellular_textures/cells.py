# cells.py
"""Seed point ("cell") generation with an injected random generator."""

from __future__ import annotations

import numpy as np

from ._common import Point


def make_rng(seed: int | None = 0) -> np.random.Generator:
    """Return a NumPy generator seeded with ``seed`` (None draws OS entropy)."""
    return np.random.default_rng(seed)


def validate_size(width: int, height: int) -> tuple[int, int]:
    """
    Validate image dimensions.

    Raises:
        ValueError: If either dimension is not a positive integer.
    """
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"{name} must be a positive integer, got {value!r}")
    return width, height


def generate_cells(
    width: int, height: int, count: int, rng: np.random.Generator
) -> list[Point]:
    """
    Draw ``count`` seed points uniformly from [0, width) x [0, height).

    Duplicates are possible and kept; the tree handles them.

    Args:
        width: Grid width in pixels.
        height: Grid height in pixels.
        count: Number of seeds to draw.
        rng: Source of randomness. Pass the same seeded generator to get the
            same cells back.

    Returns:
        List of (x, y) tuples of Python ints.

    Raises:
        ValueError: If the dimensions or count are invalid.

    Example:
        ```python
        cells = generate_cells(640, 480, 25, make_rng(7))
        ```
    """
    validate_size(width, height)
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ValueError(f"count must be a non-negative integer, got {count!r}")

    xs = rng.integers(0, width, size=count)
    ys = rng.integers(0, height, size=count)
    return list(zip(xs.tolist(), ys.tolist()))
