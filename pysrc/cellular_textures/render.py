# render.py
"""Rasterize a nearest-seed distance field into a grayscale image."""

from __future__ import annotations

import os
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image

from ._common import DEFAULT_LEAF_SIZE, Point, validate_leaf_size, validate_pruning
from ._logger import logger
from .cells import validate_size
from .kdtree import KdTree


EXECUTORS = ("thread", "process")
"""Pools distance_field() can spread row bands over."""

# Tree decoded once per worker process by _init_worker.
_worker_tree: KdTree | None = None


@dataclass
class RenderConfig:
    """
    Settings for render().

    Attributes:
        leaf_size: Leaf threshold of the k-d tree.
        pruning: Pruning mode of the k-d tree ("squared" or "reference").
        wrap: Take the minimum over four mirrored queries per pixel so the
            texture darkens towards seeds reflected across the borders.
        workers: Number of query workers. None picks one per CPU.
        executor: "thread" or "process". See distance_field().
    """

    leaf_size: int = DEFAULT_LEAF_SIZE
    pruning: str = "squared"
    wrap: bool = False
    workers: int | None = None
    executor: str = "thread"

    def __post_init__(self) -> None:
        validate_leaf_size(self.leaf_size)
        validate_pruning(self.pruning)
        validate_executor(self.executor)
        if self.workers is not None and (
            isinstance(self.workers, bool)
            or not isinstance(self.workers, int)
            or self.workers < 1
        ):
            raise ValueError(f"workers must be a positive integer, got {self.workers!r}")


def validate_executor(executor: str) -> str:
    if executor not in EXECUTORS:
        raise ValueError(
            f"executor must be one of {', '.join(EXECUTORS)}, got {executor!r}"
        )
    return executor


def _resolve_workers(workers: int | None) -> int:
    if workers is None:
        return min(32, os.cpu_count() or 1)
    if workers < 1:
        raise ValueError(f"workers must be a positive integer, got {workers!r}")
    return workers


def _fill_rows(
    tree: KdTree, out: Any, y0: int, width: int, height: int, wrap: bool
) -> None:
    """Fill ``out[i]`` with the distances of grid row ``y0 + i``."""
    nearest = tree.nearest
    for i in range(len(out)):
        y = y0 + i
        row = out[i]
        for x in range(width):
            if wrap:
                row[x] = min(
                    nearest((x, y))[0],
                    nearest((x, height - y))[0],
                    nearest((width - x, y))[0],
                    nearest((width - x, height - y))[0],
                )
            else:
                row[x] = nearest((x, y))[0]


def _init_worker(data: bytes) -> None:
    global _worker_tree
    _worker_tree = KdTree.from_bytes(data)


def _process_band(y0: int, y1: int, width: int, height: int, wrap: bool) -> Any:
    if _worker_tree is None:
        raise RuntimeError("worker process was started without a tree")
    band = np.empty((y1 - y0, width), dtype=np.float64)
    _fill_rows(_worker_tree, band, y0, width, height, wrap)
    return band


def distance_field(
    tree: KdTree,
    width: int,
    height: int,
    *,
    wrap: bool = False,
    workers: int | None = None,
    executor: str = "thread",
) -> Any:
    """
    Compute the distance from every pixel to its nearest seed.

    Rows are split into bands and each band is queried independently.

    With ``executor="thread"`` the bands run on a thread pool that shares
    the tree and writes into disjoint slices of the output. The queries are
    pure Python, so the interpreter lock makes the threads interleave rather
    than run at the same time; this mode mostly helps on free-threaded builds.

    With ``executor="process"`` the tree is serialized with to_bytes(),
    decoded once in every worker process, and the bands are computed in
    parallel and copied back.

    Args:
        tree: Index over the seed points.
        width: Grid width in pixels.
        height: Grid height in pixels.
        wrap: If True, each pixel takes the minimum over the queries at
            (x, y), (x, height - y), (width - x, y) and (width - x, height - y).
        workers: Number of threads or processes. 1 runs inline.
        executor: "thread" or "process".

    Returns:
        NDArray[np.float64] with shape (height, width).
    """
    validate_size(width, height)
    validate_executor(executor)
    n_workers = _resolve_workers(workers)
    field = np.empty((height, width), dtype=np.float64)

    if n_workers == 1:
        _fill_rows(tree, field, 0, width, height, wrap)
        return field

    band = max(1, -(-height // (n_workers * 4)))
    bands = [(y0, min(height, y0 + band)) for y0 in range(0, height, band)]

    if executor == "process":
        with ProcessPoolExecutor(
            max_workers=n_workers, initializer=_init_worker, initargs=(tree.to_bytes(),)
        ) as pool:
            futures = [
                pool.submit(_process_band, y0, y1, width, height, wrap) for y0, y1 in bands
            ]
            for (y0, y1), future in zip(bands, futures):
                field[y0:y1] = future.result()
        return field

    with ThreadPoolExecutor(max_workers=n_workers) as pool:
        futures = [
            pool.submit(_fill_rows, tree, field[y0:y1], y0, width, height, wrap)
            for y0, y1 in bands
        ]
        for future in futures:
            future.result()
    return field


def quantize(field: Any) -> Any:
    """
    Normalize a distance field by its maximum and scale it to 0..255.

    Values are truncated, not rounded. A field that is zero everywhere
    quantizes to zeros.

    Returns:
        NDArray[np.uint8] with the same shape as field.
    """
    field = np.asarray(field, dtype=np.float64)
    maxdist = field.max() if field.size else 0.0
    if maxdist <= 0.0:
        return np.zeros(field.shape, dtype=np.uint8)
    return (field / maxdist * 255.0).astype(np.uint8)


def write_png(path: str | os.PathLike, pixels: Any) -> Path:
    """
    Encode a single-channel byte buffer as a grayscale PNG.

    Args:
        path: Output file path.
        pixels: NDArray[np.uint8] with shape (height, width).

    Returns:
        The path written.

    Raises:
        ValueError: If pixels is not a 2D uint8 array.
        OSError: If the file cannot be written.
    """
    pixels = np.asarray(pixels)
    if pixels.ndim != 2 or pixels.dtype != np.uint8:
        raise ValueError(
            f"pixels must be a 2D uint8 array, got shape {pixels.shape} dtype {pixels.dtype}"
        )
    out = Path(path)
    Image.fromarray(pixels).save(out, format="PNG")
    return out


def render(
    cells: list[Point], width: int, height: int, config: RenderConfig | None = None
) -> Any:
    """
    Render the cellular texture for ``cells`` on a width x height grid.

    Returns:
        NDArray[np.uint8] with shape (height, width).

    Raises:
        InvalidInputError: If cells is empty.
    """
    cfg = config or RenderConfig()
    validate_size(width, height)

    start = time.perf_counter()
    tree = KdTree(cells, leaf_size=cfg.leaf_size, pruning=cfg.pruning)
    field = distance_field(
        tree, width, height, wrap=cfg.wrap, workers=cfg.workers, executor=cfg.executor
    )
    pixels = quantize(field)
    logger.debug(
        "Rendered %dx%d texture from %d cells in %.3fs",
        width,
        height,
        len(tree),
        time.perf_counter() - start,
    )
    return pixels
