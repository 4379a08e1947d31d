# _builder.py
"""Median-split construction of the k-d tree arena."""

from __future__ import annotations

from operator import itemgetter

from ._common import Point
from ._errors import InvalidInputError
from ._node import NO_CHILD, Branch, Leaf, Node

_AXIS_KEYS = (itemgetter(0), itemgetter(1))


def split_at_median(points: list[Point], depth: int) -> tuple[list[Point], list[Point], Point]:
    """
    Split a point set around its lower median on the axis for ``depth``.

    The sort is stable, so points sharing the axis coordinate keep their input
    order and the chosen pivot is reproducible.

    Args:
        points: Non-empty point list. Not modified.
        depth: Tree depth; even depths split on x, odd depths on y.

    Returns:
        (left, right, pivot) where left holds indices [0, m) of the sorted
        list, right holds (m, n) and pivot is the point at m = (n - 1) // 2.
    """
    ordered = sorted(points, key=_AXIS_KEYS[depth % 2])
    median_index = (len(ordered) - 1) // 2
    return ordered[:median_index], ordered[median_index + 1 :], ordered[median_index]


def build_nodes(points: list[Point], leaf_size: int) -> tuple[list[Node], int]:
    """
    Build the node arena for ``points``.

    Construction runs from an explicit work-list, so the interpreter's
    recursion limit never caps the input size. The root is always at index 0.

    Args:
        points: Non-empty list of validated points.
        leaf_size: Partitions smaller than this become leaves.

    Returns:
        (nodes, depth) where depth is the deepest level reached (root is 0).

    Raises:
        InvalidInputError: If points is empty.
    """
    if not points:
        raise InvalidInputError("cannot build a k-d tree from an empty point set")

    nodes: list[Node | None] = [None]
    pending: list[tuple[int, list[Point], int]] = [(0, points, 0)]
    max_depth = 0

    while pending:
        slot, part, depth = pending.pop()
        if depth > max_depth:
            max_depth = depth

        if len(part) < leaf_size:
            nodes[slot] = Leaf(tuple(part))
            continue

        left, right, pivot = split_at_median(part, depth)
        left_slot = right_slot = NO_CHILD
        if left:
            left_slot = len(nodes)
            nodes.append(None)
        if right:
            right_slot = len(nodes)
            nodes.append(None)
        nodes[slot] = Branch(pivot, left_slot, right_slot)

        # Right first so the left side is built next.
        if right:
            pending.append((right_slot, right, depth + 1))
        if left:
            pending.append((left_slot, left, depth + 1))

    return nodes, max_depth  # type: ignore[return-value]
