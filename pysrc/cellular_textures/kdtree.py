# kdtree.py
"""KdTree - build-once 2D k-d tree for nearest seed queries."""

from __future__ import annotations

import math
import pickle
from collections.abc import Iterable, Iterator
from typing import Any

from ._builder import build_nodes
from ._common import (
    DEFAULT_LEAF_SIZE,
    DistancePoint,
    Point,
    _is_np_array,
    closer_of,
    sqr_distance,
    validate_leaf_size,
    validate_np_points,
    validate_point,
    validate_pruning,
)
from ._errors import InvariantViolationError
from ._logger import logger
from ._node import NO_CHILD, Branch, Leaf, Node


class KdTree:
    """
    Immutable spatial index over 2D integer points.

    The tree is built once from a point list by splitting at the lower median
    of the x axis, then y, alternating with depth. Partitions smaller than
    ``leaf_size`` are stored as leaves. Nodes live in a flat arena and branches
    refer to their children by index.

    Performance characteristics:
        Build: O(n log^2 n)
        Nearest neighbor: average O(log n + leaf_size)

    Thread-safety:
        Nothing is mutated after construction, so any number of threads may
        query the same instance without synchronization.

    Args:
        points: Non-empty iterable of (x, y) points with non-negative ints,
            or an integer NumPy array with shape (N, 2).
        leaf_size: Partitions with fewer points than this become leaves.
        pruning: ``"squared"`` compares the squared distance to the splitting
            plane with the best squared distance. ``"reference"`` compares the
            unsquared plane distance instead, visiting more subtrees but
            matching the traversal of the reference renderer exactly. Both modes
            return identical answers.

    Raises:
        InvalidInputError: If points is empty.
        ValueError: If a point, leaf_size or pruning is invalid.
        TypeError: If a coordinate is not an integer.

    Example:
        ```python
        tree = KdTree([(5, 4), (2, 6), (13, 3), (3, 1), (10, 2), (8, 7)])
        dist, point = tree.nearest((9, 4))
        print(f"Nearest seed {point} at {dist:.3f}")
        ```
    """

    __slots__ = ("_count", "_depth", "_leaf_size", "_nodes", "_pruning")

    def __init__(
        self,
        points: Iterable[Any],
        *,
        leaf_size: int = DEFAULT_LEAF_SIZE,
        pruning: str = "squared",
    ):
        self._leaf_size = validate_leaf_size(leaf_size)
        self._pruning = validate_pruning(pruning)

        if _is_np_array(points):
            points = validate_np_points(points)
        pts = [validate_point(p) for p in points]
        self._nodes, self._depth = build_nodes(pts, self._leaf_size)
        self._count = len(pts)

        logger.debug(
            "Built k-d tree: %d points, %d nodes, depth %d, leaf_size %d",
            self._count,
            len(self._nodes),
            self._depth,
            self._leaf_size,
        )

    # ---- Queries ----

    def nearest(self, target: Any) -> tuple[float, Point]:
        """
        Return the seed closest to ``target`` and its euclidean distance.

        Ties between equally distant seeds resolve deterministically: a pivot
        beats anything below it, and inside a leaf the first stored point wins.

        Args:
            target: Query point (x, y). May lie outside the seeds' bounding box.

        Returns:
            Tuple of (distance, (x, y)).

        Example:
            ```python
            dist, (x, y) = tree.nearest((15, 15))
            ```
        """
        sqr, point = self.nearest_sq(target)
        return math.sqrt(sqr), point

    def nearest_sq(self, target: Any) -> DistancePoint:
        """Like nearest(), but return the squared distance."""
        return self._query(0, validate_point(target), 0)

    def nearest_np(self, targets: Any) -> tuple[Any, Any]:
        """
        Query many targets at once.

        Args:
            targets: Integer array-like with shape (N, 2).

        Returns:
            Tuple of (distances, points) where:
                distances: NDArray[np.float64] with shape (N,)
                points: NDArray[np.int64] with shape (N, 2)

        Raises:
            ValueError: If targets does not have shape (N, 2).
            TypeError: If targets is not an integer array.
            ImportError: If NumPy is not installed.
        """
        import numpy as np

        rows = validate_np_points(np.asarray(targets))

        distances = np.empty(len(rows), dtype=np.float64)
        points = np.empty((len(rows), 2), dtype=np.int64)
        for i, (x, y) in enumerate(rows):
            distances[i], points[i] = self.nearest((x, y))
        return distances, points

    def _query(self, index: int, target: Point, depth: int) -> DistancePoint:
        node = self._node_at(index)

        if type(node) is Leaf:
            points = node.points
            if not points or len(points) >= self._leaf_size:
                raise InvariantViolationError(
                    f"leaf {index} holds {len(points)} points, "
                    f"expected 1 to {self._leaf_size - 1}"
                )
            best_point = points[0]
            best_sqr = sqr_distance(best_point, target)
            for p in points[1:]:
                d = sqr_distance(p, target)
                if d < best_sqr:
                    best_sqr = d
                    best_point = p
            return best_sqr, best_point

        if type(node) is not Branch:
            raise InvariantViolationError(
                f"node {index} has unsupported type {type(node).__name__}"
            )

        axis = depth & 1
        pivot = node.pivot
        best: DistancePoint = (sqr_distance(pivot, target), pivot)

        # Ties on the axis coordinate send the search right first.
        if pivot[axis] > target[axis]:
            near, far = node.left, node.right
        else:
            near, far = node.right, node.left

        if near != NO_CHILD:
            best = closer_of(best, self._query(near, target, depth + 1))

        if far != NO_CHILD:
            plane = abs(target[axis] - pivot[axis])
            if self._pruning == "squared":
                plane *= plane
            if plane < best[0]:
                best = closer_of(best, self._query(far, target, depth + 1))

        return best

    def _node_at(self, index: int) -> Node:
        if not 0 <= index < len(self._nodes):
            raise InvariantViolationError(
                f"child index {index} is outside the arena of {len(self._nodes)} nodes"
            )
        return self._nodes[index]

    # ---- Invariants ----

    def check_invariants(self) -> None:
        """
        Walk the whole arena and verify the tree's structural invariants.

        Checks that every node is reachable exactly once, that every leaf holds
        between 1 and leaf_size - 1 points, that the subtree point counts add up
        to the number of points built from, that each pivot separates its
        subtrees along its axis, and that the recorded depth is the deepest
        level reached.

        Raises:
            InvariantViolationError: On the first violated invariant.
        """
        seen: set[int] = set()
        points, depth = self._collect(0, 0, seen)
        if len(points) != self._count:
            raise InvariantViolationError(
                f"tree holds {len(points)} points, built from {self._count}"
            )
        if len(seen) != len(self._nodes):
            raise InvariantViolationError(
                f"{len(self._nodes) - len(seen)} arena nodes are unreachable"
            )
        if depth != self._depth:
            raise InvariantViolationError(
                f"tree reaches depth {depth}, recorded depth is {self._depth}"
            )

    def _collect(self, index: int, depth: int, seen: set[int]) -> tuple[list[Point], int]:
        if index in seen:
            raise InvariantViolationError(f"node {index} is reachable twice")
        seen.add(index)
        node = self._node_at(index)

        if type(node) is Leaf:
            if not 0 < len(node.points) < self._leaf_size:
                raise InvariantViolationError(
                    f"leaf {index} holds {len(node.points)} points, "
                    f"expected 1 to {self._leaf_size - 1}"
                )
            return list(node.points), depth

        if type(node) is not Branch:
            raise InvariantViolationError(
                f"node {index} has unsupported type {type(node).__name__}"
            )

        axis = depth & 1
        split = node.pivot[axis]
        out = [node.pivot]
        deepest = depth
        if node.left != NO_CHILD:
            left, left_depth = self._collect(node.left, depth + 1, seen)
            if any(p[axis] > split for p in left):
                raise InvariantViolationError(f"left subtree of node {index} crosses its pivot")
            out.extend(left)
            deepest = max(deepest, left_depth)
        if node.right != NO_CHILD:
            right, right_depth = self._collect(node.right, depth + 1, seen)
            if any(p[axis] < split for p in right):
                raise InvariantViolationError(f"right subtree of node {index} crosses its pivot")
            out.extend(right)
            deepest = max(deepest, right_depth)
        return out, deepest

    # ---- Utilities ----

    @property
    def leaf_size(self) -> int:
        return self._leaf_size

    @property
    def pruning(self) -> str:
        return self._pruning

    @property
    def depth(self) -> int:
        """Depth of the deepest node. A tree with a single node has depth 0."""
        return self._depth

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    def __len__(self) -> int:
        """Return the number of points in the tree."""
        return self._count

    def __iter__(self) -> Iterator[Point]:
        """Iterate over all points in arena order."""
        for node in self._nodes:
            if type(node) is Leaf:
                yield from node.points
            else:
                yield node.pivot

    def __contains__(self, point: Any) -> bool:
        """
        Check if ``point`` is one of the indexed seeds.

        Example:
            ```python
            tree = KdTree([(10, 20)])
            assert (10, 20) in tree
            assert (5, 5) not in tree
            ```
        """
        try:
            target = validate_point(point)
        except (TypeError, ValueError):
            return False
        return self._query(0, target, 0)[0] == 0.0

    def __repr__(self) -> str:
        return (
            f"KdTree(points={self._count}, nodes={len(self._nodes)}, "
            f"depth={self._depth}, leaf_size={self._leaf_size}, pruning={self._pruning!r})"
        )

    # ---- Serialization ----

    def to_bytes(self) -> bytes:
        """
        Serialize the tree to bytes.

        Returns:
            Bytes representing the serialized arena and its settings.
        """
        nodes = [
            ("L", node.points) if type(node) is Leaf else ("B", node.pivot, node.left, node.right)
            for node in self._nodes
        ]
        data = {
            "nodes": nodes,
            "leaf_size": self._leaf_size,
            "pruning": self._pruning,
            "depth": self._depth,
            "count": self._count,
        }
        return pickle.dumps(data)

    @classmethod
    def from_bytes(cls, data: bytes) -> KdTree:
        """
        Deserialize a tree from bytes.

        Args:
            data: Bytes from to_bytes().

        Returns:
            A new instance.

        Raises:
            InvariantViolationError: If the decoded arena is not a valid tree.
        """
        in_dict = pickle.loads(data)

        nodes: list[Node] = []
        for entry in in_dict["nodes"]:
            tag = entry[0]
            if tag == "L":
                nodes.append(Leaf(tuple(entry[1])))
            elif tag == "B":
                nodes.append(Branch(entry[1], entry[2], entry[3]))
            else:
                raise InvariantViolationError(f"unknown node tag {tag!r}")

        tree = cls.__new__(cls)
        tree._nodes = nodes
        tree._leaf_size = validate_leaf_size(in_dict["leaf_size"])
        tree._pruning = validate_pruning(in_dict["pruning"])
        tree._depth = in_dict["depth"]
        tree._count = in_dict["count"]
        tree.check_invariants()
        return tree


def build(points: Iterable[Any], **kwargs: Any) -> KdTree:
    """
    Build a KdTree from a non-empty point list.

    Keyword arguments are passed through to KdTree.
    """
    return KdTree(points, **kwargs)


def nearest(index: KdTree, target: Any) -> tuple[float, Point]:
    """Return (distance, point) for the seed in ``index`` closest to ``target``."""
    return index.nearest(target)
