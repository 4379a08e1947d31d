# _node.py
"""Tree node variants stored in the index arena."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ._common import Point

NO_CHILD = -1
"""Child slot value for an omitted (empty) side of a branch."""


@dataclass(frozen=True)
class Leaf:
    """
    Terminal node holding the points of a small partition.

    Attributes:
        points: Points in the order they reached the leaf. Never empty.
    """

    points: tuple[Point, ...]


@dataclass(frozen=True)
class Branch:
    """
    Interior node splitting its partition at the median along one axis.

    Attributes:
        pivot: The median point, removed from both sides.
        left: Arena index of the lower side, or NO_CHILD.
        right: Arena index of the upper side, or NO_CHILD.
    """

    pivot: Point
    left: int = NO_CHILD
    right: int = NO_CHILD


Node = Union[Leaf, Branch]
