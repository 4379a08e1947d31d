import math

import pytest

from cellular_textures import InvalidInputError, KdTree, build, nearest, sqr_distance
from cellular_textures._node import NO_CHILD, Branch, Leaf


def test_sqr_distance_is_symmetric_and_exact():
    assert sqr_distance((0, 0), (3, 4)) == 25.0
    assert sqr_distance((3, 4), (0, 0)) == 25.0
    assert sqr_distance((7, 7), (7, 7)) == 0.0
    big = 2**40
    assert sqr_distance((big, 0), (0, big)) == float(2 * big * big)


def test_scenario_a_nearest(scenario_a, leaf_size, pruning):
    tree = KdTree(scenario_a, leaf_size=leaf_size, pruning=pruning)
    dist, point = tree.nearest((9, 4))
    assert point == (10, 2)
    assert dist == math.sqrt(5)
    assert dist == pytest.approx(2.2360679)


def test_scenario_a_layout_with_small_leaves(scenario_a):
    tree = KdTree(scenario_a, leaf_size=2)
    root = tree._nodes[0]  # type: ignore[attr-defined]
    assert isinstance(root, Branch)
    assert root.pivot == (5, 4)

    left = tree._nodes[root.left]  # type: ignore[attr-defined]
    assert isinstance(left, Branch)
    assert left.pivot == (3, 1)
    # Empty lower side is omitted, not stored as an empty node
    assert left.left == NO_CHILD
    assert tree._nodes[left.right] == Leaf(((2, 6),))  # type: ignore[attr-defined]

    right = tree._nodes[root.right]  # type: ignore[attr-defined]
    assert right.pivot == (13, 3)
    assert tree._nodes[right.left] == Leaf(((10, 2),))  # type: ignore[attr-defined]
    assert tree._nodes[right.right] == Leaf(((8, 7),))  # type: ignore[attr-defined]

    tree.check_invariants()


def test_small_set_is_a_single_leaf(scenario_a):
    tree = KdTree(scenario_a)
    assert tree.node_count == 1
    assert tree.depth == 0
    assert tree._nodes[0] == Leaf(tuple(scenario_a))  # type: ignore[attr-defined]


def test_median_pivot_uses_stable_sort():
    tree = KdTree([(4, 9), (4, 1), (4, 5)], leaf_size=1)
    assert tree._nodes[0].pivot == (4, 1)  # type: ignore[attr-defined]


@pytest.mark.parametrize("leaf_size", [1, 15])
def test_scenario_c_single_point(leaf_size):
    tree = KdTree([(5, 5)], leaf_size=leaf_size)
    assert len(tree) == 1
    assert tree.nearest((5, 5)) == (0.0, (5, 5))
    assert tree.nearest((8, 9)) == (5.0, (5, 5))
    assert tree.nearest((0, 0)) == (math.sqrt(50), (5, 5))
    assert tree.nearest((10_000, 3)) == (math.sqrt(9995**2 + 4), (5, 5))
    tree.check_invariants()


def test_single_point_with_leaf_size_one_is_a_childless_branch():
    tree = KdTree([(5, 5)], leaf_size=1)
    assert tree._nodes == [Branch((5, 5))]  # type: ignore[attr-defined]


@pytest.mark.parametrize("count", [20, 5000])
def test_scenario_d_duplicates(count, leaf_size, pruning):
    tree = KdTree([(3, 3)] * count, leaf_size=leaf_size, pruning=pruning)
    assert tree.depth <= count.bit_length()
    assert tree.nearest((3, 3)) == (0.0, (3, 3))
    assert tree.nearest((0, 7)) == (5.0, (3, 3))
    assert tree.nearest((3, 4)) == (1.0, (3, 3))
    tree.check_invariants()


def test_leaf_tie_keeps_first_stored_point():
    tree = KdTree([(0, 1), (1, 0)])
    assert tree.nearest((0, 0)) == (1.0, (0, 1))
    tree = KdTree([(1, 0), (0, 1)])
    assert tree.nearest((0, 0)) == (1.0, (1, 0))


def test_pivot_wins_tie_against_subtree():
    tree = KdTree([(1, 0), (0, 1)], leaf_size=1)
    assert tree._nodes[0].pivot == (0, 1)  # type: ignore[attr-defined]
    assert tree.nearest((0, 0)) == (1.0, (0, 1))


def test_self_distance_is_zero(rng, leaf_size):
    pts = list(zip(rng.integers(0, 500, 300).tolist(), rng.integers(0, 500, 300).tolist()))
    tree = KdTree(pts, leaf_size=leaf_size)
    for p in pts:
        dist, got = tree.nearest(p)
        assert dist == 0.0
        assert got == p


def test_repeated_queries_are_deterministic(rng):
    pts = list(zip(rng.integers(0, 100, 200).tolist(), rng.integers(0, 100, 200).tolist()))
    tree = KdTree(pts)
    targets = [(x, y) for x in range(0, 100, 7) for y in range(0, 100, 9)]
    first = [tree.nearest(t) for t in targets]
    again = [tree.nearest(t) for t in targets]
    assert first == again


def test_structural_invariants_hold(rng, leaf_size):
    for n in (1, 2, 14, 15, 16, 31, 100, 777):
        pts = list(zip(rng.integers(0, 50, n).tolist(), rng.integers(0, 50, n).tolist()))
        tree = KdTree(pts, leaf_size=leaf_size)
        tree.check_invariants()
        assert len(tree) == n
        assert sorted(tree) == sorted(pts)
        for node in tree._nodes:  # type: ignore[attr-defined]
            if isinstance(node, Leaf):
                assert 1 <= len(node.points) <= leaf_size - 1


def test_pruning_modes_agree(rng):
    pts = list(zip(rng.integers(0, 300, 400).tolist(), rng.integers(0, 300, 400).tolist()))
    squared = KdTree(pts, pruning="squared")
    reference = KdTree(pts, pruning="reference")
    for x in range(0, 320, 11):
        for y in range(0, 320, 13):
            assert squared.nearest((x, y)) == reference.nearest((x, y))


def test_targets_outside_bounding_box(scenario_a):
    tree = KdTree(scenario_a, leaf_size=2)
    assert tree.nearest((0, 0)) == (math.sqrt(10), (3, 1))
    assert tree.nearest((100, 3)) == (87.0, (13, 3))


def test_module_level_build_and_nearest(scenario_a):
    index = build(scenario_a, leaf_size=3)
    assert isinstance(index, KdTree)
    assert index.leaf_size == 3
    assert nearest(index, (9, 4)) == (math.sqrt(5), (10, 2))


def test_empty_input_rejected():
    with pytest.raises(InvalidInputError, match="empty point set"):
        KdTree([])
    with pytest.raises(ValueError):
        build([])


@pytest.mark.parametrize("leaf_size", [0, -3, 2.5, True, "15"])
def test_invalid_leaf_size(leaf_size):
    with pytest.raises(ValueError, match="leaf_size"):
        KdTree([(1, 1)], leaf_size=leaf_size)


def test_invalid_pruning_mode():
    with pytest.raises(ValueError, match="pruning must be one of"):
        KdTree([(1, 1)], pruning="linear")


def test_invalid_points_and_targets():
    with pytest.raises(ValueError, match="non-negative"):
        KdTree([(1, 1), (-1, 2)])
    with pytest.raises(TypeError, match="integers"):
        KdTree([(1.5, 2)])
    with pytest.raises(ValueError, match="pair of coordinates"):
        KdTree([(1, 2, 3)])

    tree = KdTree([(1, 1)])
    with pytest.raises(ValueError):
        tree.nearest((-4, 0))
    with pytest.raises(TypeError):
        tree.nearest((0.5, 0))


def test_len_contains_iter_and_repr(scenario_a):
    tree = KdTree(scenario_a, leaf_size=2)
    assert len(tree) == 6
    assert (10, 2) in tree
    assert (10, 3) not in tree
    assert (-1, 2) not in tree
    assert sorted(tree) == sorted(scenario_a)
    assert "points=6" in repr(tree)
    assert tree.pruning == "squared"


def test_serialization_round_trip(rng):
    pts = list(zip(rng.integers(0, 64, 120).tolist(), rng.integers(0, 64, 120).tolist()))
    tree = KdTree(pts, leaf_size=4, pruning="reference")
    clone = KdTree.from_bytes(tree.to_bytes())

    assert len(clone) == len(tree)
    assert clone.depth == tree.depth
    assert clone.leaf_size == 4
    assert clone.pruning == "reference"
    for x in range(0, 64, 3):
        for y in range(0, 64, 5):
            assert clone.nearest((x, y)) == tree.nearest((x, y))
