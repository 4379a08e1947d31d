import pytest

from cellular_textures import make_rng

SCENARIO_A = [(5, 4), (2, 6), (13, 3), (3, 1), (10, 2), (8, 7)]


@pytest.fixture(params=[1, 2, 4, 15], ids=lambda n: f"leaf{n}")
def leaf_size(request):
    return request.param


@pytest.fixture(params=["squared", "reference"])
def pruning(request):
    return request.param


@pytest.fixture
def scenario_a():
    return list(SCENARIO_A)


@pytest.fixture
def rng():
    return make_rng(100)
