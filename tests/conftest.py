"""Shared fixtures: the shipped NAO H25 description and its chain solvers."""

import pytest

from jax_humanoid import SupportFootModel
from jax_humanoid.chain import build_chain_solvers
from jax_humanoid.core import BoundsTable
from jax_humanoid.io import load_urdf


@pytest.fixture(scope="session")
def robot():
    return load_urdf()


@pytest.fixture(scope="session")
def solvers(robot):
    # Session scoped so the JIT cache is shared by all tests
    return build_chain_solvers(robot)


@pytest.fixture(scope="session")
def bounds(robot):
    return BoundsTable.from_robot(robot)


@pytest.fixture
def model(solvers, bounds):
    return SupportFootModel(solvers, bounds)
