"""Shared fixtures for the function neighbours test suite."""

import pytest

from neighbours_core import DEFAULT_FUNCTION, Formula, HasseDiagram, PowerSetGraph


@pytest.fixture(scope="session")
def graph4():
    """The power set graph for n=4 (15 clauses)."""
    return PowerSetGraph(4)


@pytest.fixture(scope="session")
def hasse2():
    return HasseDiagram(2)


@pytest.fixture(scope="session")
def hasse3():
    """HasseDiagram for n=3, whose lattice has 9 consistent functions."""
    return HasseDiagram(3)


@pytest.fixture(scope="session")
def hasse4():
    return HasseDiagram(4)


@pytest.fixture
def default_formula():
    """{{1,2,3},{1,3,4},{2,4}} over 4 variables."""
    return Formula.from_string(4, DEFAULT_FUNCTION)
