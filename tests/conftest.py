"""Pytest fixtures for coverforge tests."""

from __future__ import annotations

import itertools
from collections.abc import Hashable, Iterable, Mapping

import pytest

from coverforge.constraints import ConstraintOracle, ConstraintSet, exclude
from coverforge.factors import Factor, FactorSpace
from coverforge.tuples import Tuple, is_sub_assignment


def all_pairs(space: FactorSpace) -> set[frozenset]:
    """Every (factor, level) pair-of-pairs the space defines."""
    pairs = set()
    for a, b in itertools.combinations(space, 2):
        for la in a.levels:
            for lb in b.levels:
                pairs.add(frozenset({(a.name, la), (b.name, lb)}))
    return pairs


def covered_pairs(rows: Iterable[Mapping[str, Hashable]]) -> set[frozenset]:
    """Every pair-of-pairs appearing in at least one row."""
    pairs = set()
    for row in rows:
        for a, b in itertools.combinations(row.items(), 2):
            pairs.add(frozenset({a, b}))
    return pairs


def unreachable_targets(space: FactorSpace, strength: int, oracle: ConstraintOracle) -> set[Tuple]:
    """Valid t-tuples that no valid full row contains, found by brute force."""
    valid_rows = [row for row in space.all_combinations() if not oracle.check(row).rejected]
    unreachable = set()
    for names in itertools.combinations(space.names, strength):
        for levels in itertools.product(*(space.get(n).levels for n in names)):
            target = Tuple(zip(names, levels))
            if oracle.check(target).rejected:
                continue
            if not any(is_sub_assignment(target, row) for row in valid_rows):
                unreachable.add(target)
    return unreachable


@pytest.fixture
def boolean_space() -> FactorSpace:
    """Three boolean factors: 12 pairs, 8 exhaustive rows."""
    return FactorSpace([
        Factor("A", [0, 1]),
        Factor("B", [0, 1]),
        Factor("C", [0, 1]),
    ])


@pytest.fixture
def mixed_space() -> FactorSpace:
    return FactorSpace([
        Factor("browser", ["chrome", "firefox", "safari"]),
        Factor("os", ["linux", "mac", "windows"]),
        Factor("locale", ["en", "de"]),
        Factor("network", ["wifi", "lte"]),
    ])


@pytest.fixture
def pair_excluded() -> ConstraintSet:
    """Rejects A=0 together with B=0 as soon as both are assigned."""
    return ConstraintSet([exclude("no_a0_b0", A=0, B=0)])


@pytest.fixture
def give_up_oracle() -> ConstraintSet:
    """Accepts the pair A=0,B=0 but rejects every full row containing it.

    The constraint is scoped to all three factors, so the pair alone is
    UNKNOWN and stays a target that no valid row can ever cover.
    """
    return ConstraintSet([exclude("no_a0_b0_rows", factors=["A", "B", "C"], A=0, B=0)])


@pytest.fixture
def scoped_four_factor() -> tuple[FactorSpace, ConstraintSet]:
    """Four boolean factors; A=0,B=0 is only decided once D is assigned too.

    Every full row containing the pair is rejected, so it is the only
    unreachable target.
    """
    space = FactorSpace.from_mapping({"A": [0, 1], "B": [0, 1], "C": [0, 1], "D": [0, 1]})
    return space, ConstraintSet([exclude("ab_rows", factors=["A", "B", "D"], A=0, B=0)])


@pytest.fixture
def scoped_five_factor() -> tuple[FactorSpace, ConstraintSet]:
    """Five factors with two scoped exclusions on E=0.

    Only A=0,E=0 and D=0,E=0 are unreachable; E=0 itself still combines
    with every level of B and C.
    """
    space = FactorSpace.from_mapping({
        "A": [0, 1],
        "B": [0, 1, 2],
        "C": [0, 1],
        "D": [0, 1],
        "E": [0, 1, 2],
    })
    constraints = ConstraintSet([
        exclude("e0_a0", factors=["E", "A", "D", "C"], E=0, A=0),
        exclude("e0_d0", factors=["A", "B", "C", "D", "E"], E=0, D=0),
    ])
    return space, constraints
