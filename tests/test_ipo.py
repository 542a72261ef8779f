"""Tests specific to the IPO engine and its optimizer."""

from __future__ import annotations

import warnings
from collections.abc import Hashable, Sequence

import pytest

from coverforge.constraints import ConstraintOracle
from coverforge.engines.ipo import IpoEngine
from coverforge.engines.optimizers import GreedyOptimizer, Optimizer
from coverforge.errors import PartialCoverageWarning
from coverforge.factors import FactorSpace
from coverforge.frontier import CoverageFrontier
from coverforge.tuples import Tuple
from tests.conftest import all_pairs, covered_pairs, unreachable_targets


class FirstChoiceOptimizer:
    """Takes the first option everywhere and records what it was asked."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self._greedy = GreedyOptimizer()

    def fill_in_missing_factors(
        self,
        partial: Tuple,
        frontier: CoverageFrontier,
        oracle: ConstraintOracle,
        space: FactorSpace,
    ) -> Tuple | None:
        self.calls.append("fill")
        return self._greedy.fill_in_missing_factors(partial, frontier, oracle, space)

    def choose_best_tuple(
        self,
        candidate_rows: Sequence[Tuple],
        frontier: CoverageFrontier,
        factor_name: str,
        level: Hashable,
    ) -> Tuple:
        self.calls.append("tuple")
        return candidate_rows[0]

    def choose_best_value(
        self,
        factor_name: str,
        domain: Sequence[Hashable],
        partial: Tuple,
        frontier: CoverageFrontier,
    ) -> Hashable:
        self.calls.append("value")
        return domain[0]


# ============================================================
# IPO Growth Tests
# ============================================================


class TestIpoGrowth:
    """Tests for horizontal and vertical extension."""

    def test_default_optimizer(self, boolean_space):
        engine = IpoEngine(boolean_space)
        assert isinstance(engine.optimizer, GreedyOptimizer)
        assert isinstance(engine.optimizer, Optimizer)

    def test_three_boolean_factors(self, boolean_space):
        result = IpoEngine(boolean_space).generate()
        assert list(result.suite) == [
            Tuple({"A": 0, "B": 0, "C": 0}),
            Tuple({"A": 0, "B": 1, "C": 1}),
            Tuple({"A": 1, "B": 0, "C": 1}),
            Tuple({"A": 1, "B": 1, "C": 0}),
        ]
        assert result.frontier_sizes == [11, 10, 9, 8, 6, 4, 2, 0]

    def test_size_recorded_per_row_change(self, mixed_space):
        result = IpoEngine(mixed_space).generate()
        assert len(result.frontier_sizes) >= len(result.suite)
        assert result.frontier_sizes[-1] == 0

    def test_vertical_extension_adds_rows(self, boolean_space, pair_excluded):
        result = IpoEngine(boolean_space, pair_excluded).generate()
        assert result.complete
        assert len(result.suite) == 5
        assert Tuple({"A": 0, "B": 1, "C": 1}) in result.suite
        assert Tuple({"A": 1, "B": 0, "C": 1}) in result.suite

    def test_uneven_domains(self):
        space = FactorSpace.from_mapping({
            "small": [0, 1],
            "large": ["a", "b", "c", "d"],
            "mid": ["x", "y", "z"],
        })
        result = IpoEngine(space).generate()
        assert result.complete
        assert covered_pairs(result.suite) == all_pairs(space)
        assert len(result.suite) >= 4 * 3

    def test_strength_three_growth(self, mixed_space):
        result = IpoEngine(mixed_space, strength=3).generate()
        assert result.complete

    def test_no_row_dropped_when_pair_is_a_trap(self, boolean_space, give_up_oracle, caplog):
        with pytest.warns(PartialCoverageWarning):
            result = IpoEngine(boolean_space, give_up_oracle).generate()
        assert "Dropping row" not in caplog.text
        assert result.residue == [Tuple({"A": 0, "B": 0})]
        assert len(result.suite) == 5

    def test_vertical_rows_assign_every_factor(self, scoped_five_factor):
        space, oracle = scoped_five_factor
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", PartialCoverageWarning)
            result = IpoEngine(space, oracle).generate()
        for row in result.suite:
            space.validate(row, full=True)
        assert len(set(result.suite)) == len(result.suite)
        assert set(result.residue) == unreachable_targets(space, 2, oracle)


# ============================================================
# Optimizer Tests
# ============================================================


class TestOptimizer:
    """Tests for pluggable tie-break policies."""

    def test_custom_optimizer_is_used(self, mixed_space):
        optimizer = FirstChoiceOptimizer()
        assert isinstance(optimizer, Optimizer)
        result = IpoEngine(mixed_space, optimizer=optimizer).generate()
        assert result.complete
        assert "tuple" in optimizer.calls

    def test_custom_optimizer_with_constraints(self, boolean_space, pair_excluded):
        optimizer = FirstChoiceOptimizer()
        result = IpoEngine(boolean_space, pair_excluded, optimizer=optimizer).generate()
        assert result.complete
        assert "fill" in optimizer.calls

    def test_greedy_choose_best_value(self, boolean_space):
        frontier = CoverageFrontier.build(boolean_space, 2)
        frontier.remove_covered_by({"A": 0, "B": 0, "C": 0})
        chosen = GreedyOptimizer().choose_best_value("C", [0, 1], Tuple({"A": 0, "B": 0}), frontier)
        assert chosen == 1

    def test_greedy_choose_best_tuple(self, boolean_space):
        frontier = CoverageFrontier.build(boolean_space, 2)
        frontier.remove_covered_by({"A": 0, "B": 0, "C": 0})
        rows = [Tuple({"A": 0, "B": 0}), Tuple({"A": 0, "B": 1})]
        assert GreedyOptimizer().choose_best_tuple(rows, frontier, "C", 0) == rows[1]

    def test_greedy_ties_go_to_first(self, boolean_space):
        frontier = CoverageFrontier.build(boolean_space, 2)
        rows = [Tuple({"A": 0, "B": 0}), Tuple({"A": 0, "B": 1})]
        assert GreedyOptimizer().choose_best_tuple(rows, frontier, "C", 0) == rows[0]
        assert GreedyOptimizer().choose_best_value("C", [0, 1], rows[0], frontier) == 0

    def test_fill_in_missing_factors(self, boolean_space):
        frontier = CoverageFrontier.build(boolean_space, 2)
        from coverforge.constraints import AlwaysValid

        row = GreedyOptimizer().fill_in_missing_factors(
            Tuple({"B": 1}), frontier, AlwaysValid(), boolean_space
        )
        assert set(row) == {"A", "B", "C"}
        assert row["B"] == 1
