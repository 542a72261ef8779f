"""Tie-break policies for the IPO engine.

The IPO engine delegates every choice between equally valid options to an
Optimizer. Swapping the optimizer changes which rows get extended and
which levels new rows receive, without touching the growth algorithm.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from typing import Protocol, runtime_checkable

from coverforge.candidates import GreedyCandidateBuilder
from coverforge.constraints import ConstraintOracle
from coverforge.factors import FactorSpace
from coverforge.frontier import CoverageFrontier
from coverforge.tuples import Tuple


@runtime_checkable
class Optimizer(Protocol):
    """Protocol for IPO tie-break policies.

    Example::

        class FirstChoice:
            def fill_in_missing_factors(self, partial, frontier, oracle, space):
                return GreedyOptimizer().fill_in_missing_factors(partial, frontier, oracle, space)

            def choose_best_tuple(self, candidate_rows, frontier, factor_name, level):
                return candidate_rows[0]

            def choose_best_value(self, factor_name, domain, partial, frontier):
                return domain[0]
    """

    def fill_in_missing_factors(
        self,
        partial: Tuple,
        frontier: CoverageFrontier,
        oracle: ConstraintOracle,
        space: FactorSpace,
    ) -> Tuple | None:
        """Complete ``partial`` over every factor of ``space``.

        Returns:
            The completed row, or None when no admissible completion was found.
        """
        ...

    def choose_best_tuple(
        self,
        candidate_rows: Sequence[Tuple],
        frontier: CoverageFrontier,
        factor_name: str,
        level: Hashable,
    ) -> Tuple:
        """Pick which existing row receives ``factor_name=level``."""
        ...

    def choose_best_value(
        self,
        factor_name: str,
        domain: Sequence[Hashable],
        partial: Tuple,
        frontier: CoverageFrontier,
    ) -> Hashable:
        """Pick a level for ``factor_name`` from the admissible ``domain``."""
        ...


class GreedyOptimizer:
    """Default policy: maximize newly covered targets, earliest wins ties."""

    def fill_in_missing_factors(
        self,
        partial: Tuple,
        frontier: CoverageFrontier,
        oracle: ConstraintOracle,
        space: FactorSpace,
    ) -> Tuple | None:
        return GreedyCandidateBuilder(space, frontier, oracle).fill(partial)

    def choose_best_tuple(
        self,
        candidate_rows: Sequence[Tuple],
        frontier: CoverageFrontier,
        factor_name: str,
        level: Hashable,
    ) -> Tuple:
        best = candidate_rows[0]
        best_count = -1
        for row in candidate_rows:
            count = frontier.count_newly_covered_by(row.extend(factor_name, level))
            if count > best_count:
                best_count = count
                best = row
        return best

    def choose_best_value(
        self,
        factor_name: str,
        domain: Sequence[Hashable],
        partial: Tuple,
        frontier: CoverageFrontier,
    ) -> Hashable:
        best = domain[0]
        best_count = -1
        for level in domain:
            count = frontier.count_newly_covered_by(partial.extend(factor_name, level))
            if count > best_count:
                best_count = count
                best = level
        return best

    def __repr__(self) -> str:
        return "GreedyOptimizer()"
