"""Post-hoc coverage measurement.

Checks any collection of rows against the full set of valid t-tuples of
a factor space, independently of how the rows were produced. The engines
use it to verify their final suites; callers can use it on hand-written
suites too.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass

from coverforge.constraints import ConstraintOracle
from coverforge.factors import FactorSpace
from coverforge.frontier import CoverageFrontier
from coverforge.tuples import Tuple


@dataclass
class CoverageStats:
    """Statistics about how well a set of rows covers the factor space.

    Attributes:
        strength: The t-wise strength that was targeted.
        total_tuples: Number of valid t-tuples in the space.
        covered_tuples: Number of them covered by the rows.
        coverage_pct: Percentage coverage (0-100).
        test_count: Number of rows.
        excluded_by_constraints: Tuples excluded because the oracle rejects them.
    """

    strength: int
    total_tuples: int
    covered_tuples: int
    coverage_pct: float
    test_count: int
    excluded_by_constraints: int = 0

    @property
    def uncovered_tuples(self) -> int:
        return self.total_tuples - self.covered_tuples

    @property
    def complete(self) -> bool:
        return self.covered_tuples == self.total_tuples

    def __repr__(self) -> str:
        return (
            f"CoverageStats(t={self.strength}, "
            f"{self.covered_tuples}/{self.total_tuples} tuples covered "
            f"({self.coverage_pct:.1f}%), "
            f"{self.test_count} tests)"
        )


def residue_of(
    rows: Iterable[Mapping[str, Hashable]],
    space: FactorSpace,
    strength: int = 2,
    oracle: ConstraintOracle | None = None,
) -> tuple[CoverageFrontier, int]:
    """Build a fresh frontier and remove everything ``rows`` cover.

    Returns:
        The leftover frontier and the number of rows consumed.
    """
    frontier = CoverageFrontier.build(space, strength, oracle)
    count = 0
    for row in rows:
        frontier.remove_covered_by(row)
        count += 1
    return frontier, count


def uncovered_tuples(
    rows: Iterable[Mapping[str, Hashable]],
    space: FactorSpace,
    strength: int = 2,
    oracle: ConstraintOracle | None = None,
) -> list[Tuple]:
    """Valid t-tuples that no row covers, in enumeration order."""
    frontier, _ = residue_of(rows, space, strength, oracle)
    return list(frontier)


def measure_coverage(
    rows: Iterable[Mapping[str, Hashable]],
    space: FactorSpace,
    strength: int = 2,
    oracle: ConstraintOracle | None = None,
) -> CoverageStats:
    """Compute coverage statistics for a set of rows.

    Rows are validated against the space before measuring.

    Raises:
        InvalidTupleError: If a row does not fit the space.
    """
    rows = list(rows)
    for row in rows:
        space.validate(row)

    frontier, count = residue_of(rows, space, strength, oracle)
    total = frontier.total_tuples - frontier.excluded_by_constraints
    covered = total - len(frontier)
    pct = (covered / total * 100) if total > 0 else 100.0

    return CoverageStats(
        strength=strength,
        total_tuples=total,
        covered_tuples=covered,
        coverage_pct=pct,
        test_count=count,
        excluded_by_constraints=frontier.excluded_by_constraints,
    )
