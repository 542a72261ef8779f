"""IPO: in-parameter-order covering array generation.

The suite grows one factor at a time, in declared order:

- Start from every admissible combination of the first ``strength``
  factors (all pairs of the first two factors for pairwise coverage).
- For each further factor f:

  * Horizontal extension. Each uncovered target tuple involving f (and
    only factors already processed) is folded into an existing row that
    agrees with it and has no level for f yet. Rows that end up without
    a level for f get the best admissible one.
  * Vertical extension. Target tuples that could not be folded spawn new
    rows, completed across all other factors. Rows that already assign a
    later factor keep that level when the factor is processed.

Choices between equally valid rows or levels are delegated to the
Optimizer. Every choice is checked against a CompletionOracle: a row only
takes a level when some valid full row still extends it, so no row is
ever left without an admissible level for a later factor, and a target
is skipped only when no valid row covers it.

IPO has no natural mid-run cutoff: it always finishes every factor it
starts. The finished suite is verified against a freshly built frontier.
The frontier size is recorded after every row change.
"""

from __future__ import annotations

import logging

from coverforge.completion import CompletionOracle
from coverforge.constraints import ConstraintOracle
from coverforge.coverage import uncovered_tuples
from coverforge.engines.base import DEFAULT_SEED, DEFAULT_STRENGTH, CoveringArrayEngine
from coverforge.engines.optimizers import GreedyOptimizer, Optimizer
from coverforge.factors import FactorSpace
from coverforge.frontier import CoverageFrontier
from coverforge.suite import TestSuite
from coverforge.tuples import Tuple, is_sub_assignment

logger = logging.getLogger(__name__)


class IpoEngine(CoveringArrayEngine):
    """Incremental engine growing the suite factor by factor.

    Attributes:
        optimizer: Tie-break policy (default: GreedyOptimizer).

    Example:
        >>> engine = IpoEngine(space, constraints, strength=2)
        >>> suite, uncovered = engine.generate()
    """

    name = "ipo"

    def __init__(
        self,
        space: FactorSpace,
        oracle: ConstraintOracle | None = None,
        strength: int = DEFAULT_STRENGTH,
        seed: int = DEFAULT_SEED,
        optimizer: Optimizer | None = None,
    ) -> None:
        super().__init__(space, oracle, strength, seed)
        self.optimizer = optimizer if optimizer is not None else GreedyOptimizer()

    def _run(
        self,
        frontier: CoverageFrontier,
        suite: TestSuite,
        frontier_sizes: list[int],
    ) -> list[Tuple]:
        names = self.space.names
        processed = list(names[: self.strength])
        completion = CompletionOracle(self.space, self.oracle)

        rows: list[Tuple] = []
        for row in self.space.subspace(processed).all_combinations():
            if completion.check(row).rejected:
                continue
            rows.append(row)
            frontier.remove_covered_by(row)
            frontier_sizes.append(len(frontier))
        logger.debug(f"Initialized {len(rows)} rows over {processed}")

        for name in names[self.strength:]:
            processed.append(name)
            rows = self._extend_horizontally(
                name, processed, rows, frontier, completion, frontier_sizes
            )
            rows.extend(
                self._extend_vertically(name, processed, rows, frontier, completion, frontier_sizes)
            )
            logger.debug(
                f"Processed factor '{name}': {len(rows)} rows, {len(frontier)} tuples remaining"
            )

        # a row completed early can end up equal to one extended later
        for row in dict.fromkeys(rows):
            suite.append(row)

        return uncovered_tuples(suite, self.space, self.strength, self.oracle)

    def _extend_horizontally(
        self,
        name: str,
        processed: list[str],
        rows: list[Tuple],
        frontier: CoverageFrontier,
        completion: CompletionOracle,
        frontier_sizes: list[int],
    ) -> list[Tuple]:
        for target in frontier.members_involving(name, within=processed):
            if target not in frontier:
                continue
            level = target[name]
            others = target.project(k for k in target if k != name)
            candidates = [
                row for row in rows
                if name not in row
                and is_sub_assignment(others, row)
                and not completion.check(row.extend(name, level)).rejected
            ]
            if not candidates:
                continue

            chosen = self.optimizer.choose_best_tuple(candidates, frontier, name, level)
            extended = chosen.extend(name, level)
            rows[rows.index(chosen)] = extended
            frontier.remove_covered_by(extended)
            frontier_sizes.append(len(frontier))

        domain = self.space.get(name).levels
        kept: list[Tuple] = []
        for row in rows:
            if name not in row:
                admissible = [v for v in domain if not completion.check(row.extend(name, v)).rejected]
                if not admissible:
                    logger.warning(f"Dropping row {row.description}: no admissible level for '{name}'")
                    continue
                row = row.extend(name, self.optimizer.choose_best_value(name, admissible, row, frontier))
                frontier.remove_covered_by(row)
                frontier_sizes.append(len(frontier))
            kept.append(row)
        return kept

    def _extend_vertically(
        self,
        name: str,
        processed: list[str],
        rows: list[Tuple],
        frontier: CoverageFrontier,
        completion: CompletionOracle,
        frontier_sizes: list[int],
    ) -> list[Tuple]:
        seen = set(rows)
        new_rows: list[Tuple] = []

        for target in frontier.members_involving(name, within=processed):
            if target not in frontier:
                continue
            if completion.check(target).rejected:
                logger.debug(f"No valid row covers {target.description}")
                continue
            row = self.optimizer.fill_in_missing_factors(target, frontier, completion, self.space)
            if row is None or row in seen or completion.check(row).rejected:
                logger.warning(f"Optimizer could not place {target.description} in a new row")
                continue
            frontier.remove_covered_by(row)
            frontier_sizes.append(len(frontier))
            seen.add(row)
            new_rows.append(self.space.ordered(row))

        return new_rows
