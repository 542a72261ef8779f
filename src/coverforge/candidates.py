"""Greedy construction of a single candidate row.

Given a factor visitation order, the builder:

1. Picks a seed: the (factor, level) pair that appears in the most
   uncovered target tuples. Ties go to the earliest factor in the order,
   then the earliest level.
2. Fills the remaining factors one at a time, each with the level that
   covers the most new targets together with the levels chosen so far.
   Ties go to the earliest level.

Levels the constraint oracle rejects are never chosen. The builder reads
the frontier but never changes it.

With a plain constraint oracle a greedy choice can leave a later factor
without any admissible level, and ``build`` returns None. The engines
pass a CompletionOracle instead: it rejects every assignment no valid
full row extends, so each accepted step keeps a completion in reach and
the fill never dead-ends.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Hashable, Sequence

from coverforge.constraints import ConstraintOracle
from coverforge.factors import FactorSpace
from coverforge.frontier import CoverageFrontier
from coverforge.tuples import Tuple

logger = logging.getLogger(__name__)


class GreedyCandidateBuilder:
    """Builds candidate rows that maximize newly covered frontier members.

    Attributes:
        space: Domains of the factors being assigned.
        frontier: Uncovered target tuples, used for scoring only.
        oracle: Constraint oracle; levels it rejects are skipped.
    """

    def __init__(
        self,
        space: FactorSpace,
        frontier: CoverageFrontier,
        oracle: ConstraintOracle,
    ) -> None:
        self.space = space
        self.frontier = frontier
        self.oracle = oracle

    def select_seed(self, order: Sequence[str]) -> tuple[str, Hashable] | None:
        """Find the (factor, level) pair occurring in the most frontier members.

        Returns:
            The pair, or None if no admissible pair occurs in the frontier.
        """
        best: tuple[str, Hashable] | None = None
        best_count = 0

        for name in order:
            for level in self.space.get(name).levels:
                count = self.frontier.occurrences(name, level)
                if count > best_count and not self.oracle.check(Tuple({name: level})).rejected:
                    best_count = count
                    best = (name, level)

        return best

    def best_level(self, partial: Tuple, name: str) -> tuple[Hashable, int] | None:
        """Choose the level for ``name`` that covers the most new targets.

        Returns:
            ``(level, newly_covered)`` or None if the oracle rejects every level.
        """
        chosen: tuple[Hashable, int] | None = None

        for level in self.space.get(name).levels:
            extended = partial.extend(name, level)
            if self.oracle.check(extended).rejected:
                continue
            covered = self.frontier.count_newly_covered_by(extended)
            if chosen is None or covered > chosen[1]:
                chosen = (level, covered)

        return chosen

    def fill(self, partial: Tuple, names: Sequence[str] | None = None) -> Tuple | None:
        """Assign every factor in ``names`` (default: all unassigned ones), in order.

        Returns:
            The completed tuple in declared factor order, or None when some
            factor has no admissible level.
        """
        if names is None:
            names = [n for n in self.space.names if n not in partial]

        for name in names:
            if name in partial:
                continue
            choice = self.best_level(partial, name)
            if choice is None:
                logger.debug(f"Dead end at factor '{name}' extending {partial!r}")
                return None
            partial = partial.extend(name, choice[0])

        return self.space.ordered(partial)

    def build(self, order: Sequence[str], rng: random.Random | None = None) -> Tuple | None:
        """Build one full candidate row for the given visitation order.

        Args:
            order: Factor names in the order they are visited.
            rng: When given, the factors after the seed are shuffled with it.

        Returns:
            A full row in declared factor order, or None on a dead end.
        """
        remaining = list(order)
        partial = Tuple()

        seed = self.select_seed(remaining)
        if seed is not None:
            name, level = seed
            partial = Tuple({name: level})
            remaining.remove(name)
        if rng is not None:
            rng.shuffle(remaining)

        return self.fill(partial, remaining)
