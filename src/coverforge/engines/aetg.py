"""AETG: randomized multi-trial covering array generation.

Assume a system with k factors where the i-th factor has l_i levels, and
that r rows have been generated. Row r + 1 is chosen by building M
candidate rows and keeping the one that covers the most uncovered target
tuples. Each candidate is built greedily (see GreedyCandidateBuilder):
seed with the most frequent uncovered (factor, level) pair, then give
every other factor, in the candidate's visitation order, the level that
covers the most new tuples together with the levels chosen so far.

With M = 50 candidates per row the suite size grows logarithmically in
the number of factors when all factors have the same number of levels.

See Cohen et al., "The AETG System: An Approach to Testing Based on
Combinatorial Design", IEEE Trans. Softw. Eng., July 1997.

Visitation orders: when the number of factors is small enough that all
k! orders fit in the trial budget, every order is tried exactly once per
round, in lexicographic order. Otherwise ``trial_budget`` distinct orders
are sampled from the seeded random source each round.
``permutation_limit`` bounds the factor count for which k! is computed
at all; above it sampling is always used.

Candidates are built against a CompletionOracle, so every step keeps a
valid full row within reach. When a whole round covers nothing new, the
next row is seeded with the first frontier member some valid row covers.
The engine gives up only when no such member is left, so the reported
residue is exactly the targets no valid row can cover.
"""

from __future__ import annotations

import itertools
import logging
import math
from collections.abc import Iterator

from coverforge.candidates import GreedyCandidateBuilder
from coverforge.completion import CompletionOracle
from coverforge.constraints import ConstraintOracle
from coverforge.engines.base import DEFAULT_SEED, DEFAULT_STRENGTH, CoveringArrayEngine
from coverforge.errors import ConfigurationError, ErrorCode, ErrorContext
from coverforge.factors import FactorSpace
from coverforge.frontier import CoverageFrontier
from coverforge.suite import TestSuite
from coverforge.tuples import Tuple

logger = logging.getLogger(__name__)

DEFAULT_TRIAL_BUDGET = 50
DEFAULT_PERMUTATION_LIMIT = 13


class AetgEngine(CoveringArrayEngine):
    """Randomized greedy engine: best of many candidates per row.

    Attributes:
        trial_budget: Candidates built per row (M in the AETG paper).
        permutation_limit: Largest factor count for which exhaustive
            enumeration of visitation orders is considered.
        shuffle_remaining: Shuffle the factors after the seed in every
            candidate, for extra diversity between trials.

    Example:
        >>> engine = AetgEngine(space, constraints, strength=2, seed=42)
        >>> suite, uncovered = engine.generate()
    """

    name = "aetg"

    def __init__(
        self,
        space: FactorSpace,
        oracle: ConstraintOracle | None = None,
        strength: int = DEFAULT_STRENGTH,
        seed: int = DEFAULT_SEED,
        trial_budget: int = DEFAULT_TRIAL_BUDGET,
        permutation_limit: int = DEFAULT_PERMUTATION_LIMIT,
        shuffle_remaining: bool = False,
    ) -> None:
        super().__init__(space, oracle, strength, seed)

        for option, value in (("trial_budget", trial_budget), ("permutation_limit", permutation_limit)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigurationError(
                    f"{option} must be a positive integer, got {value!r}",
                    error_code=ErrorCode.INVALID_SETTING,
                    context=ErrorContext(engine=self.name, extra={option: value}),
                )

        self.trial_budget = trial_budget
        self.permutation_limit = permutation_limit
        self.shuffle_remaining = shuffle_remaining

    @property
    def exhaustive_orders(self) -> bool:
        """Whether every visitation order fits in the trial budget."""
        k = len(self.space)
        return k <= self.permutation_limit and math.factorial(k) <= self.trial_budget

    def visitation_orders(self) -> Iterator[list[str]]:
        """Orders to try for the next row."""
        names = self.space.names

        if self.exhaustive_orders:
            for order in itertools.permutations(names):
                yield list(order)
            return

        # k! >= k, so only small factor counts can have fewer orders than the budget
        wanted = self.trial_budget
        if len(names) < wanted:
            wanted = min(wanted, math.factorial(len(names)))

        seen: set[tuple[str, ...]] = set()
        while len(seen) < wanted:
            order = tuple(self._rng.sample(names, len(names)))
            if order in seen:
                continue
            seen.add(order)
            yield list(order)

    def _run(
        self,
        frontier: CoverageFrontier,
        suite: TestSuite,
        frontier_sizes: list[int],
    ) -> list[Tuple]:
        completion = CompletionOracle(self.space, self.oracle)
        builder = GreedyCandidateBuilder(self.space, frontier, completion)
        rng = self._rng if self.shuffle_remaining else None

        while not frontier.is_empty():
            chosen: Tuple | None = None
            newly_covered = 0
            trials = 0

            for order in self.visitation_orders():
                trials += 1
                candidate = builder.build(order, rng)
                if candidate is None:
                    continue
                covered = frontier.count_newly_covered_by(candidate)
                if covered > newly_covered:
                    newly_covered = covered
                    chosen = candidate

            if chosen is None:
                chosen = self._place_directly(frontier, builder, completion)

            if chosen is None:
                logger.warning(
                    f"No valid row covers any of the remaining {len(frontier)} tuples "
                    f"after {trials} trials; giving up"
                )
                break

            removed = frontier.remove_covered_by(chosen)
            suite.append(chosen)
            frontier_sizes.append(len(frontier))

            logger.debug(
                f"Added row {len(suite)}: {chosen.description}; covered {removed} tuples, "
                f"{len(frontier)} remaining"
            )

        return list(frontier)

    def _place_directly(
        self,
        frontier: CoverageFrontier,
        builder: GreedyCandidateBuilder,
        completion: CompletionOracle,
    ) -> Tuple | None:
        """Seed a row with the first frontier member some valid row covers.

        Used when every trial of a round covers nothing new. Returns None
        only when no remaining member can appear in a valid row.
        """
        for target in frontier:
            if completion.check(target).rejected:
                continue
            logger.debug(f"No trial covered anything new; seeding with {target.description}")
            return builder.fill(target)
        return None
