"""The contract shared by every covering array engine.

An engine is configured once with a factor space, a strength, a seed and
a constraint oracle, then ``generate()`` runs one complete generation:

1. Reset run-scoped oracle state and reseed the random source.
2. Build the coverage frontier (all valid t-tuples).
3. Let the strategy grow a test suite (``_run``).
4. Report anything left uncovered as a PartialCoverageWarning.

Configuration problems raise ConfigurationError from the constructor,
before any generation work happens.
"""

from __future__ import annotations

import logging
import random
import warnings
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from coverforge.constraints import AlwaysValid, ConstraintOracle
from coverforge.errors import (
    ConfigurationError,
    ErrorCode,
    ErrorContext,
    PartialCoverageWarning,
)
from coverforge.factors import FactorSpace
from coverforge.frontier import CoverageFrontier
from coverforge.suite import TestSuite
from coverforge.tuples import Tuple

logger = logging.getLogger(__name__)

DEFAULT_STRENGTH = 2
DEFAULT_SEED = 2


@dataclass
class GenerationResult:
    """Outcome of one generation run.

    Unpacks as ``suite, uncovered_count = engine.generate()``.

    Attributes:
        suite: The generated rows, in generation order.
        uncovered_count: Target tuples left uncovered (0 on full success).
        residue: Those uncovered target tuples.
        frontier_sizes: Frontier size after each accepted row (AETG) or each
            row change (IPO). Never increases.
        initial_frontier_size: Number of valid target tuples at the start.
        excluded_by_constraints: Target tuples the oracle rejected up front.
        engine: Name of the engine that produced the suite.
        warning: The PartialCoverageWarning, when coverage is partial.
    """

    suite: TestSuite
    uncovered_count: int
    residue: list[Tuple] = field(default_factory=list)
    frontier_sizes: list[int] = field(default_factory=list)
    initial_frontier_size: int = 0
    excluded_by_constraints: int = 0
    engine: str = ""
    warning: PartialCoverageWarning | None = None

    @property
    def complete(self) -> bool:
        return self.uncovered_count == 0

    def __iter__(self) -> Iterator[Any]:
        yield self.suite
        yield self.uncovered_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "engine": self.engine,
            "rows": self.suite.to_records(),
            "uncovered_count": self.uncovered_count,
            "residue": [t.to_dict() for t in self.residue],
            "initial_frontier_size": self.initial_frontier_size,
            "excluded_by_constraints": self.excluded_by_constraints,
        }


class CoveringArrayEngine(ABC):
    """Base class for covering array strategies.

    Attributes:
        space: The factor space to cover.
        oracle: Constraint oracle judging partial and full assignments.
        strength: Interaction strength t.
        seed: Seed for every randomized choice.
    """

    name: str = "base"

    def __init__(
        self,
        space: FactorSpace,
        oracle: ConstraintOracle | None = None,
        strength: int = DEFAULT_STRENGTH,
        seed: int = DEFAULT_SEED,
    ) -> None:
        if not isinstance(space, FactorSpace):
            raise ConfigurationError(
                f"Expected a FactorSpace, got {type(space).__name__}",
                error_code=ErrorCode.EMPTY_FACTOR_SPACE,
                context=ErrorContext(engine=self.name),
            )
        if isinstance(strength, bool) or not isinstance(strength, int) or not 1 <= strength <= len(space):
            raise ConfigurationError(
                f"Strength {strength} must be between 1 and the number of factors ({len(space)})",
                error_code=ErrorCode.INVALID_STRENGTH,
                context=ErrorContext(engine=self.name, strength=strength),
            )

        self.space = space
        self.oracle = oracle if oracle is not None else AlwaysValid()
        self.strength = strength
        self.seed = seed
        self._rng = random.Random(seed)

    def generate(self) -> GenerationResult:
        """Run one complete generation.

        Returns:
            The suite together with the uncovered residue. Residue is also
            emitted as a PartialCoverageWarning.
        """
        if hasattr(self.oracle, "reset"):
            self.oracle.reset()
        self._rng = random.Random(self.seed)

        logger.info(
            f"Generating {self.strength}-wise covering array with {self.name} for "
            f"{len(self.space)} factors ({self.space.total_combinations} total combinations)"
        )

        frontier = CoverageFrontier.build(self.space, self.strength, self.oracle)
        initial_size = len(frontier)
        logger.info(
            f"Need to cover {initial_size} tuples "
            f"({frontier.excluded_by_constraints} excluded by constraints)"
        )

        suite = TestSuite(self.space)
        frontier_sizes: list[int] = []
        residue = self._run(frontier, suite, frontier_sizes)

        warning = None
        if residue:
            warning = PartialCoverageWarning(residue, engine=self.name, strength=self.strength)
            logger.warning(
                f"{self.name}: {len(residue)} target tuple(s) could not be covered; "
                f"returning {len(suite)} rows"
            )
            warnings.warn(warning, stacklevel=2)

        logger.info(
            f"Generated {len(suite)} tests for {self.strength}-wise coverage "
            f"(vs {self.space.total_combinations} exhaustive)"
        )

        return GenerationResult(
            suite=suite,
            uncovered_count=len(residue),
            residue=residue,
            frontier_sizes=frontier_sizes,
            initial_frontier_size=initial_size,
            excluded_by_constraints=frontier.excluded_by_constraints,
            engine=self.name,
            warning=warning,
        )

    @abstractmethod
    def _run(
        self,
        frontier: CoverageFrontier,
        suite: TestSuite,
        frontier_sizes: list[int],
    ) -> list[Tuple]:
        """Grow ``suite`` until the strategy is done.

        Args:
            frontier: Uncovered target tuples; the strategy removes what it covers.
            suite: Output rows, appended in generation order.
            frontier_sizes: Append the frontier size after each row change.

        Returns:
            The target tuples left uncovered.
        """
        ...

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(factors={len(self.space)}, "
            f"strength={self.strength}, seed={self.seed})"
        )
