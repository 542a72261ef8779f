"""Covering array engines.

Two strategies implement the same contract (CoveringArrayEngine):

- AetgEngine: randomized best-of-many greedy candidates per row.
- IpoEngine: in-parameter-order growth with a pluggable Optimizer.

Use ``create_engine`` to pick one from GenerationSettings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from coverforge.constraints import ConstraintOracle
from coverforge.engines.aetg import (
    DEFAULT_PERMUTATION_LIMIT,
    DEFAULT_TRIAL_BUDGET,
    AetgEngine,
)
from coverforge.engines.base import (
    DEFAULT_SEED,
    DEFAULT_STRENGTH,
    CoveringArrayEngine,
    GenerationResult,
)
from coverforge.engines.ipo import IpoEngine
from coverforge.engines.optimizers import GreedyOptimizer, Optimizer
from coverforge.errors import ConfigurationError, ErrorCode, ErrorContext
from coverforge.factors import FactorSpace

if TYPE_CHECKING:
    from coverforge.config import GenerationSettings

ENGINES: dict[str, type[CoveringArrayEngine]] = {
    AetgEngine.name: AetgEngine,
    IpoEngine.name: IpoEngine,
}


def create_engine(
    space: FactorSpace,
    oracle: ConstraintOracle | None = None,
    settings: GenerationSettings | None = None,
    optimizer: Optimizer | None = None,
) -> CoveringArrayEngine:
    """Build the engine named by ``settings.engine``.

    Raises:
        ConfigurationError: For an unknown engine name or invalid options.
    """
    if settings is None:
        from coverforge.config import GenerationSettings

        settings = GenerationSettings()

    if settings.engine not in ENGINES:
        raise ConfigurationError(
            f"Unknown engine '{settings.engine}'. Available: {sorted(ENGINES)}",
            error_code=ErrorCode.UNKNOWN_ENGINE,
            context=ErrorContext(engine=settings.engine),
        )

    if settings.engine == IpoEngine.name:
        return IpoEngine(
            space,
            oracle,
            strength=settings.strength,
            seed=settings.seed,
            optimizer=optimizer,
        )

    return AetgEngine(
        space,
        oracle,
        strength=settings.strength,
        seed=settings.seed,
        trial_budget=settings.trial_budget,
        permutation_limit=settings.permutation_limit,
        shuffle_remaining=settings.shuffle_remaining,
    )


__all__ = [
    "ENGINES",
    "AetgEngine",
    "CoveringArrayEngine",
    "DEFAULT_PERMUTATION_LIMIT",
    "DEFAULT_SEED",
    "DEFAULT_STRENGTH",
    "DEFAULT_TRIAL_BUDGET",
    "GenerationResult",
    "GreedyOptimizer",
    "IpoEngine",
    "Optimizer",
    "create_engine",
]
