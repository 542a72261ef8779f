"""coverforge - constrained covering array generation.

Generates small test suites that cover every valid t-way interaction of a
set of factors, skipping combinations forbidden by constraints.

Quick Start:
    >>> from coverforge import FactorSpace, ConstraintSet, AetgEngine, exclude
    >>>
    >>> space = FactorSpace.from_mapping({
    ...     "browser": ["chrome", "firefox", "safari"],
    ...     "os": ["linux", "mac", "windows"],
    ...     "locale": ["en", "de"],
    ... })
    >>> constraints = ConstraintSet([
    ...     exclude("no_safari_on_linux", browser="safari", os="linux"),
    ... ])
    >>> suite, uncovered = AetgEngine(space, constraints, strength=2).generate()
    >>> print(f"{len(suite)} tests cover all pairs (vs {space.total_combinations} exhaustive)")

Modules:
    tuples: Tuple and sub-assignment helpers
    factors: Factor, FactorSpace, FactorSpaceBuilder
    constraints: Verdict, ConstraintOracle, Constraint, ConstraintSet
    frontier: CoverageFrontier
    completion: CompletionOracle (look-ahead to a valid full row)
    candidates: GreedyCandidateBuilder
    engines: AetgEngine, IpoEngine, Optimizer, GenerationResult
    coverage: measure_coverage, uncovered_tuples
    config: GenerationSettings, load_settings
    model: load_model, parse_model
"""

from coverforge.candidates import GreedyCandidateBuilder
from coverforge.completion import CompletionOracle
from coverforge.config import GenerationSettings, load_settings
from coverforge.constraints import (
    AlwaysValid,
    Constraint,
    ConstraintOracle,
    ConstraintPredicate,
    ConstraintSet,
    Verdict,
    at_most_one,
    exclude,
    require,
)
from coverforge.coverage import CoverageStats, measure_coverage, uncovered_tuples
from coverforge.engines import (
    AetgEngine,
    CoveringArrayEngine,
    GenerationResult,
    GreedyOptimizer,
    IpoEngine,
    Optimizer,
    create_engine,
)
from coverforge.errors import (
    ConfigurationError,
    CoverForgeError,
    DuplicateRowError,
    ErrorCode,
    ErrorContext,
    InvalidTupleError,
    PartialCoverageWarning,
)
from coverforge.factors import Factor, FactorSpace, FactorSpaceBuilder
from coverforge.frontier import CoverageFrontier
from coverforge.model import Model, load_model, parse_model
from coverforge.suite import TestSuite
from coverforge.tuples import Tuple

__version__ = "0.1.0"

__all__ = [
    # Tuples and factors
    "Tuple",
    "Factor",
    "FactorSpace",
    "FactorSpaceBuilder",
    # Constraints
    "Verdict",
    "ConstraintOracle",
    "ConstraintPredicate",
    "AlwaysValid",
    "CompletionOracle",
    "Constraint",
    "ConstraintSet",
    "exclude",
    "require",
    "at_most_one",
    # Generation
    "CoverageFrontier",
    "GreedyCandidateBuilder",
    "CoveringArrayEngine",
    "AetgEngine",
    "IpoEngine",
    "Optimizer",
    "GreedyOptimizer",
    "GenerationResult",
    "TestSuite",
    "create_engine",
    # Coverage
    "CoverageStats",
    "measure_coverage",
    "uncovered_tuples",
    # Configuration
    "GenerationSettings",
    "load_settings",
    "Model",
    "load_model",
    "parse_model",
    # Errors
    "CoverForgeError",
    "ConfigurationError",
    "InvalidTupleError",
    "DuplicateRowError",
    "PartialCoverageWarning",
    "ErrorCode",
    "ErrorContext",
]
