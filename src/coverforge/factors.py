"""Factor definitions for covering array generation.

A Factor is one parameter of the system under test, with a finite ordered
list of levels. A FactorSpace is the ordered, immutable collection of
factors a generation run works over.

Example:
    >>> from coverforge.factors import Factor, FactorSpace
    >>>
    >>> space = FactorSpace([
    ...     Factor("browser", ["chrome", "firefox", "safari"]),
    ...     Factor("os", ["linux", "mac"]),
    ...     Factor("locale", ["en", "de", "ja"]),
    ... ])
    >>> print(space.total_combinations)  # 3 * 2 * 3 = 18
"""

from __future__ import annotations

import itertools
from collections.abc import Hashable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field

from coverforge.errors import (
    ConfigurationError,
    ErrorCode,
    ErrorContext,
    InvalidTupleError,
)
from coverforge.tuples import Tuple


@dataclass(frozen=True)
class Factor:
    """A single test parameter and its allowed levels.

    Attributes:
        name: Unique identifier for this factor.
        levels: Ordered, duplicate-free levels. Order matters: ties in the
            greedy search go to the earliest level.
        description: Human-readable description.

    Example:
        >>> auth = Factor("auth", ["anon", "user", "admin"])
        >>> auth.size
        3
    """

    name: str
    levels: tuple[Hashable, ...]
    description: str = field(default="", compare=False)

    def __init__(self, name: str, levels: Iterable[Hashable], description: str = "") -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "levels", tuple(levels))
        object.__setattr__(self, "description", description)
        self._validate()

    def _validate(self) -> None:
        if not self.name:
            raise ConfigurationError(
                "Factor name cannot be empty",
                error_code=ErrorCode.EMPTY_FACTOR,
            )
        if not self.levels:
            raise ConfigurationError(
                f"Factor '{self.name}' must have at least one level",
                error_code=ErrorCode.EMPTY_FACTOR,
                context=ErrorContext(factor=self.name),
            )
        seen: list[Hashable] = []
        for level in self.levels:
            if level in seen:
                raise ConfigurationError(
                    f"Factor '{self.name}' contains duplicate levels: {list(self.levels)}",
                    error_code=ErrorCode.DUPLICATE_LEVEL,
                    context=ErrorContext(factor=self.name),
                )
            seen.append(level)

    @property
    def size(self) -> int:
        """Number of levels in this factor."""
        return len(self.levels)

    def __contains__(self, level: object) -> bool:
        return level in self.levels

    def __repr__(self) -> str:
        return f"Factor({self.name!r}, levels={list(self.levels)})"


class FactorSpace(Sequence[Factor]):
    """The ordered collection of factors a generation run works over.

    Built once, before generation, and never modified afterwards.

    Raises:
        ConfigurationError: If the space is empty or factor names repeat.
    """

    def __init__(self, factors: Iterable[Factor]) -> None:
        factors = tuple(factors)
        if not factors:
            raise ConfigurationError(
                "FactorSpace requires at least one factor",
                error_code=ErrorCode.EMPTY_FACTOR_SPACE,
            )

        names = [f.name for f in factors]
        if len(names) != len(set(names)):
            duplicates = sorted({n for n in names if names.count(n) > 1})
            raise ConfigurationError(
                f"Duplicate factor names: {duplicates}",
                error_code=ErrorCode.DUPLICATE_FACTOR,
                context=ErrorContext(factor=duplicates[0]),
            )

        self._factors = factors
        self._by_name: dict[str, Factor] = {f.name: f for f in factors}

    @classmethod
    def from_mapping(cls, levels: Mapping[str, Iterable[Hashable]]) -> FactorSpace:
        """Build a space from ``{name: levels}``, keeping the mapping's order."""
        return cls(Factor(name, values) for name, values in levels.items())

    def __getitem__(self, index):  # type: ignore[override]
        return self._factors[index]

    def __len__(self) -> int:
        return len(self._factors)

    def __iter__(self) -> Iterator[Factor]:
        return iter(self._factors)

    @property
    def names(self) -> list[str]:
        """Ordered list of factor names."""
        return [f.name for f in self._factors]

    @property
    def total_combinations(self) -> int:
        """Size of the full cartesian product (informational only)."""
        result = 1
        for f in self._factors:
            result *= f.size
        return result

    def get(self, name: str) -> Factor:
        """Get a factor by name.

        Raises:
            InvalidTupleError: If the factor is not declared.
        """
        if name not in self._by_name:
            raise InvalidTupleError(
                f"Factor '{name}' not found. Available: {self.names}",
                error_code=ErrorCode.UNKNOWN_FACTOR,
                context=ErrorContext(factor=name),
            )
        return self._by_name[name]

    def subspace(self, names: Iterable[str]) -> FactorSpace:
        """The factors named in ``names``, kept in declared order."""
        wanted = set(names)
        return FactorSpace(f for f in self._factors if f.name in wanted)

    def ordered(self, tuple_: Mapping[str, Hashable]) -> Tuple:
        """Re-key ``tuple_`` in declared factor order."""
        return Tuple((n, tuple_[n]) for n in self.names if n in tuple_)

    def validate(self, tuple_: Mapping[str, Hashable], full: bool = False) -> None:
        """Check that a tuple fits this space.

        Args:
            tuple_: The assignment to check.
            full: Also require every factor to be assigned.

        Raises:
            InvalidTupleError: On an unknown factor, a level outside the
                factor's domain, or (with ``full``) a missing factor.
        """
        for name, value in tuple_.items():
            factor = self.get(name)
            if value not in factor:
                raise InvalidTupleError(
                    f"Level {value!r} is not in factor '{name}' levels: {list(factor.levels)}",
                    error_code=ErrorCode.INVALID_LEVEL,
                    context=ErrorContext(factor=name),
                )
        if full and len(tuple_) != len(self._factors):
            missing = [n for n in self.names if n not in tuple_]
            raise InvalidTupleError(
                f"Row does not assign factors: {missing}",
                error_code=ErrorCode.INCOMPLETE_ROW,
                context=ErrorContext(factor=missing[0]),
            )

    def all_combinations(self) -> Iterator[Tuple]:
        """Iterate the full cartesian product in declared order.

        Warning: this grows as the product of all domain sizes.
        """
        names = self.names
        for values in itertools.product(*(f.levels for f in self._factors)):
            yield Tuple(zip(names, values))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FactorSpace):
            return NotImplemented
        return self._factors == other._factors

    def __hash__(self) -> int:
        return hash(self._factors)

    def __repr__(self) -> str:
        factors = ", ".join(f"{f.name}({f.size})" for f in self._factors)
        return f"FactorSpace([{factors}], total={self.total_combinations})"


class FactorSpaceBuilder:
    """Collects factors at the boundary and builds an immutable FactorSpace.

    Example:
        >>> space = (
        ...     FactorSpaceBuilder()
        ...     .add("auth", ["anon", "user"])
        ...     .add("count", [0, 1, "many"])
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        self._factors: list[Factor] = []

    def add(self, name: str, levels: Iterable[Hashable], description: str = "") -> FactorSpaceBuilder:
        self._factors.append(Factor(name, levels, description))
        return self

    def build(self) -> FactorSpace:
        return FactorSpace(self._factors)
