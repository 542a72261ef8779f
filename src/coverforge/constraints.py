"""Three-valued constraint evaluation over partial assignments.

Constraints decide which assignments are valid. Because the engines
evaluate assignments while they are still being built, a constraint can
be asked about a tuple that does not yet assign every factor it reads.
In that case the verdict is ``Verdict.UNKNOWN`` and callers keep the
tuple until it can be fully judged.

Example:
    >>> from coverforge.constraints import ConstraintSet, exclude, require
    >>>
    >>> constraints = ConstraintSet([
    ...     exclude("no_safari_on_linux", browser="safari", os="linux"),
    ...     require("admin_full_perms", {"auth": "admin"}, {"perms": "full"}),
    ... ])
    >>> constraints.check(Tuple({"browser": "safari", "os": "linux"}))
    <Verdict.FALSE: 'false'>
    >>> constraints.check(Tuple({"browser": "safari"}))
    <Verdict.UNKNOWN: 'unknown'>
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

from coverforge.tuples import Tuple

logger = logging.getLogger(__name__)


class Verdict(Enum):
    """Result of checking an assignment against constraints."""

    TRUE = "true"
    FALSE = "false"
    UNKNOWN = "unknown"

    @classmethod
    def of(cls, value: bool | Verdict) -> Verdict:
        if isinstance(value, Verdict):
            return value
        return cls.TRUE if value else cls.FALSE

    @property
    def rejected(self) -> bool:
        """True only for a definite FALSE; UNKNOWN is retained."""
        return self is Verdict.FALSE


# A predicate receives the assignment as a read-only mapping and returns
# True (valid), False (invalid) or a Verdict. Reading a factor the mapping
# does not assign raises KeyError, which is reported as UNKNOWN.
ConstraintPredicate = Callable[[Mapping[str, Hashable]], "bool | Verdict"]


@runtime_checkable
class ConstraintOracle(Protocol):
    """Protocol for constraint oracles.

    An oracle may keep evaluation state scoped to one generation run.
    Engines call ``reset()`` (when present) at the start of every run.
    """

    def check(self, tuple_: Tuple) -> Verdict:
        """Judge a partial or full assignment."""
        ...


class AlwaysValid:
    """Oracle that accepts every assignment."""

    def check(self, tuple_: Tuple) -> Verdict:
        return Verdict.TRUE

    def reset(self) -> None:
        pass

    def __repr__(self) -> str:
        return "AlwaysValid()"


@dataclass
class Constraint:
    """A rule that filters out invalid assignments.

    Attributes:
        name: Unique identifier for this constraint.
        predicate: Function returning True for valid assignments.
        description: Human-readable explanation of why this constraint exists.
        factors: Factor names the predicate reads. When given, the verdict is
            UNKNOWN until all of them are assigned, and the predicate is not
            called before that.

    Example:
        >>> constraint = Constraint(
        ...     name="no_anon_admin_ops",
        ...     predicate=lambda d: not (d["auth"] == "anon" and d["op"] == "admin_op"),
        ...     factors=["auth", "op"],
        ... )
    """

    name: str
    predicate: ConstraintPredicate
    description: str = ""
    factors: list[str] | None = None

    def check(self, tuple_: Mapping[str, Hashable]) -> Verdict:
        """Evaluate this constraint against an assignment."""
        if self.factors and not all(f in tuple_ for f in self.factors):
            return Verdict.UNKNOWN

        try:
            return Verdict.of(self.predicate(tuple_))
        except KeyError:
            return Verdict.UNKNOWN
        except (TypeError, ValueError) as e:
            logger.warning(
                f"Constraint '{self.name}' raised {type(e).__name__}: {e}. "
                f"Treating assignment as invalid."
            )
            return Verdict.FALSE

    def __repr__(self) -> str:
        return f"Constraint({self.name!r})"


def exclude(
    name: str,
    description: str = "",
    factors: list[str] | None = None,
    **values: Hashable,
) -> Constraint:
    """Create a constraint that excludes a specific level combination.

    Args:
        name: Constraint name.
        description: Why this combination is invalid.
        factors: Optional factor scope. Defaults to the excluded factors.
        **values: Factor name=level pairs that may not appear together.

    Example:
        >>> c = exclude("no_anon_archive", auth="anon", status="archived")
        >>> c.check(Tuple({"auth": "anon", "status": "archived"}))
        <Verdict.FALSE: 'false'>
    """
    excluded_pairs = dict(values)

    def predicate(d: Mapping[str, Hashable]) -> bool:
        return not all(d[k] == v for k, v in excluded_pairs.items())

    return Constraint(
        name=name,
        predicate=predicate,
        description=description or f"Exclude combination: {excluded_pairs}",
        factors=factors or list(excluded_pairs),
    )


def require(
    name: str,
    if_condition: Mapping[str, Hashable],
    then_condition: Mapping[str, Hashable],
    description: str = "",
) -> Constraint:
    """Create an implication constraint: if X then Y must hold.

    Example:
        >>> c = require(
        ...     "admin_full_perms",
        ...     if_condition={"auth": "admin"},
        ...     then_condition={"perms": "full"},
        ... )
    """
    all_factors = list(dict.fromkeys([*if_condition, *then_condition]))

    def predicate(d: Mapping[str, Hashable]) -> bool:
        if not all(d[k] == v for k, v in if_condition.items()):
            return True
        return all(d[k] == v for k, v in then_condition.items())

    return Constraint(
        name=name,
        predicate=predicate,
        description=description or f"If {dict(if_condition)} then {dict(then_condition)}",
        factors=all_factors,
    )


def at_most_one(
    name: str,
    conditions: list[Mapping[str, Hashable]],
    description: str = "",
) -> Constraint:
    """Create a constraint that at most one of the conditions can be true.

    Example:
        >>> c = at_most_one("one_fast_path", [{"cache": "on"}, {"cdn": "on"}])
    """
    all_factors: list[str] = []
    for cond in conditions:
        all_factors.extend(k for k in cond if k not in all_factors)

    def predicate(d: Mapping[str, Hashable]) -> bool:
        matching = sum(
            1 for cond in conditions
            if all(d[k] == v for k, v in cond.items())
        )
        return matching <= 1

    return Constraint(
        name=name,
        predicate=predicate,
        description=description or f"At most one of {conditions}",
        factors=all_factors,
    )


@dataclass
class ConstraintSet:
    """A collection of constraints acting as one oracle.

    The verdict is FALSE if any constraint rejects the assignment, UNKNOWN
    if none rejects it but some cannot decide yet, and TRUE otherwise.

    Verdicts are memoized per assignment. The memo belongs to one
    generation run: engines call ``reset()`` when they start, and
    concurrent runs must each use their own instance (see ``fork()``).
    """

    constraints: list[Constraint] = field(default_factory=list)
    _memo: dict[Tuple, Verdict] = field(default_factory=dict, init=False, repr=False, compare=False)

    def add(self, constraint: Constraint) -> None:
        """Add a constraint to the set."""
        self.constraints.append(constraint)
        self._memo.clear()

    def check(self, tuple_: Tuple) -> Verdict:
        cached = self._memo.get(tuple_)
        if cached is not None:
            return cached

        verdict = Verdict.TRUE
        for constraint in self.constraints:
            result = constraint.check(tuple_)
            if result is Verdict.FALSE:
                verdict = Verdict.FALSE
                break
            if result is Verdict.UNKNOWN:
                verdict = Verdict.UNKNOWN

        self._memo[tuple_] = verdict
        return verdict

    def reset(self) -> None:
        """Drop run-scoped evaluation state."""
        self._memo.clear()

    def fork(self) -> ConstraintSet:
        """Independent oracle over the same constraints, with an empty memo."""
        return ConstraintSet(list(self.constraints))

    def violated_by(self, tuple_: Mapping[str, Hashable]) -> list[Constraint]:
        """Constraints that definitely reject an assignment."""
        return [c for c in self.constraints if c.check(tuple_) is Verdict.FALSE]

    def filter(self, rows: Iterable[Tuple]) -> list[Tuple]:
        """Keep the rows no constraint rejects."""
        return [r for r in rows if not self.check(r).rejected]

    def __len__(self) -> int:
        return len(self.constraints)

    def __repr__(self) -> str:
        return f"ConstraintSet({len(self.constraints)} constraints)"
