"""CoverageFrontier - the target tuples still waiting to be covered.

The frontier is built once per generation run: every subset of
``strength`` factors, crossed with their levels, minus the tuples the
constraint oracle definitely rejects. Tuples the oracle cannot decide yet
(UNKNOWN) stay in. As the engines accept rows the frontier only shrinks.

Iteration follows the enumeration order, which keeps generation
reproducible.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Hashable, Iterable, Iterator, Mapping

from coverforge.constraints import AlwaysValid, ConstraintOracle
from coverforge.factors import FactorSpace
from coverforge.tuples import Tuple, subtuples_of

logger = logging.getLogger(__name__)


class CoverageFrontier:
    """Ordered set of uncovered target tuples with a (factor, level) index.

    Attributes:
        strength: Size of every member tuple.
        total_tuples: Number of t-tuples enumerated before filtering.
        excluded_by_constraints: Number the oracle rejected.
    """

    def __init__(
        self,
        members: Iterable[Tuple],
        strength: int,
        total_tuples: int | None = None,
    ) -> None:
        self.strength = strength
        self._members: dict[Tuple, None] = dict.fromkeys(members)
        self._index: dict[tuple[str, Hashable], set[Tuple]] = {}
        for member in self._members:
            for pair in member.items():
                self._index.setdefault(pair, set()).add(member)
        self.total_tuples = len(self._members) if total_tuples is None else total_tuples
        self.excluded_by_constraints = self.total_tuples - len(self._members)

    @classmethod
    def build(
        cls,
        space: FactorSpace,
        strength: int,
        oracle: ConstraintOracle | None = None,
    ) -> CoverageFrontier:
        """Enumerate all valid t-tuples of ``space``.

        A t-tuple is a specific assignment of levels to t factors. For
        pairwise (t=2), this is all pairs (factor_i=level_a, factor_j=level_b).
        """
        oracle = oracle if oracle is not None else AlwaysValid()
        members: list[Tuple] = []
        total = 0

        for subset in itertools.combinations(space, strength):
            names = [f.name for f in subset]
            for levels in itertools.product(*(f.levels for f in subset)):
                total += 1
                candidate = Tuple(zip(names, levels))
                if not oracle.check(candidate).rejected:
                    members.append(candidate)

        frontier = cls(members, strength, total_tuples=total)
        logger.debug(
            f"Built {strength}-way frontier: {len(frontier)} targets "
            f"({frontier.excluded_by_constraints} excluded by constraints)"
        )
        return frontier

    def size(self) -> int:
        return len(self._members)

    def is_empty(self) -> bool:
        return not self._members

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, tuple_: object) -> bool:
        return tuple_ in self._members

    def __iter__(self) -> Iterator[Tuple]:
        return iter(list(self._members))

    def occurrences(self, name: str, value: Hashable) -> int:
        """Number of members assigning ``value`` to ``name``."""
        return len(self._index.get((name, value), ()))

    def count_newly_covered_by(self, tuple_: Mapping[str, Hashable]) -> int:
        """Count the members ``tuple_`` would cover, without removing them.

        For a tuple narrower than the strength (a candidate still being
        built), this counts the members that extend it. Otherwise it counts
        the tuple's size-``strength`` sub-assignments that are members.
        """
        if len(tuple_) < self.strength:
            return len(self._extending(tuple_))
        return sum(1 for sub in subtuples_of(tuple_, self.strength) if sub in self._members)

    def remove_covered_by(self, tuple_: Mapping[str, Hashable]) -> int:
        """Remove every member covered by ``tuple_`` and return how many went."""
        removed = 0
        if len(tuple_) < self.strength:
            return removed
        for sub in subtuples_of(tuple_, self.strength):
            if sub in self._members:
                self._discard(sub)
                removed += 1
        return removed

    def members_involving(self, name: str, within: Iterable[str] | None = None) -> list[Tuple]:
        """Members assigning ``name``, optionally restricted to factors in ``within``."""
        allowed = set(within) if within is not None else None
        return [
            m for m in self._members
            if name in m and (allowed is None or all(k in allowed for k in m))
        ]

    def _extending(self, tuple_: Mapping[str, Hashable]) -> set[Tuple] | dict[Tuple, None]:
        if not tuple_:
            return self._members
        pairs = sorted(tuple_.items(), key=lambda kv: self.occurrences(*kv))
        result = set(self._index.get(pairs[0], ()))
        for pair in pairs[1:]:
            if not result:
                break
            result &= self._index.get(pair, set())
        return result

    def _discard(self, member: Tuple) -> None:
        del self._members[member]
        for pair in member.items():
            bucket = self._index.get(pair)
            if bucket is not None:
                bucket.discard(member)
                if not bucket:
                    del self._index[pair]

    def __repr__(self) -> str:
        return f"CoverageFrontier(t={self.strength}, {len(self)} uncovered)"
