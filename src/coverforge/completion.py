"""Look-ahead over full rows.

A partial assignment the constraint oracle accepts can still be a trap:
every way of assigning the remaining factors may end in a rejected row.
Greedy construction that walks into such an assignment dead-ends later,
and the targets it was heading for get reported as uncovered although
valid rows contain them.

CompletionOracle wraps a constraint oracle and answers FALSE for those
assignments too. It searches depth-first, in declared factor order, for
one valid full row extending the assignment, and memoizes the outcome
for every assignment it visits. With it, a greedy builder that only
takes non-rejected steps can never dead-end, and a target it rejects is
one that no valid row covers.

Pruning assumes a rejected assignment stays rejected when extended,
which holds for exclude, require and at_most_one constraints.

Example:
    >>> space = FactorSpace.from_mapping({"A": [0, 1], "B": [0, 1], "C": [0, 1]})
    >>> rows_only = ConstraintSet([exclude("x", factors=["A", "B", "C"], A=0, B=0)])
    >>> completion = CompletionOracle(space, rows_only)
    >>> rows_only.check(Tuple({"A": 0, "B": 0}))
    <Verdict.UNKNOWN: 'unknown'>
    >>> completion.check(Tuple({"A": 0, "B": 0}))
    <Verdict.FALSE: 'false'>
    >>> completion.complete(Tuple({"A": 0}))
    Tuple(A=0, B=1, C=0)
"""

from __future__ import annotations

import logging

from coverforge.constraints import AlwaysValid, ConstraintOracle, Verdict
from coverforge.factors import FactorSpace
from coverforge.tuples import Tuple

logger = logging.getLogger(__name__)


class CompletionOracle:
    """Oracle that also rejects assignments no valid full row extends.

    The memo is run-scoped, like ConstraintSet's: ``reset()`` clears it
    together with the wrapped oracle's state.

    Attributes:
        space: The full factor space rows are completed over.
        oracle: The wrapped constraint oracle.
    """

    def __init__(self, space: FactorSpace, oracle: ConstraintOracle | None = None) -> None:
        self.space = space
        self.oracle = oracle if oracle is not None else AlwaysValid()
        self._rows: dict[Tuple, Tuple | None] = {}

    def check(self, tuple_: Tuple) -> Verdict:
        verdict = self.oracle.check(tuple_)
        if verdict.rejected or self.complete(tuple_) is not None:
            return verdict
        return Verdict.FALSE

    def complete(self, partial: Tuple) -> Tuple | None:
        """Find a valid full row extending ``partial``.

        Returns:
            The first such row in declared-order search, or None if every
            completion is rejected.
        """
        if partial in self._rows:
            return self._rows[partial]

        row: Tuple | None = None
        if not self.oracle.check(partial).rejected:
            missing = next((n for n in self.space.names if n not in partial), None)
            if missing is None:
                row = self.space.ordered(partial)
            else:
                for level in self.space.get(missing).levels:
                    row = self.complete(partial.extend(missing, level))
                    if row is not None:
                        break

        self._rows[partial] = row
        return row

    def reset(self) -> None:
        """Drop run-scoped search state."""
        self._rows.clear()
        if hasattr(self.oracle, "reset"):
            self.oracle.reset()

    def __repr__(self) -> str:
        return f"CompletionOracle({self.oracle!r}, {len(self._rows)} assignments searched)"
