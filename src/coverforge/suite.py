"""TestSuite - the ordered output of a generation run."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator, Mapping, Sequence
from typing import Any

from coverforge.errors import DuplicateRowError, ErrorContext
from coverforge.factors import FactorSpace
from coverforge.tuples import Tuple


class TestSuite(Sequence[Tuple]):
    """Ordered, duplicate-free sequence of full rows.

    Every appended row is validated against the factor space: it must
    assign exactly one declared level to every factor. Rows are stored in
    declared factor order.

    Example:
        >>> suite = TestSuite(space)
        >>> suite.append({"os": "linux", "browser": "firefox"})
        >>> suite[0]["os"]
        'linux'
    """

    __test__ = False  # not a pytest test class

    def __init__(self, space: FactorSpace, rows: Iterable[Mapping[str, Hashable]] = ()) -> None:
        self.space = space
        self._rows: list[Tuple] = []
        self._seen: set[Tuple] = set()
        for row in rows:
            self.append(row)

    def append(self, row: Mapping[str, Hashable]) -> Tuple:
        """Validate and append a row, returning the stored Tuple.

        Raises:
            InvalidTupleError: If the row is not a full, in-domain assignment.
            DuplicateRowError: If an equal row is already present.
        """
        self.space.validate(row, full=True)
        stored = self.space.ordered(row)
        if stored in self._seen:
            raise DuplicateRowError(
                f"Row already in suite: {stored.description}",
                context=ErrorContext(extra={"index": self._rows.index(stored)}),
            )
        self._rows.append(stored)
        self._seen.add(stored)
        return stored

    def __getitem__(self, index):  # type: ignore[override]
        return self._rows[index]

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Tuple]:
        return iter(self._rows)

    def __contains__(self, row: object) -> bool:
        return row in self._seen

    @property
    def factor_names(self) -> list[str]:
        return self.space.names

    def to_records(self) -> list[dict[str, Any]]:
        """Rows as plain dictionaries, for serialization."""
        return [row.to_dict() for row in self._rows]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TestSuite):
            return self.space == other.space and self._rows == other._rows
        if isinstance(other, Sequence):
            return self._rows == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"TestSuite({len(self._rows)} rows over {len(self.space)} factors)"
