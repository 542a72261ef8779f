"""Assignments of levels to factors.

A Tuple maps factor names to levels. It may be partial (a subset of the
factors) or full (every factor). Tuples are immutable and compare by
content, so ``Tuple({"a": 1, "b": 2}) == Tuple({"b": 2, "a": 1})``.

The module-level helpers are the pure operations the engines are built
from: sub-assignment extraction and membership.

Example:
    >>> row = Tuple({"os": "linux", "browser": "firefox", "locale": "en"})
    >>> pair = Tuple({"os": "linux", "locale": "en"})
    >>> is_sub_assignment(pair, row)
    True
    >>> len(list(subtuples_of(row, 2)))
    3
"""

from __future__ import annotations

import itertools
from collections.abc import Hashable, Iterable, Iterator, Mapping
from typing import Any


class Tuple(Mapping[str, Hashable]):
    """An immutable mapping from factor name to level.

    Keys keep their insertion order for display, but equality and hashing
    ignore it.
    """

    __slots__ = ("_values", "_hash")

    def __init__(
        self,
        values: Mapping[str, Hashable] | Iterable[tuple[str, Hashable]] = (),
    ) -> None:
        self._values: dict[str, Hashable] = dict(values)
        self._hash: int | None = None

    def __getitem__(self, key: str) -> Hashable:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(frozenset(self._values.items()))
        return self._hash

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Tuple):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    def extend(self, name: str, value: Hashable) -> Tuple:
        """Return a copy with ``name`` set to ``value``."""
        values = dict(self._values)
        values[name] = value
        return Tuple(values)

    def project(self, names: Iterable[str]) -> Tuple:
        """Return the sub-assignment over ``names`` (missing names are skipped)."""
        return Tuple((n, self._values[n]) for n in names if n in self._values)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary."""
        return dict(self._values)

    @property
    def node_id(self) -> str:
        """Stable identifier, sorted by factor name."""
        parts = sorted(self._values.items(), key=lambda kv: kv[0])
        return "__".join(f"{k}={v}" for k, v in parts)

    @property
    def description(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self._values.items())

    def __repr__(self) -> str:
        return f"Tuple({self.description})"


def subtuples_of(tuple_: Mapping[str, Hashable], size: int) -> Iterator[Tuple]:
    """Yield every sub-assignment of ``tuple_`` with exactly ``size`` keys.

    Sub-assignments are produced in the combination order of the tuple's
    own key order.
    """
    if size < 0 or size > len(tuple_):
        return
    items = list(tuple_.items())
    for combo in itertools.combinations(items, size):
        yield Tuple(combo)


def is_sub_assignment(sub: Mapping[str, Hashable], full: Mapping[str, Hashable]) -> bool:
    """Check whether every key of ``sub`` is assigned the same level in ``full``."""
    if len(sub) > len(full):
        return False
    for key, value in sub.items():
        if key not in full or full[key] != value:
            return False
    return True
