"""Queries and key filters for datastore enumeration."""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class ExcludeKey:
    """Filter clause rejecting a single key.

    Example:
        ExcludeKey("deal-42")
    """

    key: str

    def matches(self, key: str) -> bool:
        return key != self.key


@dataclass(frozen=True)
class IncludeOnly:
    """Filter clause admitting only the given keys.

    Example:
        IncludeOnly(frozenset({"x", "y"}))
    """

    keys: frozenset[str]

    def matches(self, key: str) -> bool:
        return key in self.keys


KeyFilter = ExcludeKey | IncludeOnly


@dataclass(frozen=True)
class Entry:
    """A key and its raw payload as returned by a query."""

    key: str
    value: bytes | None = None


@dataclass(frozen=True)
class Query:
    """A datastore query.

    All filters must match for a key to be returned (they AND together).

    Attributes:
        prefix: Only keys starting with this prefix are considered
        filters: Key filter clauses
        keys_only: Skip loading payloads when True
    """

    prefix: str = ""
    filters: tuple[KeyFilter, ...] = ()
    keys_only: bool = False

    def matches(self, key: str) -> bool:
        """Check whether a key passes the prefix and every filter."""
        if not key.startswith(self.prefix):
            return False
        return all(f.matches(key) for f in self.filters)

    def with_filters(self, filters: Iterable[KeyFilter]) -> "Query":
        """Return a copy of this query with extra filters appended."""
        return Query(
            prefix=self.prefix,
            filters=self.filters + tuple(filters),
            keys_only=self.keys_only,
        )
