"""Namespace wrapper isolating a region of a datastore."""

from typing import AsyncIterator

from s3versioned.core.exceptions import InvalidKeyError, KeyNotFoundError
from s3versioned.datastore.base import Datastore, validate_key
from s3versioned.datastore.query import Entry, ExcludeKey, IncludeOnly, Query


class NamespaceDatastore(Datastore):
    """Datastore view that prefixes every key with a namespace.

    Key ``k`` is stored as ``namespace/k`` in the child store. Queries
    only see keys inside the namespace and return them relative to it,
    so several namespaces can share one child without seeing each other.

    Example:
        v1 = NamespaceDatastore(root, "1")
        await v1.put("a", b"...")   # stored at "1/a" in root
    """

    def __init__(self, child: Datastore, namespace: str):
        if not namespace or namespace.startswith("/") or namespace.endswith("/"):
            raise InvalidKeyError(namespace)
        self.child = child
        self.namespace = namespace
        self._prefix = f"{namespace}/"

    def __repr__(self) -> str:
        return f"NamespaceDatastore({self.child!r}, {self.namespace!r})"

    def _child_key(self, key: str) -> str:
        return f"{self._prefix}{validate_key(key)}"

    async def get(self, key: str) -> bytes:
        try:
            return await self.child.get(self._child_key(key))
        except KeyNotFoundError as e:
            raise KeyNotFoundError(key, operation=e.operation) from e

    async def has(self, key: str) -> bool:
        return await self.child.has(self._child_key(key))

    async def put(self, key: str, value: bytes) -> None:
        await self.child.put(self._child_key(key), value)

    async def delete(self, key: str) -> None:
        try:
            await self.child.delete(self._child_key(key))
        except KeyNotFoundError as e:
            raise KeyNotFoundError(key, operation=e.operation) from e

    def _child_filter(self, f):
        if isinstance(f, ExcludeKey):
            return ExcludeKey(self._prefix + f.key)
        return IncludeOnly(frozenset(self._prefix + k for k in f.keys))

    async def query(self, query: Query) -> AsyncIterator[Entry]:
        child_query = Query(
            prefix=self._prefix + query.prefix,
            filters=tuple(self._child_filter(f) for f in query.filters),
            keys_only=query.keys_only,
        )
        async for entry in self.child.query(child_query):
            yield Entry(entry.key[len(self._prefix):], entry.value)
