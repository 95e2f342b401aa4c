"""Base datastore interface for s3versioned."""

from abc import ABC, abstractmethod
from typing import AsyncIterator

from s3versioned.core.exceptions import InvalidKeyError
from s3versioned.datastore.query import Entry, Query


def validate_key(key: str) -> str:
    """Check a datastore key is well formed.

    Args:
        key: The key to check

    Returns:
        The key unchanged

    Raises:
        InvalidKeyError: If the key is empty or starts with '/'
    """
    if not isinstance(key, str) or not key or key.startswith("/"):
        raise InvalidKeyError(str(key))
    return key


class Datastore(ABC):
    """Abstract base class for key-value datastores.

    Keys are non-empty strings; values are raw bytes. Enumeration
    yields entries in the store's native key order.
    """

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Get the payload stored at a key.

        Args:
            key: The datastore key

        Returns:
            The raw payload

        Raises:
            KeyNotFoundError: If the key does not exist
        """
        pass

    @abstractmethod
    async def has(self, key: str) -> bool:
        """Check if a key exists.

        Args:
            key: The datastore key

        Returns:
            True if the key exists
        """
        pass

    @abstractmethod
    async def put(self, key: str, value: bytes) -> None:
        """Store a payload at a key, replacing any existing one.

        Args:
            key: The datastore key
            value: The raw payload
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a key.

        Args:
            key: The datastore key

        Raises:
            KeyNotFoundError: If the key does not exist
        """
        pass

    @abstractmethod
    def query(self, query: Query) -> AsyncIterator[Entry]:
        """Enumerate entries matching a query.

        Args:
            query: The query to run

        Returns:
            Async iterator of entries in key order
        """
        pass

    async def keys(self, query: Query | None = None) -> list[str]:
        """List the keys matching a query.

        Args:
            query: The query to run (all keys when None)

        Returns:
            Matching keys in key order
        """
        q = query or Query()
        q = Query(prefix=q.prefix, filters=q.filters, keys_only=True)
        return [entry.key async for entry in self.query(q)]
