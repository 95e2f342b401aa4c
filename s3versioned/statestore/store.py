"""Typed state store over a datastore."""

import inspect
import logging
from typing import Any, Callable, Generic, Type, TypeVar

from pydantic import BaseModel

from s3versioned.core.exceptions import RecordKindError, StateAlreadyExistsError
from s3versioned.datastore.base import Datastore
from s3versioned.datastore.query import Query
from s3versioned.records import decode_record, encode_record

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

Mutator = Callable[[Any], Any]


class StoredState(Generic[T]):
    """Handle to a single record in a state store."""

    def __init__(self, datastore: Datastore, kind: Type[T], key: str):
        self.datastore = datastore
        self.kind = kind
        self.key = key

    async def get(self) -> T:
        """Load the record.

        Raises:
            KeyNotFoundError: If no record is stored at this key
        """
        return decode_record(self.kind, await self.datastore.get(self.key))

    async def mutate(self, mutator: Mutator) -> T:
        """Load, modify and store the record.

        The mutator receives the current record. It may modify it in
        place and return None, or return a replacement record. Async
        mutators are awaited.

        Returns:
            The stored record

        Raises:
            RecordKindError: If the mutator returns a record of another kind
        """
        record = await self.get()
        result = mutator(record)
        if inspect.isawaitable(result):
            result = await result
        if result is not None:
            if not isinstance(result, self.kind):
                raise RecordKindError(self.key, self.kind, type(result))
            record = result
        await self.datastore.put(self.key, encode_record(record))
        return record

    async def end(self) -> None:
        """Stop tracking this record, deleting it.

        Raises:
            KeyNotFoundError: If no record is stored at this key
        """
        await self.datastore.delete(self.key)
        logger.debug(f"Ended state '{self.key}'")


class StateStore(Generic[T]):
    """Stores records of one kind in a datastore, keyed by string.

    Example:
        store = StateStore(datastore, Deal)
        await store.begin("deal-1", Deal(val=1))
        deal = await store.get("deal-1").get()
    """

    def __init__(self, datastore: Datastore, kind: Type[T]):
        self.datastore = datastore
        self.kind = kind

    async def begin(self, key: str, state: T) -> None:
        """Start tracking a new record.

        Raises:
            StateAlreadyExistsError: If a record is already stored at ``key``
            RecordKindError: If ``state`` is not of the store's kind
        """
        if not isinstance(state, self.kind):
            raise RecordKindError(key, self.kind, type(state))
        if await self.datastore.has(key):
            raise StateAlreadyExistsError(key)
        await self.datastore.put(key, encode_record(state))
        logger.debug(f"Began state '{key}'")

    def get(self, key: str) -> StoredState[T]:
        return StoredState(self.datastore, self.kind, key)

    async def has(self, key: str) -> bool:
        return await self.datastore.has(key)

    async def list(self) -> list[T]:
        """Load every record in key order."""
        return [
            decode_record(self.kind, entry.value)
            async for entry in self.datastore.query(Query())
        ]
