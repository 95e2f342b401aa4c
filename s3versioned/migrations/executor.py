"""Applies a single migration function across a datastore."""

import asyncio
import inspect
import logging
from typing import Type

from pydantic import BaseModel

from s3versioned.core.exceptions import (
    MigrationCancelledError,
    ReadError,
    RecordDecodeError,
    RecordEncodeError,
    TransformError,
    WriteError,
)
from s3versioned.datastore.base import Datastore
from s3versioned.datastore.query import Query
from s3versioned.records import MigrationFunc, decode_record, encode_record

logger = logging.getLogger(__name__)


async def execute(
    query: Query,
    source: Datastore,
    dest: Datastore,
    source_kind: Type[BaseModel],
    transform: MigrationFunc,
    cancel: asyncio.Event | None = None,
    result_kind: Type[BaseModel] | None = None,
) -> list[str]:
    """Migrate every record matching a query from one store to another.

    Keys are processed one at a time in the source store's key order.
    Each record is read, decoded as ``source_kind``, transformed, encoded
    and written to the same key in ``dest``. The first failure aborts the
    run; records already written stay in ``dest``.

    The cancel event is only checked between keys, so a key that has
    started is always written before cancellation is honoured.

    Args:
        query: Selects the keys to migrate
        source: Store holding records of ``source_kind``
        dest: Store receiving the migrated records
        source_kind: Record kind to decode source payloads as
        transform: Migration function, sync or async
        cancel: Optional event that stops the run between keys
        result_kind: Kind every migrated record must be an instance of

    Returns:
        Keys written to ``dest``, in processing order

    Raises:
        ReadError: If a listed key cannot be read from ``source``
        RecordDecodeError: If a payload does not decode as ``source_kind``
        TransformError: If the migration function raises
        RecordEncodeError: If the migrated record is not a ``result_kind``
            or cannot be encoded
        WriteError: If writing to ``dest`` fails
        MigrationCancelledError: If ``cancel`` was set
    """
    touched: list[str] = []
    listing = Query(prefix=query.prefix, filters=query.filters, keys_only=True)

    async for entry in source.query(listing):
        if cancel is not None and cancel.is_set():
            logger.warning(f"Migration cancelled after {len(touched)} keys")
            raise MigrationCancelledError(touched)

        key = entry.key
        try:
            payload = await source.get(key)
        except Exception as e:
            logger.error(f"Failed to read '{key}': {e}")
            raise ReadError(key, touched) from e

        try:
            record = decode_record(source_kind, payload)
        except Exception as e:
            logger.error(f"Failed to decode '{key}' as {source_kind.__name__}: {e}")
            raise RecordDecodeError(key, source_kind, touched) from e

        try:
            result = transform(record)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Migration function failed on '{key}': {e}")
            raise TransformError(key, e, touched) from e

        if result_kind is not None and not isinstance(result, result_kind):
            logger.error(
                f"Migration function returned {type(result).__name__} for '{key}', "
                f"expected {result_kind.__name__}"
            )
            raise RecordEncodeError(
                key,
                touched,
                reason=f"expected {result_kind.__name__}, got {type(result).__name__}",
            )

        try:
            raw = encode_record(result)
        except Exception as e:
            logger.error(f"Failed to encode migrated record for '{key}': {e}")
            raise RecordEncodeError(key, touched) from e

        try:
            await dest.put(key, raw)
        except Exception as e:
            logger.error(f"Failed to write migrated record for '{key}': {e}")
            raise WriteError(key, touched) from e

        touched.append(key)
        logger.debug(f"Migrated '{key}'")

    return touched
