"""Tests for the migration executor."""

import asyncio

import pytest
from pydantic import BaseModel

from s3versioned.core.exceptions import (
    KeyNotFoundError,
    MigrationCancelledError,
    ReadError,
    RecordDecodeError,
    RecordEncodeError,
    TransformError,
    WriteError,
)
from s3versioned.datastore.namespace import NamespaceDatastore
from s3versioned.datastore.query import ExcludeKey, Query
from s3versioned.migrations.builder import new_migration_builder
from s3versioned.migrations.executor import execute
from s3versioned.records import decode_record, encode_record


class RecordV1(BaseModel):
    val: int


class RecordV2(BaseModel):
    val: int


def times_ten(old: RecordV1) -> RecordV2:
    return RecordV2(val=old.val * 10)


def divide_by_ten(new: RecordV2) -> RecordV1:
    return RecordV1(val=new.val // 10)


@pytest.fixture
def source(datastore):
    return NamespaceDatastore(datastore, "v1")


@pytest.fixture
def dest(datastore):
    return NamespaceDatastore(datastore, "v2")


async def seed(store, records):
    for key, val in records.items():
        await store.put(key, encode_record(RecordV1(val=val)))


async def load(store, kind):
    return {
        entry.key: decode_record(kind, entry.value)
        async for entry in store.query(Query())
    }


class TestExecute:
    """Tests for execute()."""

    @pytest.mark.asyncio
    async def test_multiplies_and_reverses(self, source, dest):
        """Concrete scenario: V1 -> V2 multiplies val by 10 and back."""
        await seed(source, {"a": 1, "b": 2, "c": 3})
        migration = new_migration_builder(times_ten).reversible(divide_by_ten).build()

        touched = await migration.up(source, dest)

        assert touched == ["a", "b", "c"]
        assert await load(dest, RecordV2) == {
            "a": RecordV2(val=10),
            "b": RecordV2(val=20),
            "c": RecordV2(val=30),
        }

        original = await load(source, RecordV1)
        for key in ["a", "b", "c"]:
            await source.delete(key)

        assert await migration.down(dest, source) == ["a", "b", "c"]
        assert await load(source, RecordV1) == original

    def test_round_trip_law(self):
        for val in [0, 1, 7, 123456]:
            record = RecordV1(val=val)
            assert divide_by_ten(times_ten(record)) == record

    @pytest.mark.asyncio
    async def test_async_transform(self, source, dest):
        await seed(source, {"a": 1})

        async def async_up(old: RecordV1) -> RecordV2:
            await asyncio.sleep(0)
            return RecordV2(val=old.val + 1)

        touched = await execute(Query(), source, dest, RecordV1, async_up)

        assert touched == ["a"]
        assert await load(dest, RecordV2) == {"a": RecordV2(val=2)}

    @pytest.mark.asyncio
    async def test_empty_source(self, source, dest):
        assert await execute(Query(), source, dest, RecordV1, times_ten) == []

    @pytest.mark.asyncio
    async def test_keys_outside_filter_untouched(self, source, dest, mock_s3):
        await seed(source, {"a": 1, "b": 2})

        touched = await execute(
            Query(filters=(ExcludeKey("b"),)), source, dest, RecordV1, times_ten
        )

        assert touched == ["a"]
        assert ("put_object", "test/v2/b") not in mock_s3.calls
        assert ("get_object", "test/v1/b") not in mock_s3.calls

    @pytest.mark.asyncio
    async def test_decode_error_aborts(self, source, dest):
        await seed(source, {"a": 1})
        await source.put("b", b"not json")
        await seed(source, {"c": 3})

        with pytest.raises(RecordDecodeError) as exc_info:
            await execute(Query(), source, dest, RecordV1, times_ten)

        assert exc_info.value.key == "b"
        assert exc_info.value.touched_keys == ["a"]
        assert await dest.keys() == ["a"]

    @pytest.mark.asyncio
    async def test_transform_error_keeps_prior_writes(self, source, dest):
        await seed(source, {"a": 1, "b": 2, "c": 3})

        def fails_on_two(old: RecordV1) -> RecordV2:
            if old.val == 2:
                raise ValueError("two is not allowed")
            return RecordV2(val=old.val)

        with pytest.raises(TransformError) as exc_info:
            await execute(Query(), source, dest, RecordV1, fails_on_two)

        error = exc_info.value
        assert error.key == "b"
        assert isinstance(error.cause, ValueError)
        assert error.__cause__ is error.cause
        assert error.touched_keys == ["a"]
        assert await dest.keys() == ["a"]

    @pytest.mark.asyncio
    async def test_encode_error(self, source, dest):
        await seed(source, {"a": 1})

        def returns_garbage(old: RecordV1) -> RecordV2:
            return object()

        with pytest.raises(RecordEncodeError) as exc_info:
            await execute(Query(), source, dest, RecordV1, returns_garbage)

        assert exc_info.value.key == "a"
        assert await dest.keys() == []

    @pytest.mark.asyncio
    async def test_wrong_result_kind_not_written(self, source, dest, mock_s3):
        await seed(source, {"a": 1, "b": 2})

        def returns_source_kind(old: RecordV1) -> RecordV2:
            return RecordV1(val=old.val)

        migration = new_migration_builder(returns_source_kind).build()

        with pytest.raises(RecordEncodeError, match="expected RecordV2") as exc_info:
            await migration.up(source, dest)

        assert exc_info.value.key == "a"
        assert exc_info.value.touched_keys == []
        assert mock_s3.count("put_object") == 2
        assert await dest.keys() == []

    @pytest.mark.asyncio
    async def test_down_checks_source_kind(self, source, dest):
        def returns_dest_kind(new: RecordV2) -> RecordV1:
            return RecordV2(val=new.val)

        migration = new_migration_builder(times_ten).reversible(returns_dest_kind).build()
        await dest.put("a", encode_record(RecordV2(val=10)))

        with pytest.raises(RecordEncodeError, match="expected RecordV1"):
            await migration.down(dest, source)

        assert await source.keys() == []

    @pytest.mark.asyncio
    async def test_read_error_carries_context(self, source, dest, mock_s3):
        await seed(source, {"a": 1, "b": 2, "c": 3})
        mock_s3.fail_on("get_object", "test/v1/b")

        with pytest.raises(ReadError) as exc_info:
            await execute(Query(), source, dest, RecordV1, times_ten)

        assert exc_info.value.key == "b"
        assert exc_info.value.touched_keys == ["a"]
        assert await dest.keys() == ["a"]

    @pytest.mark.asyncio
    async def test_key_removed_after_listing(self, source, dest, mock_s3):
        await seed(source, {"a": 1, "b": 2})
        mock_s3.fail_on("get_object", "test/v1/a", code="NoSuchKey")

        with pytest.raises(ReadError) as exc_info:
            await execute(Query(), source, dest, RecordV1, times_ten)

        assert exc_info.value.key == "a"
        assert isinstance(exc_info.value.__cause__, KeyNotFoundError)

    @pytest.mark.asyncio
    async def test_write_error(self, source, dest, mock_s3):
        await seed(source, {"a": 1, "b": 2, "c": 3})
        mock_s3.fail_on("put_object", "test/v2/b")

        with pytest.raises(WriteError) as exc_info:
            await execute(Query(), source, dest, RecordV1, times_ten)

        assert exc_info.value.key == "b"
        assert exc_info.value.touched_keys == ["a"]
        assert await dest.keys() == ["a"]

    @pytest.mark.asyncio
    async def test_cancel_between_keys(self, source, dest):
        await seed(source, {"a": 1, "b": 2, "c": 3})
        cancel = asyncio.Event()

        def cancel_after_first(old: RecordV1) -> RecordV2:
            cancel.set()
            return RecordV2(val=old.val)

        with pytest.raises(MigrationCancelledError) as exc_info:
            await execute(Query(), source, dest, RecordV1, cancel_after_first, cancel)

        # The key in progress when cancel was set is still written
        assert exc_info.value.touched_keys == ["a"]
        assert await dest.keys() == ["a"]

    @pytest.mark.asyncio
    async def test_cancel_before_start(self, source, dest):
        await seed(source, {"a": 1})
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(MigrationCancelledError) as exc_info:
            await execute(Query(), source, dest, RecordV1, times_ten, cancel)

        assert exc_info.value.touched_keys == []

    @pytest.mark.asyncio
    async def test_idempotent_retry_converges(self, source, dest, mock_s3):
        """Resumability: a retried step converges after a partial failure."""
        await seed(source, {"a": 1, "b": 2, "c": 3})
        mock_s3.fail_on("put_object", "test/v2/b")

        with pytest.raises(WriteError):
            await execute(Query(), source, dest, RecordV1, times_ten)

        mock_s3.clear_failures()
        touched = await execute(Query(), source, dest, RecordV1, times_ten)

        assert touched == ["a", "b", "c"]
        assert await load(dest, RecordV2) == {
            "a": RecordV2(val=10),
            "b": RecordV2(val=20),
            "c": RecordV2(val=30),
        }
