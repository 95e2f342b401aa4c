"""State store gated on a datastore reaching its target version.

Until the migration state reports ready, every operation fails with
:class:`~s3versioned.core.exceptions.NotMigratedError` and the
underlying store is never read or written.
"""

from typing import Awaitable, Callable, Generic, Iterable, Protocol, Type

from s3versioned.core.exceptions import NotMigratedError, VersioningError
from s3versioned.core.settings import VersioningSettings
from s3versioned.datastore.base import Datastore
from s3versioned.migrations.base import MigrationRecord
from s3versioned.migrations.runner import MigrationRunner, VersionedMigration
from s3versioned.statestore.store import Mutator, StateStore, StoredState, T


class MigrationState(Protocol):
    """Anything that can report whether a store is ready."""

    def ready_error(self) -> NotMigratedError | None:
        ...


class NotReadyStoredState(Generic[T]):
    """Stand-in stored state whose operations all fail with one error."""

    def __init__(self, error: VersioningError):
        self.error = error

    async def get(self) -> T:
        raise self.error

    async def mutate(self, mutator: Mutator) -> T:
        raise self.error

    async def end(self) -> None:
        raise self.error


class MigratedStateStore(Generic[T]):
    """State store whose operations fail until migrations are complete."""

    def __init__(self, state_store: StateStore[T], migration_state: MigrationState):
        self.state_store = state_store
        self.migration_state = migration_state

    async def begin(self, key: str, state: T) -> None:
        error = self.migration_state.ready_error()
        if error is not None:
            raise error
        await self.state_store.begin(key, state)

    def get(self, key: str) -> StoredState[T] | NotReadyStoredState[T]:
        error = self.migration_state.ready_error()
        if error is not None:
            return NotReadyStoredState(error)
        return self.state_store.get(key)

    async def has(self, key: str) -> bool:
        error = self.migration_state.ready_error()
        if error is not None:
            raise error
        return await self.state_store.has(key)

    async def list(self) -> list[T]:
        error = self.migration_state.ready_error()
        if error is not None:
            raise error
        return await self.state_store.list()


MigrateFunc = Callable[..., Awaitable[list[MigrationRecord]]]


def new_versioned_state_store(
    datastore: Datastore,
    kind: Type[T],
    migrations: Iterable[VersionedMigration],
    target: str,
    settings: VersioningSettings | None = None,
) -> tuple[MigratedStateStore[T], MigrateFunc]:
    """Create a gated state store and the function that migrates it.

    The state store reads and writes records in the target version's
    namespace. Its operations fail until the returned migrate function
    has brought the datastore to ``target``.

    Args:
        datastore: Root datastore
        kind: Record kind stored at the target version
        migrations: Ordered versioned migration list
        target: Version the state store works with
        settings: Namespace and marker key configuration

    Returns:
        Tuple of (gated state store, migrate coroutine function)

    Example:
        store, migrate = new_versioned_state_store(root, DealV2, migrations, "2")
        await migrate()
        await store.begin("deal-9", DealV2(val=90))
    """
    runner = MigrationRunner(datastore, migrations, target, settings)
    state_store = StateStore(runner.version_store(target), kind)
    return MigratedStateStore(state_store, runner), runner.migrate

