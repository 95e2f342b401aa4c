"""Migration runner for s3versioned."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List

from s3versioned.core.exceptions import (
    ConstructionError,
    KeyNotFoundError,
    MigrationCancelledError,
    NonReversibleMigrationError,
    NotMigratedError,
    RunnerPersistError,
    VersionNotFoundError,
)
from s3versioned.core.settings import VersioningSettings
from s3versioned.datastore.base import Datastore
from s3versioned.datastore.namespace import NamespaceDatastore
from s3versioned.migrations.base import Migration, MigrationRecord
from s3versioned.records import kind_assignable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionedMigration:
    """One entry of a versioned migration list.

    Attributes:
        version: Version key of this schema generation
        migration: Migration from this version to the next entry's
            version (None for the final entry)
    """

    version: str
    migration: Migration | None = None


VersionedMigrationList = List[VersionedMigration]


class MigrationRunner:
    """Brings a datastore to a target version.

    This runner:
    - Keeps each version's records in its own namespace of the datastore
    - Persists the current version in a marker key after every step
    - Walks the migration list forward (up) or backward (down)
    - Reports readiness through ready_error()

    Version order is the order of the migration list. Calls to migrate()
    must not overlap; the runner does not serialize them.
    """

    def __init__(
        self,
        datastore: Datastore,
        migrations: Iterable[VersionedMigration],
        target: str,
        settings: VersioningSettings | None = None,
    ):
        """Initialize the migration runner.

        Args:
            datastore: Root datastore holding every version's namespace
            migrations: Ordered versioned migration list
            target: Version to migrate to
            settings: Namespace and marker key configuration

        Raises:
            ConstructionError: If the migration list is malformed
        """
        self.settings = settings or VersioningSettings()
        self.datastore = datastore
        self._migrations: VersionedMigrationList = list(migrations)
        self._validate()
        self._target = target
        self._current: str | None = None
        self.last_error: Exception | None = None
        self._marker_store = NamespaceDatastore(
            datastore, self.settings.versions_namespace
        )

    def _validate(self) -> None:
        """Check the migration list is a well-formed, type-compatible chain."""
        if not self._migrations:
            raise ConstructionError("Migration list is empty")

        seen = set()
        for entry in self._migrations:
            version = entry.version
            if not isinstance(version, str) or not version or "/" in version:
                raise ConstructionError(
                    f"Invalid version key {version!r}",
                    "Version keys must be non-empty strings without '/'.",
                )
            if version == self.settings.versions_namespace:
                raise ConstructionError(
                    f"Version key '{version}' collides with the marker namespace"
                )
            if version in seen:
                raise ConstructionError(f"Duplicate version key '{version}'")
            seen.add(version)

        for entry in self._migrations[:-1]:
            if entry.migration is None:
                raise ConstructionError(
                    f"Version '{entry.version}' has no migration to the next version"
                )
        if self._migrations[-1].migration is not None:
            raise ConstructionError(
                f"Final version '{self._migrations[-1].version}' must not have a migration",
                "Add a VersionedMigration for the version it migrates to.",
            )

        steps = [entry.migration for entry in self._migrations[:-1]]
        for i, (prev, nxt) in enumerate(zip(steps, steps[1:])):
            if not kind_assignable(prev.dest_kind, nxt.source_kind):
                raise ConstructionError(
                    f"Migration from '{self._migrations[i].version}' produces "
                    f"{prev.dest_kind.__name__} but migration from "
                    f"'{self._migrations[i + 1].version}' expects {nxt.source_kind.__name__}"
                )

    @property
    def versions(self) -> list[str]:
        return [entry.version for entry in self._migrations]

    @property
    def target(self) -> str:
        return self._target

    @property
    def current_version(self) -> str | None:
        """Last known persisted version (None until loaded)."""
        return self._current

    @property
    def ready(self) -> bool:
        return self.ready_error() is None

    def ready_error(self) -> NotMigratedError | None:
        """Report whether the store is at its target version.

        Returns:
            None when ready, otherwise a NotMigratedError
        """
        if self._current is not None and self._current == self._target:
            return None
        return NotMigratedError(self._current, self._target)

    def retarget(self, target: str) -> None:
        """Change the target version.

        Readiness drops immediately if the store is not at the new target.
        """
        if target != self._target:
            logger.info(f"Retargeting from '{self._target}' to '{target}'")
        self._target = target

    def version_store(self, version: str) -> NamespaceDatastore:
        """Return the namespace holding records at a version."""
        return NamespaceDatastore(self.datastore, version)

    def _index(self, version: str) -> int:
        for i, entry in enumerate(self._migrations):
            if entry.version == version:
                return i
        raise VersionNotFoundError(version)

    async def _read_marker(self) -> str:
        try:
            raw = await self._marker_store.get(self.settings.version_marker_key)
        except KeyNotFoundError:
            return self._migrations[0].version
        return raw.decode("utf-8")

    async def _write_marker(self, version: str) -> None:
        try:
            await self._marker_store.put(
                self.settings.version_marker_key, version.encode("utf-8")
            )
        except Exception as e:
            logger.error(f"Failed to persist version marker '{version}': {e}")
            raise RunnerPersistError(version, e) from e
        self._current = version
        logger.info(f"Version marker set to '{version}'")

    async def refresh(self) -> str:
        """Reload the persisted version marker.

        Returns:
            The persisted current version
        """
        self._current = await self._read_marker()
        return self._current

    async def migrate(self, cancel: asyncio.Event | None = None) -> List[MigrationRecord]:
        """Migrate the datastore from its current version to the target.

        The marker is persisted after every completed step, so a failed
        run can be retried and resumes from the last completed step.

        Args:
            cancel: Optional event checked between keys and steps

        Returns:
            Records of the steps applied (empty if already at target)

        Raises:
            VersionNotFoundError: If the current or target version is unknown
            NonReversibleMigrationError: If migrating down across a step
                with no down function
            MigrationStepError: If a step fails
            RunnerPersistError: If the marker cannot be written
        """
        try:
            records = await self._migrate(cancel)
        except Exception as e:
            self.last_error = e
            raise
        self.last_error = None
        return records

    async def _migrate(self, cancel: asyncio.Event | None) -> List[MigrationRecord]:
        current = await self.refresh()
        current_idx = self._index(current)
        target_idx = self._index(self._target)

        if current_idx == target_idx:
            logger.debug(f"Already at version '{current}'")
            return []

        if target_idx > current_idx:
            return await self._migrate_up(current_idx, target_idx, cancel)
        return await self._migrate_down(current_idx, target_idx, cancel)

    async def _migrate_up(
        self, current_idx: int, target_idx: int, cancel: asyncio.Event | None
    ) -> List[MigrationRecord]:
        records = []
        for i in range(current_idx, target_idx):
            if cancel is not None and cancel.is_set():
                raise MigrationCancelledError()

            entry = self._migrations[i]
            next_version = self._migrations[i + 1].version
            logger.info(f"Migrating up from '{entry.version}' to '{next_version}'")

            touched = await entry.migration.up(
                self.version_store(entry.version),
                self.version_store(next_version),
                cancel,
            )
            await self._write_marker(next_version)

            records.append(
                MigrationRecord(entry.version, next_version, "up", touched)
            )
            logger.info(f"Migrated {len(touched)} records to '{next_version}'")
        return records

    async def _migrate_down(
        self, current_idx: int, target_idx: int, cancel: asyncio.Event | None
    ) -> List[MigrationRecord]:
        for entry in self._migrations[target_idx:current_idx]:
            if not entry.migration.reversible:
                raise NonReversibleMigrationError(entry.version)

        records = []
        for i in range(current_idx - 1, target_idx - 1, -1):
            if cancel is not None and cancel.is_set():
                raise MigrationCancelledError()

            entry = self._migrations[i]
            from_version = self._migrations[i + 1].version
            logger.info(f"Migrating down from '{from_version}' to '{entry.version}'")

            touched = await entry.migration.down(
                self.version_store(from_version),
                self.version_store(entry.version),
                cancel,
            )
            await self._write_marker(entry.version)

            records.append(
                MigrationRecord(from_version, entry.version, "down", touched)
            )
            logger.info(f"Migrated {len(touched)} records to '{entry.version}'")
        return records
