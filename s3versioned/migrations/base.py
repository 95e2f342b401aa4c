"""Base classes for s3versioned migrations."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import ClassVar, Type

from pydantic import BaseModel

from s3versioned.datastore.base import Datastore
from s3versioned.datastore.query import KeyFilter, Query
from s3versioned.migrations.executor import execute
from s3versioned.records import MigrationFunc


@dataclass(frozen=True)
class Migration:
    """A built migration between two record kinds.

    Migrations are immutable. Create them with
    :func:`s3versioned.migrations.builder.new_migration_builder`.

    Attributes:
        source_kind: Kind of the records the migration reads
        dest_kind: Kind of the records the migration writes
        up_func: Function transforming one source record
        filters: Key filter clauses limiting which keys are migrated
    """

    reversible: ClassVar[bool] = False

    source_kind: Type[BaseModel]
    dest_kind: Type[BaseModel]
    up_func: MigrationFunc
    filters: tuple[KeyFilter, ...] = ()

    @property
    def query(self) -> Query:
        return Query(filters=self.filters)

    async def up(
        self,
        source: Datastore,
        dest: Datastore,
        cancel: asyncio.Event | None = None,
    ) -> list[str]:
        """Migrate matching records from ``source`` into ``dest``.

        Args:
            source: Store holding ``source_kind`` records
            dest: Store receiving ``dest_kind`` records
            cancel: Optional event checked between keys

        Returns:
            Keys written to ``dest``
        """
        return await execute(
            self.query,
            source,
            dest,
            self.source_kind,
            self.up_func,
            cancel,
            result_kind=self.dest_kind,
        )


@dataclass(frozen=True)
class ReversibleMigration(Migration):
    """A migration with a down function that undoes ``up``."""

    reversible: ClassVar[bool] = True

    down_func: MigrationFunc | None = None

    async def down(
        self,
        dest: Datastore,
        source: Datastore,
        cancel: asyncio.Event | None = None,
    ) -> list[str]:
        """Migrate matching records from ``dest`` back into ``source``.

        Args:
            dest: Store holding ``dest_kind`` records
            source: Store receiving ``source_kind`` records
            cancel: Optional event checked between keys

        Returns:
            Keys written to ``source``
        """
        return await execute(
            self.query,
            dest,
            source,
            self.dest_kind,
            self.down_func,
            cancel,
            result_kind=self.source_kind,
        )


@dataclass
class MigrationRecord:
    """Record of one migration step applied by the runner."""

    from_version: str
    to_version: str
    direction: str
    touched_keys: list[str] = field(default_factory=list)
    applied_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def objects_transformed(self) -> int:
        return len(self.touched_keys)
