"""Builder for migrations based on a record transformation function.

Example:
    class DealV1(BaseModel):
        val: int

    class DealV2(BaseModel):
        val: int

    def up(old: DealV1) -> DealV2:
        return DealV2(val=old.val * 10)

    def down(new: DealV2) -> DealV1:
        return DealV1(val=new.val // 10)

    migration = (
        new_migration_builder(up)
        .reversible(down)
        .filter_keys(["legacy"])
        .build()
    )
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Iterable, Type

from pydantic import BaseModel

from s3versioned.core.exceptions import ConstructionError, IncompatibleInverseError
from s3versioned.datastore.query import ExcludeKey, IncludeOnly, KeyFilter
from s3versioned.migrations.base import Migration, ReversibleMigration
from s3versioned.records import MigrationFunc, check_migration, kind_assignable


def _key_list(keys: Iterable[str]) -> list[str]:
    if isinstance(keys, str):
        return [keys]
    return list(keys)


class Builder(ABC):
    """Interface for constructing migrations.

    Every configuration call returns a new builder; builders are never
    modified in place.
    """

    @abstractmethod
    def reversible(
        self,
        down: MigrationFunc,
        source_kind: Type[BaseModel] | None = None,
        dest_kind: Type[BaseModel] | None = None,
    ) -> "Builder":
        """Attach a down function that undoes the migration."""

    @abstractmethod
    def filter_keys(self, keys: Iterable[str]) -> "Builder":
        """Exclude the given keys from the migration."""

    @abstractmethod
    def only(self, keys: Iterable[str]) -> "Builder":
        """Restrict the migration to the given keys."""

    @abstractmethod
    def build(self) -> Migration:
        """Build the migration.

        Raises:
            ConstructionError: If any earlier call captured an error
        """


@dataclass(frozen=True)
class MigrationBuilder(Builder):
    """Builder holding a validated up function and its record kinds."""

    source_kind: Type[BaseModel]
    dest_kind: Type[BaseModel]
    up_func: MigrationFunc
    filters: tuple[KeyFilter, ...] = ()
    down_func: MigrationFunc | None = None

    @classmethod
    def new(
        cls,
        up: MigrationFunc,
        source_kind: Type[BaseModel] | None = None,
        dest_kind: Type[BaseModel] | None = None,
    ) -> Builder:
        """Start building a migration from an up function.

        Args:
            up: Function taking one source record and returning one
                destination record
            source_kind: Explicit source kind (overrides annotations)
            dest_kind: Explicit destination kind (overrides annotations)

        Returns:
            A builder, or an :class:`ErrorBuilder` if ``up`` is malformed
        """
        try:
            old_kind, new_kind = check_migration(up, source_kind, dest_kind)
        except ConstructionError as e:
            return ErrorBuilder(e)
        return cls(source_kind=old_kind, dest_kind=new_kind, up_func=up)

    def reversible(
        self,
        down: MigrationFunc,
        source_kind: Type[BaseModel] | None = None,
        dest_kind: Type[BaseModel] | None = None,
    ) -> Builder:
        try:
            down_source, down_dest = check_migration(down, source_kind, dest_kind)
        except ConstructionError as e:
            return ErrorBuilder(e)
        if not kind_assignable(self.dest_kind, down_source) or not kind_assignable(
            down_dest, self.source_kind
        ):
            return ErrorBuilder(
                IncompatibleInverseError(
                    (self.source_kind, self.dest_kind), (down_source, down_dest)
                )
            )
        return replace(self, down_func=down)

    def filter_keys(self, keys: Iterable[str]) -> Builder:
        return replace(
            self,
            filters=self.filters + tuple(ExcludeKey(k) for k in _key_list(keys)),
        )

    def only(self, keys: Iterable[str]) -> Builder:
        return replace(
            self,
            filters=self.filters + (IncludeOnly(frozenset(_key_list(keys))),),
        )

    def build(self) -> Migration:
        if self.down_func is None:
            return Migration(
                source_kind=self.source_kind,
                dest_kind=self.dest_kind,
                up_func=self.up_func,
                filters=self.filters,
            )
        return ReversibleMigration(
            source_kind=self.source_kind,
            dest_kind=self.dest_kind,
            up_func=self.up_func,
            filters=self.filters,
            down_func=self.down_func,
        )


@dataclass(frozen=True)
class ErrorBuilder(Builder):
    """Builder that captured a construction error.

    Every configuration call returns this builder unchanged, so the
    first error is the one ``build()`` raises.
    """

    error: ConstructionError

    def reversible(self, down, source_kind=None, dest_kind=None) -> Builder:
        return self

    def filter_keys(self, keys) -> Builder:
        return self

    def only(self, keys) -> Builder:
        return self

    def build(self) -> Migration:
        raise self.error


def new_migration_builder(
    up: MigrationFunc,
    source_kind: Type[BaseModel] | None = None,
    dest_kind: Type[BaseModel] | None = None,
) -> Builder:
    """Return a builder for a migration based on ``up``."""
    return MigrationBuilder.new(up, source_kind, dest_kind)
