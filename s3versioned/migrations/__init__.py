"""Migration system for s3versioned.

Records live in one namespace per version. A migration transforms the
records of one version into the next; the runner walks an ordered list
of versions to reach a target, persisting progress after every step.
"""

from s3versioned.migrations.base import Migration, MigrationRecord, ReversibleMigration
from s3versioned.migrations.builder import (
    Builder,
    ErrorBuilder,
    MigrationBuilder,
    new_migration_builder,
)
from s3versioned.migrations.executor import execute
from s3versioned.migrations.runner import (
    MigrationRunner,
    VersionedMigration,
    VersionedMigrationList,
)

__all__ = [
    "Migration",
    "MigrationRecord",
    "ReversibleMigration",
    "Builder",
    "ErrorBuilder",
    "MigrationBuilder",
    "new_migration_builder",
    "execute",
    "MigrationRunner",
    "VersionedMigration",
    "VersionedMigrationList",
]
