"""s3versioned: versioned record migrations for S3-backed key-value stores."""

__version__ = "0.1.0"

# Core components
from s3versioned.core.client import S3ClientManager
from s3versioned.core.exceptions import (
    VersioningError,
    S3ConnectionError,
    S3OperationError,
    KeyNotFoundError,
    InvalidKeyError,
    StateAlreadyExistsError,
    RecordKindError,
    ConstructionError,
    IncompatibleInverseError,
    MigrationStepError,
    ReadError,
    RecordDecodeError,
    TransformError,
    RecordEncodeError,
    WriteError,
    MigrationCancelledError,
    VersionNotFoundError,
    NonReversibleMigrationError,
    NotMigratedError,
    RunnerPersistError,
)
from s3versioned.core.settings import VersioningSettings

# Datastore components
from s3versioned.datastore import (
    Datastore,
    NamespaceDatastore,
    S3Datastore,
    Query,
)

# Migration components
from s3versioned.migrations import (
    Migration,
    MigrationRecord,
    MigrationRunner,
    ReversibleMigration,
    VersionedMigration,
    new_migration_builder,
)

# State store components
from s3versioned.statestore import (
    MigratedStateStore,
    StateStore,
    new_versioned_state_store,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "S3ClientManager",
    "VersioningSettings",
    "VersioningError",
    "S3ConnectionError",
    "S3OperationError",
    "KeyNotFoundError",
    "InvalidKeyError",
    "StateAlreadyExistsError",
    "RecordKindError",
    "ConstructionError",
    "IncompatibleInverseError",
    "MigrationStepError",
    "ReadError",
    "RecordDecodeError",
    "TransformError",
    "RecordEncodeError",
    "WriteError",
    "MigrationCancelledError",
    "VersionNotFoundError",
    "NonReversibleMigrationError",
    "NotMigratedError",
    "RunnerPersistError",
    # Datastore
    "Datastore",
    "NamespaceDatastore",
    "S3Datastore",
    "Query",
    # Migrations
    "Migration",
    "MigrationRecord",
    "MigrationRunner",
    "ReversibleMigration",
    "VersionedMigration",
    "new_migration_builder",
    # State store
    "MigratedStateStore",
    "StateStore",
    "new_versioned_state_store",
]
