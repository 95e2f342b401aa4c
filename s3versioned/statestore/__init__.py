"""State stores for s3versioned.

A state store keeps typed records in a datastore. The versioned state
store refuses access until its datastore has been migrated to the
version the store was built for.
"""

from s3versioned.statestore.store import StateStore, StoredState
from s3versioned.statestore.versioned import (
    MigratedStateStore,
    MigrationState,
    NotReadyStoredState,
    new_versioned_state_store,
)

__all__ = [
    "StateStore",
    "StoredState",
    "MigratedStateStore",
    "MigrationState",
    "NotReadyStoredState",
    "new_versioned_state_store",
]
