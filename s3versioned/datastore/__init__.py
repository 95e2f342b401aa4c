"""Key-value datastores for s3versioned.

This module provides the datastore interface migrations run against,
an S3 implementation, and a namespace wrapper used to keep each
version's records and the version marker in separate regions of one
bucket.
"""

from s3versioned.datastore.base import Datastore
from s3versioned.datastore.namespace import NamespaceDatastore
from s3versioned.datastore.query import Entry, ExcludeKey, IncludeOnly, KeyFilter, Query
from s3versioned.datastore.s3 import S3Datastore

__all__ = [
    "Datastore",
    "NamespaceDatastore",
    "S3Datastore",
    "Entry",
    "ExcludeKey",
    "IncludeOnly",
    "KeyFilter",
    "Query",
]
