"""Testing utilities for s3versioned.

This module provides an in-memory S3 mock, test settings and pytest
fixtures for exercising datastores and migrations without S3.

Usage in conftest.py:
    pytest_plugins = ["s3versioned.testing.fixtures"]
"""

from s3versioned.testing.mocks import InMemoryS3, mock_s3_client
from s3versioned.testing.utils import create_test_settings, S3TestCase

__all__ = [
    "InMemoryS3",
    "mock_s3_client",
    "create_test_settings",
    "S3TestCase",
]
