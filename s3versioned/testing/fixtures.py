"""Pytest fixtures for s3versioned testing.

To use these fixtures, add to your conftest.py:

    pytest_plugins = ["s3versioned.testing.fixtures"]
"""

import pytest

from s3versioned.core.settings import VersioningSettings
from s3versioned.datastore.s3 import S3Datastore
from s3versioned.testing.mocks import InMemoryS3
from s3versioned.testing.utils import create_test_settings


@pytest.fixture
def s3_test_bucket() -> str:
    """Provide test bucket name."""
    return "test-bucket"


@pytest.fixture
def s3_base_path() -> str:
    """Provide test base path."""
    return "test/"


@pytest.fixture
def versioning_settings(s3_test_bucket: str, s3_base_path: str) -> VersioningSettings:
    """Provide settings configured for testing."""
    return create_test_settings(bucket_name=s3_test_bucket, base_path=s3_base_path)


@pytest.fixture
def mock_s3() -> InMemoryS3:
    """Provide in-memory S3 mock."""
    s3 = InMemoryS3()
    yield s3
    s3.clear()


@pytest.fixture
def datastore(mock_s3: InMemoryS3, versioning_settings: VersioningSettings) -> S3Datastore:
    """Provide an S3 datastore backed by the in-memory mock.

    Example:
        async def test_something(datastore):
            await datastore.put("key", b"value")
    """
    return S3Datastore.from_settings(mock_s3, versioning_settings)
