"""Testing utilities for s3versioned."""

from unittest import IsolatedAsyncioTestCase

from s3versioned.core.settings import VersioningSettings
from s3versioned.datastore.s3 import S3Datastore
from s3versioned.testing.mocks import InMemoryS3


def create_test_settings(
    bucket_name: str = "test-bucket",
    base_path: str = "test/",
    **overrides
) -> VersioningSettings:
    """Create settings for testing.

    Args:
        bucket_name: The S3 bucket name for tests
        base_path: The S3 base path for tests
        **overrides: Additional settings to override

    Returns:
        VersioningSettings instance configured for testing
    """
    return VersioningSettings(
        aws_bucket_name=bucket_name,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        aws_default_region="us-east-1",
        aws_url="http://localhost:4566",
        s3_base_path=base_path,
        **overrides,
    )


class S3TestCase(IsolatedAsyncioTestCase):
    """Base test case class for s3versioned tests.

    This class provides a pre-configured test environment with:
    - In-memory S3 mock
    - Test settings
    - A datastore rooted at the test base path

    Example:
        >>> class TestDeals(S3TestCase):
        ...     async def test_put(self):
        ...         await self.datastore.put("deal-1", b"{}")
        ...         self.assertTrue(await self.datastore.has("deal-1"))
    """

    bucket_name: str = "test-bucket"
    base_path: str = "test/"

    def setUp(self) -> None:
        """Set up test fixtures."""
        super().setUp()
        self.s3_client = InMemoryS3()
        self.settings = create_test_settings(
            bucket_name=self.bucket_name,
            base_path=self.base_path,
        )
        self.datastore = S3Datastore.from_settings(self.s3_client, self.settings)

    def tearDown(self) -> None:
        """Clean up after test."""
        self.s3_client.clear()
        super().tearDown()

    def assertStoredKeys(self, expected: list[str]) -> None:
        """Assert the exact set of object keys under the base path.

        Args:
            expected: Keys relative to the base path
        """
        stored = self.s3_client.get_bucket_data(self.bucket_name)
        keys = sorted(
            key[len(self.base_path):] for key in stored
            if key.startswith(self.base_path)
        )
        self.assertEqual(keys, sorted(expected))
