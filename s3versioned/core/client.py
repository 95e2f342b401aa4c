"""S3 client manager for handling S3 connections."""

from collections.abc import AsyncGenerator
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Protocol, runtime_checkable

from aiobotocore.client import AioBaseClient
from aiobotocore.session import get_session
from botocore.config import Config
from botocore.exceptions import ClientError

from s3versioned.core.exceptions import S3ConnectionError, S3OperationError
from s3versioned.core.settings import VersioningSettings


@runtime_checkable
class S3ClientProtocol(Protocol):
    """Protocol for the S3 client operations used by the datastore."""

    async def get_object(self, Bucket: str, Key: str, **kwargs) -> dict[str, Any]:
        """Get an object from S3."""
        ...

    async def put_object(
        self, Bucket: str, Key: str, Body: bytes | str, **kwargs
    ) -> dict[str, Any]:
        """Put an object to S3."""
        ...

    async def delete_object(self, Bucket: str, Key: str, **kwargs) -> dict[str, Any]:
        """Delete an object from S3."""
        ...

    async def list_objects_v2(self, Bucket: str, **kwargs) -> dict[str, Any]:
        """List objects in S3."""
        ...

    async def head_object(self, Bucket: str, Key: str, **kwargs) -> dict[str, Any]:
        """Get object metadata."""
        ...

    async def head_bucket(self, Bucket: str, **kwargs) -> dict[str, Any]:
        """Check that a bucket exists."""
        ...

    async def create_bucket(self, Bucket: str, **kwargs) -> dict[str, Any]:
        """Create a bucket."""
        ...


def adjust_endpoint_url(
    endpoint_url: str | None, bucket_name: str | None
) -> str | None:
    """Adjust endpoint URL for path-style addressing if needed.

    Args:
        endpoint_url: The S3 endpoint URL
        bucket_name: The S3 bucket name

    Returns:
        Adjusted endpoint URL or None
    """
    if not endpoint_url:
        return None
    if bucket_name and f"{bucket_name}." in endpoint_url:
        return endpoint_url.replace(f"{bucket_name}.", "")
    return endpoint_url


class S3ClientManager:
    """Creates aiobotocore S3 clients from settings.

    Example:
        manager = S3ClientManager(VersioningSettings())
        async with manager.get_async_client() as client:
            store = S3Datastore(client, manager.settings.aws_bucket_name)
    """

    def __init__(self, settings: VersioningSettings | None = None):
        self.settings = settings or VersioningSettings()
        self._session = None
        self._endpoint_url = adjust_endpoint_url(
            self.settings.aws_url, self.settings.aws_bucket_name
        )
        self._client_config = Config(
            s3={"addressing_style": "path"},
            retries={
                "max_attempts": self.settings.aws_retry_attempts,
                "mode": "standard",
            },
        )

    @property
    def endpoint_url(self) -> str | None:
        return self._endpoint_url

    @asynccontextmanager
    async def get_async_client(self) -> AsyncGenerator[AioBaseClient, None]:
        """Get an async S3 client within a context manager.

        Yields:
            An aiobotocore S3 client

        Raises:
            S3ConnectionError: If client creation fails
        """
        if self._session is None:
            self._session = get_session()

        async with AsyncExitStack() as stack:
            try:
                client = await stack.enter_async_context(
                    self._session.create_client(
                        "s3",
                        region_name=self.settings.aws_default_region,
                        aws_access_key_id=self.settings.aws_access_key_id,
                        aws_secret_access_key=self.settings.aws_secret_access_key,
                        endpoint_url=self._endpoint_url,
                        config=self._client_config,
                    )
                )
            except Exception as e:
                raise S3ConnectionError(
                    message=f"Failed to create async S3 client: {e}",
                    original_error=e,
                    endpoint=self._endpoint_url,
                )
            yield client

    async def ensure_bucket_exists(self, client: S3ClientProtocol) -> None:
        """Ensure the configured bucket exists, creating it if necessary.

        Args:
            client: An S3 client

        Raises:
            S3ConnectionError: If bucket creation fails
            S3OperationError: If bucket check fails
        """
        bucket = self.settings.aws_bucket_name
        try:
            await client.head_bucket(Bucket=bucket)
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            # Handle both numeric codes and named codes
            if error_code in ("404", "NoSuchBucket", "NotFound"):
                try:
                    await client.create_bucket(Bucket=bucket)
                except ClientError as create_error:
                    raise S3ConnectionError(
                        message=f"Failed to create bucket: {create_error}",
                        original_error=create_error,
                        endpoint=self._endpoint_url,
                    )
            elif error_code == "403":
                raise S3OperationError(
                    "Permission denied checking bucket existence",
                    operation="head_bucket",
                    original_error=e,
                )
            else:
                raise S3OperationError(
                    f"Error checking bucket: {e}",
                    operation="head_bucket",
                    original_error=e,
                )
