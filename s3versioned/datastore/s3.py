"""S3-backed datastore."""

import logging
from typing import AsyncIterator

from botocore.exceptions import ClientError

from s3versioned.core.client import S3ClientProtocol
from s3versioned.core.exceptions import KeyNotFoundError, S3OperationError
from s3versioned.core.settings import VersioningSettings
from s3versioned.datastore.base import Datastore, validate_key
from s3versioned.datastore.query import Entry, Query

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = ("NoSuchKey", "404", "NotFound")


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3Datastore(Datastore):
    """Datastore storing each key as one S3 object.

    Keys map to ``base_path + key`` in the bucket. Listing uses
    ``list_objects_v2`` pagination, so keys come back in S3's
    lexicographic order.

    Example:
        async with manager.get_async_client() as client:
            store = S3Datastore(client, "my-bucket", base_path="app/")
            await store.put("deal-1", b"...")
    """

    def __init__(
        self,
        s3_client: S3ClientProtocol,
        bucket_name: str,
        base_path: str = "",
        page_size: int = 1000,
    ):
        """Initialize the datastore.

        Args:
            s3_client: The S3 client to use
            bucket_name: The S3 bucket name
            base_path: Key prefix for every object in this store
            page_size: Keys requested per list call
        """
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.base_path = base_path
        self.page_size = page_size

    @classmethod
    def from_settings(
        cls, s3_client: S3ClientProtocol, settings: VersioningSettings
    ) -> "S3Datastore":
        """Create a datastore from settings."""
        return cls(
            s3_client,
            settings.aws_bucket_name,
            base_path=settings.s3_base_path,
            page_size=settings.list_page_size,
        )

    def _object_key(self, key: str) -> str:
        return f"{self.base_path}{validate_key(key)}"

    async def get(self, key: str) -> bytes:
        object_key = self._object_key(key)
        try:
            response = await self.s3_client.get_object(
                Bucket=self.bucket_name,
                Key=object_key,
            )
            return await response["Body"].read()
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise KeyNotFoundError(key, operation="get_object")
            raise S3OperationError(
                f"Failed to get '{object_key}': {e}",
                operation="get_object",
                key=key,
                original_error=e,
            ) from e

    async def has(self, key: str) -> bool:
        object_key = self._object_key(key)
        try:
            await self.s3_client.head_object(
                Bucket=self.bucket_name,
                Key=object_key,
            )
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise S3OperationError(
                f"Failed to check '{object_key}': {e}",
                operation="head_object",
                key=key,
                original_error=e,
            ) from e

    async def put(self, key: str, value: bytes) -> None:
        object_key = self._object_key(key)
        try:
            await self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=object_key,
                Body=value,
                ContentType="application/octet-stream",
            )
        except ClientError as e:
            raise S3OperationError(
                f"Failed to put '{object_key}': {e}",
                operation="put_object",
                key=key,
                original_error=e,
            ) from e

    async def delete(self, key: str) -> None:
        # S3 deletes are idempotent, so existence is checked first
        if not await self.has(key):
            raise KeyNotFoundError(key, operation="delete_object")
        object_key = self._object_key(key)
        try:
            await self.s3_client.delete_object(
                Bucket=self.bucket_name,
                Key=object_key,
            )
        except ClientError as e:
            raise S3OperationError(
                f"Failed to delete '{object_key}': {e}",
                operation="delete_object",
                key=key,
                original_error=e,
            ) from e

    async def query(self, query: Query) -> AsyncIterator[Entry]:
        list_prefix = f"{self.base_path}{query.prefix}"
        continuation_token = None

        while True:
            params = {
                "Bucket": self.bucket_name,
                "Prefix": list_prefix,
                "MaxKeys": self.page_size,
            }
            if continuation_token:
                params["ContinuationToken"] = continuation_token

            try:
                response = await self.s3_client.list_objects_v2(**params)
            except ClientError as e:
                raise S3OperationError(
                    f"Failed to list '{list_prefix}': {e}",
                    operation="list_objects_v2",
                    original_error=e,
                ) from e

            for obj_summary in response.get("Contents", []):
                key = obj_summary["Key"][len(self.base_path):]
                if not query.matches(key):
                    continue
                if query.keys_only:
                    yield Entry(key)
                else:
                    yield Entry(key, await self.get(key))

            if not response.get("IsTruncated", False):
                break

            continuation_token = response.get("NextContinuationToken")
            logger.debug(f"Listing '{list_prefix}' continues at {continuation_token}")
