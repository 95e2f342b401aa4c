"""Configuration for s3versioned.

Values are read from environment variables (and an optional ``.env``
file) by ``pydantic-settings``.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VersioningSettings(BaseSettings):
    """Settings for S3 access and version bookkeeping."""

    aws_access_key_id: str | None = Field(None, description="AWS access key ID.")
    aws_secret_access_key: str | None = Field(
        None, description="AWS secret access key."
    )
    aws_default_region: str = Field("us-east-1", description="AWS region.")
    aws_bucket_name: str = Field("s3versioned", description="Bucket holding the store.")
    aws_url: str | None = Field(
        None, description="Endpoint override, e.g. http://localhost:4566 for LocalStack."
    )
    aws_retry_attempts: int = Field(3, ge=1, description="Botocore retry attempts.")

    s3_base_path: str = Field("", description="Key prefix for all stored data.")
    list_page_size: int = Field(
        1000, ge=1, le=1000, description="Keys requested per list_objects_v2 call."
    )
    versions_namespace: str = Field(
        "versions", min_length=1, description="Namespace holding the version marker."
    )
    version_marker_key: str = Field(
        "current", min_length=1, description="Key of the version marker."
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
