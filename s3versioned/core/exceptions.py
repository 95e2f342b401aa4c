"""Custom exceptions for s3versioned.

This module provides a hierarchy of exceptions with helpful error messages
to make debugging migrations easier for developers.
"""

from typing import Any


class VersioningError(Exception):
    """Base exception for all s3versioned errors.

    All s3versioned exceptions inherit from this class, making it easy
    to catch all library-specific errors.
    """

    def __init__(self, message: str, hint: str | None = None):
        """Initialize the exception.

        Args:
            message: The error message
            hint: Optional hint for resolving the error
        """
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\nHint: {self.hint}"
        return self.message


class S3ConnectionError(VersioningError):
    """Raised when there is an error connecting to S3."""

    def __init__(
        self,
        message: str | None = None,
        original_error: Exception | None = None,
        endpoint: str | None = None,
    ):
        """Initialize the connection error.

        Args:
            message: Custom error message (optional)
            original_error: The original exception that caused this error
            endpoint: The S3 endpoint URL being connected to
        """
        self.original_error = original_error
        self.endpoint = endpoint

        if message:
            final_message = message
            hint = None
        elif original_error:
            final_message, hint = self._format_error(original_error, endpoint)
        else:
            final_message = "Failed to connect to S3"
            hint = "Check your AWS credentials and network connection."

        super().__init__(final_message, hint)

    def _format_error(
        self, error: Exception, endpoint: str | None
    ) -> tuple[str, str | None]:
        """Format the error message based on the underlying error."""
        error_str = str(error)

        if "Could not connect" in error_str or "Connection refused" in error_str:
            if endpoint and "localhost" in endpoint:
                return (
                    f"Could not connect to S3 at {endpoint}",
                    "If using LocalStack, ensure it's running: docker run -d -p 4566:4566 localstack/localstack",
                )
            return (
                f"Could not connect to S3 at {endpoint or 'AWS'}",
                "Check your network connection and AWS endpoint configuration.",
            )

        if "InvalidAccessKeyId" in error_str:
            return (
                "Invalid AWS access key ID",
                "Check your AWS_ACCESS_KEY_ID environment variable.",
            )

        if "AccessDenied" in error_str:
            return (
                "Access denied to AWS resources",
                "Check your IAM permissions for S3 access.",
            )

        return (f"S3 connection error: {error}", None)


class S3OperationError(VersioningError):
    """Raised when an S3 operation fails."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        key: str | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the operation error.

        Args:
            message: The error message
            operation: The S3 operation that failed (e.g., 'get_object')
            key: The datastore key involved in the operation
            original_error: The original exception
        """
        self.operation = operation
        self.key = key
        self.original_error = original_error

        hint = None
        if "NoSuchBucket" in message:
            hint = "The specified bucket does not exist."
        elif "AccessDenied" in message:
            hint = "Check your IAM permissions for this operation."

        super().__init__(message, hint)


class KeyNotFoundError(S3OperationError):
    """Raised when a key does not exist in a datastore."""

    def __init__(self, key: str, operation: str | None = None):
        super().__init__(f"Key '{key}' not found", operation=operation, key=key)
        self.hint = f"The object at key '{key}' does not exist."


class InvalidKeyError(VersioningError):
    """Raised when a datastore key or namespace is malformed."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            f"Invalid datastore key '{key}'",
            "Keys must be non-empty and must not start with '/'.",
        )


class StateAlreadyExistsError(VersioningError):
    """Raised when beginning tracking of a key that is already stored."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"State for key '{key}' already exists")


class RecordKindError(VersioningError):
    """Raised when a record of the wrong kind would be stored."""

    def __init__(self, key: str, expected: type, actual: type):
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Record for '{key}' is a {actual.__name__}, expected {expected.__name__}",
            "Return an instance of the store's record kind, or None after editing in place.",
        )


class ConstructionError(VersioningError):
    """Raised when a migration or migration list is malformed.

    Builder errors are captured at configuration time and only raised
    from ``build()``.
    """


class IncompatibleInverseError(ConstructionError):
    """Raised when a down function does not have inverse types of the up function."""

    def __init__(self, up_kinds: tuple[type, type], down_kinds: tuple[type, type]):
        self.up_kinds = up_kinds
        self.down_kinds = down_kinds
        super().__init__(
            "reversible function does not have inverse types: "
            f"up is {up_kinds[0].__name__} -> {up_kinds[1].__name__}, "
            f"down is {down_kinds[0].__name__} -> {down_kinds[1].__name__}",
            f"The down function should accept {up_kinds[1].__name__} "
            f"and return {up_kinds[0].__name__}.",
        )


class MigrationStepError(VersioningError):
    """Base class for errors that abort a single migration step.

    Attributes:
        key: The key being processed when the step aborted
        touched_keys: Keys already written by the step before it aborted
    """

    def __init__(
        self,
        message: str,
        key: str | None = None,
        touched_keys: list[str] | None = None,
        hint: str | None = None,
    ):
        self.key = key
        self.touched_keys = list(touched_keys or [])
        super().__init__(message, hint)


class ReadError(MigrationStepError):
    """Raised when a listed source key cannot be read."""

    def __init__(self, key: str, touched_keys: list[str] | None = None):
        super().__init__(
            f"Failed to read record at '{key}'",
            key=key,
            touched_keys=touched_keys,
            hint="The key may have been removed while the migration was running.",
        )


class RecordDecodeError(MigrationStepError):
    """Raised when a stored payload cannot be decoded as the source kind."""

    def __init__(self, key: str, kind: type, touched_keys: list[str] | None = None):
        self.kind = kind
        super().__init__(
            f"Failed to decode record at '{key}' as {kind.__name__}",
            key=key,
            touched_keys=touched_keys,
            hint="Check the store holds records of the migration's source kind.",
        )


class TransformError(MigrationStepError):
    """Raised when a migration function fails on a record."""

    def __init__(
        self, key: str, cause: BaseException, touched_keys: list[str] | None = None
    ):
        self.cause = cause
        super().__init__(
            f"Migration function failed on '{key}': {cause}",
            key=key,
            touched_keys=touched_keys,
        )


class RecordEncodeError(MigrationStepError):
    """Raised when a migrated record cannot be encoded."""

    def __init__(
        self,
        key: str,
        touched_keys: list[str] | None = None,
        reason: str | None = None,
    ):
        message = f"Failed to encode migrated record for '{key}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            key=key,
            touched_keys=touched_keys,
        )


class WriteError(MigrationStepError):
    """Raised when a migrated record cannot be written to the destination."""

    def __init__(self, key: str, touched_keys: list[str] | None = None):
        super().__init__(
            f"Failed to write migrated record for '{key}'",
            key=key,
            touched_keys=touched_keys,
            hint="Records written before this key remain in the destination.",
        )


class MigrationCancelledError(MigrationStepError):
    """Raised when a migration is cancelled between keys or steps."""

    def __init__(self, touched_keys: list[str] | None = None):
        super().__init__("Migration cancelled", touched_keys=touched_keys)


class VersionNotFoundError(VersioningError):
    """Raised when a version key is not part of the migration list."""

    def __init__(self, version: Any):
        self.version = version
        super().__init__(
            f"Version '{version}' not found in migration list",
            "The current and target versions must both appear in the list.",
        )


class NonReversibleMigrationError(VersioningError):
    """Raised when migrating backward across a step with no down function."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(
            f"Migration from version '{version}' is not reversible",
            "Attach a down function with reversible() to migrate backward.",
        )


class NotMigratedError(VersioningError):
    """Raised when a store is accessed before it reaches its target version."""

    def __init__(self, current: str | None, target: str):
        self.current = current
        self.target = target
        at = f"version '{current}'" if current is not None else "an unknown version"
        super().__init__(
            f"Store is at {at}, target is '{target}'",
            "Run the migration before accessing the store.",
        )


class RunnerPersistError(VersioningError):
    """Raised when the version marker cannot be written after a completed step."""

    def __init__(self, version: str, original_error: Exception | None = None):
        self.version = version
        self.original_error = original_error
        super().__init__(
            f"Failed to persist version marker '{version}'",
            "The step's data was written; rerunning the migration repeats it.",
        )
