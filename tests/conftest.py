"""Shared pytest configuration."""

pytest_plugins = ["s3versioned.testing.fixtures"]
