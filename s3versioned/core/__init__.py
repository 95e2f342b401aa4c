"""Core components: settings, S3 client management and exceptions."""
