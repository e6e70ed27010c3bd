"""Common utilities and helpers used across the service."""

__all__ = [
    "exceptions",
    "logging",
    "middleware",
    "schema",
]
