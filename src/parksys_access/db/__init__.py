"""DB package exports."""

from .base import NAMING_CONVENTION, Base, metadata, utc_now
from .engine import create_engine, create_sessionmaker, ensure_schema

__all__ = [
    "Base",
    "metadata",
    "NAMING_CONVENTION",
    "utc_now",
    "create_engine",
    "create_sessionmaker",
    "ensure_schema",
]
