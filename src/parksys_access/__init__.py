"""ParkSys role permission matrix and navigation filter."""

__version__ = "0.1.0"
