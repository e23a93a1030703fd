"""Temporary schedule override history for insulin delivery settings."""

__version__ = "0.1.0"
