"""Trackfast — schema-validated analytics event fan-out."""

__version__ = "0.1.0"
