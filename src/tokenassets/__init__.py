"""Token metadata and logo server."""

__version__ = "0.1.0"
