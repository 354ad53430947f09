"""Generic utility functions."""

from .config import AssetConfig, parse_args
from .syschecks import check_writable

__all__ = [
    "AssetConfig",
    "parse_args",
    "check_writable",
]
