"""Persistence layer exports."""

from .tokenlist import TokenListStore, TokenListError
from .logos import LogoCache, normalize_uri, decode_data_uri
from .assets import AssetService

__all__ = [
    "TokenListStore",
    "TokenListError",
    "LogoCache",
    "normalize_uri",
    "decode_data_uri",
    "AssetService",
]
