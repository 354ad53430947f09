from .background import BackgroundWriter
from .fallback import LogoFallbackResolver, LogoResult, TRUSTWALLET_CDN, HELIUS_METADATA

__all__ = [
    "BackgroundWriter",
    "LogoFallbackResolver",
    "LogoResult",
    "TRUSTWALLET_CDN",
    "HELIUS_METADATA",
]
