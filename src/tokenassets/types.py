"""Shared asset types and identifier helpers."""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

SOLANA = "solana"

# Fields every persisted record carries, followed by the optional ones.
REQUIRED_FIELDS = ("chain", "tokenId", "name", "symbol", "type", "decimals")
OPTIONAL_FIELDS = ("logoURI", "supply")

_CHAIN_RE = re.compile(r"[a-z0-9_-]{1,64}")
_TOKEN_ID_MAX = 256
_UNSAFE_TOKEN_ID_CHARS = ("/", "\\", "\x00")


class AssetRecord(BaseModel):
    """Token metadata in the shape stored in the per-chain token lists."""

    model_config = ConfigDict(populate_by_name=True)

    chain: str
    token_id: str = Field(..., alias="tokenId")
    name: str
    symbol: str
    type: str
    decimals: int = Field(0, ge=0)
    logo_uri: Optional[str] = Field(None, alias="logoURI")
    supply: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return sanitize_asset(self.model_dump(by_alias=True))


def sanitize_asset(asset: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the token list schema fields of *asset*.

    Optional fields are dropped when absent or ``None`` so provider extras
    never leak into the persisted documents.
    """

    out = {key: asset.get(key) for key in REQUIRED_FIELDS}
    for key in OPTIONAL_FIELDS:
        if asset.get(key) is not None:
            out[key] = asset[key]
    return out


def normalize_chain(chain: str) -> str:
    return chain.strip().lower()


def is_valid_chain(chain: str) -> bool:
    return bool(_CHAIN_RE.fullmatch(chain))


def is_valid_token_id(token_id: str) -> bool:
    """Accept any id that maps to a single directory below the asset root.

    Contract addresses come in many shapes (``0x..`` hex, base58 mints,
    dotted Hedera ids), so only ids that could leave that directory are
    refused.
    """

    if not token_id or len(token_id) > _TOKEN_ID_MAX or token_id in (".", ".."):
        return False
    return not any(ch in token_id for ch in _UNSAFE_TOKEN_ID_CHARS)


def same_token(chain: str, a: str, b: str) -> bool:
    """Compare token ids using the chain's rule.

    Solana mints are base58 and therefore case-sensitive; every other chain
    is matched case-insensitively.
    """

    if chain == SOLANA:
        return a == b
    return a.lower() == b.lower()


__all__ = [
    "SOLANA",
    "AssetRecord",
    "sanitize_asset",
    "normalize_chain",
    "is_valid_chain",
    "is_valid_token_id",
    "same_token",
]
