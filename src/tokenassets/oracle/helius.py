"""Helius DAS metadata oracle.

Only Solana is served upstream. ``getAsset`` answers are decoded into the
explicit shapes below; a field holding something other than what the shape
expects decodes as absent instead of failing the whole asset.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..types import SOLANA, AssetRecord

logger = logging.getLogger(__name__)

FUNGIBLE_TOKEN = "FungibleToken"
SPL = "SPL"


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="wrap")
    @classmethod
    def _absent_on_mismatch(cls, value: Any, handler: Any) -> Any:
        try:
            return handler(value)
        except ValidationError:
            return None


class ContentMetadata(_Lenient):
    name: Optional[str] = None
    symbol: Optional[str] = None


class ContentLinks(_Lenient):
    image: Optional[str] = None


class ContentFile(_Lenient):
    uri: Optional[str] = None
    mime: Optional[str] = None


class AssetContent(_Lenient):
    metadata: Optional[ContentMetadata] = None
    links: Optional[ContentLinks] = None
    files: Optional[List[ContentFile]] = None


class TokenInfo(_Lenient):
    name: Optional[str] = None
    symbol: Optional[str] = None
    decimals: Optional[Any] = None
    supply: Optional[Any] = None


class ProviderAsset(_Lenient):
    id: Optional[str] = None
    interface: Optional[str] = None
    content: Optional[AssetContent] = None
    token_info: Optional[TokenInfo] = None


def _decimals(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float) and value.is_integer():
        return max(int(value), 0)
    return 0


def _supply(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    try:
        dec = Decimal(str(value))
    except InvalidOperation:
        return None
    if not dec.is_finite():
        return None
    if dec == dec.to_integral_value():
        return format(dec.to_integral_value(), "f")
    return format(dec, "f")


def _logo(content: Optional[AssetContent]) -> Optional[str]:
    if content is None:
        return None
    if content.links and content.links.image:
        return content.links.image
    for f in content.files or []:
        if f is not None and f.uri:
            return f.uri
    return None


def map_to_asset_record(token_id: str, asset: Optional[ProviderAsset]) -> Optional[AssetRecord]:
    """Map a provider answer to an :class:`AssetRecord`.

    Anything but a fungible token yields ``None``.
    """

    if asset is None or asset.interface != FUNGIBLE_TOKEN:
        return None
    content = asset.content or AssetContent()
    meta = content.metadata or ContentMetadata()
    info = asset.token_info or TokenInfo()
    return AssetRecord(
        chain=SOLANA,
        token_id=token_id,
        name=meta.name or info.name or token_id,
        symbol=meta.symbol or info.symbol or "",
        type=SPL,
        decimals=_decimals(info.decimals),
        logo_uri=_logo(content),
        supply=_supply(info.supply),
    )


class HeliusOracle:
    """Fetch fungible asset metadata from the Helius DAS API."""

    def __init__(
        self,
        url: str,
        api_key: str = "",
        session: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.api_key = api_key
        self.session = session or httpx.AsyncClient()

    async def __aenter__(self) -> "HeliusOracle":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.session.aclose()

    async def aclose(self) -> None:
        await self.session.aclose()

    async def fetch_metadata(self, token_id: str) -> Optional[ProviderAsset]:
        payload = {
            "jsonrpc": "2.0",
            "id": "tokenassets",
            "method": "getAsset",
            "params": {"id": token_id, "displayOptions": {"showFungible": True}},
        }
        params = {"api-key": self.api_key} if self.api_key else None
        try:
            resp = await self.session.post(self.url, params=params, json=payload)
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("helius getAsset %s failed: %s", token_id, e)
            return None
        if not isinstance(body, dict):
            logger.warning("helius getAsset %s returned unexpected body", token_id)
            return None
        if body.get("error"):
            logger.warning("helius getAsset %s error: %s", token_id, body["error"])
            return None
        result = body.get("result")
        if not isinstance(result, dict):
            return None
        return ProviderAsset.model_validate(result)

    async def fetch_asset(self, token_id: str) -> Optional[AssetRecord]:
        return map_to_asset_record(token_id, await self.fetch_metadata(token_id))
