"""Asset lookup service."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Union

from prometheus_client import Counter

from ..oracle.helius import HeliusOracle
from ..types import (
    SOLANA,
    AssetRecord,
    is_valid_chain,
    is_valid_token_id,
    normalize_chain,
    sanitize_asset,
)
from .logos import LogoCache
from .tokenlist import TokenListStore

logger = logging.getLogger(__name__)

ASSET_LOOKUPS = Counter("asset_lookups_total", "Asset metadata lookups", ["source"])


class AssetService:
    """Serve asset metadata from the token lists, discovering Solana mints upstream."""

    def __init__(self, store: TokenListStore, logos: LogoCache, oracle: HeliusOracle) -> None:
        self.store = store
        self.logos = logos
        self.oracle = oracle

    async def get_asset(self, chain: str, token_id: str) -> Optional[Dict]:
        chain = normalize_chain(chain)
        if not is_valid_chain(chain) or not is_valid_token_id(token_id):
            ASSET_LOOKUPS.labels("miss").inc()
            return None

        assets = self.store.load(chain)
        found = self.store.find(assets, chain, token_id)
        if found is not None:
            ASSET_LOOKUPS.labels("store").inc()
            return found

        if chain == SOLANA:
            asset = await self.oracle.fetch_asset(token_id)
            if asset is not None:
                ASSET_LOOKUPS.labels("helius").inc()
                return await self.persist_solana_asset(asset)

        ASSET_LOOKUPS.labels("miss").inc()
        return None

    async def persist_solana_asset(
        self, asset: Union[AssetRecord, Dict], logo_uri: Optional[str] = None
    ) -> Dict:
        """Cache the logo and record *asset* in the token list.

        When *logo_uri* is given the logo is already settled (cached by the
        caller, or left remote) and it is recorded as is without fetching.
        Both steps are best effort: a failure is logged and the resolved
        asset is still returned.
        """

        record = asset.to_dict() if isinstance(asset, AssetRecord) else sanitize_asset(asset)
        chain, token_id = record["chain"], record["tokenId"]
        if logo_uri is not None:
            record["logoURI"] = logo_uri
        else:
            try:
                local = await self.logos.resolve_and_cache_logo(record)
            except Exception:
                logger.warning("failed to cache logo for %s/%s", chain, token_id, exc_info=True)
            else:
                if local:
                    record["logoURI"] = local
        try:
            await asyncio.to_thread(self.store.upsert, chain, record)
        except Exception:
            logger.warning("failed to persist %s/%s", chain, token_id, exc_info=True)
        return record
