"""Logo fallback for logo files missing from the local cache.

Sources are tried in a fixed order:

1. the local file (served by the static layer when present)
2. the Trust Wallet assets CDN
3. for Solana only, the logo advertised by the Helius metadata

Successful remote hits are returned right away while a background job copies
them into the local cache.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx
from prometheus_client import Counter

from ..oracle.helius import HeliusOracle
from ..persistence.assets import AssetService
from ..persistence.logos import LogoCache, decode_data_uri, is_data_uri
from ..types import SOLANA
from .background import BackgroundWriter

logger = logging.getLogger(__name__)

TRUSTWALLET_CDN = "trustwallet-cdn"
HELIUS_METADATA = "helius-metadata"

LOGO_FALLBACKS = Counter("logo_fallbacks_total", "Logo fallback outcomes", ["source"])


@dataclass
class LogoResult:
    source: str
    content: bytes = b""
    media_type: str = "image/png"
    path: Optional[Path] = None


def media_type_for(filename: str, header: Optional[str] = None) -> str:
    if header and header.split(";")[0].strip().lower().startswith("image/"):
        return header.split(";")[0].strip()
    if filename.lower().endswith(".svg"):
        return "image/svg+xml"
    return "image/png"


class LogoFallbackResolver:
    def __init__(
        self,
        logos: LogoCache,
        oracle: HeliusOracle,
        assets: AssetService,
        writer: BackgroundWriter,
        cdn_url: str,
        user_agent: str,
        session: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.logos = logos
        self.oracle = oracle
        self.assets = assets
        self.writer = writer
        self.cdn_url = cdn_url.rstrip("/")
        self.headers = {"User-Agent": user_agent}
        self.session = session or httpx.AsyncClient(follow_redirects=True)

    async def aclose(self) -> None:
        await self.session.aclose()

    def cdn_logo_url(self, chain: str, token_id: str, filename: str) -> str:
        return f"{self.cdn_url}/blockchains/{chain}/assets/{token_id}/{filename}"

    async def resolve(self, chain: str, token_id: str, filename: str) -> Optional[LogoResult]:
        local = self.logos.logo_path(chain, token_id, filename)
        if local.is_file():
            return LogoResult(source="local", path=local, media_type=media_type_for(filename))

        result = await self._from_cdn(chain, token_id, filename)
        if result is None and chain == SOLANA:
            result = await self._from_metadata(chain, token_id, filename)
        LOGO_FALLBACKS.labels(result.source if result else "miss").inc()
        return result

    async def _from_cdn(self, chain: str, token_id: str, filename: str) -> Optional[LogoResult]:
        url = self.cdn_logo_url(chain, token_id, filename)
        try:
            resp = await self.session.get(url, headers=self.headers)
        except httpx.HTTPError as e:
            logger.warning("trustwallet cdn request %s failed: %s", url, e)
            return None
        if not resp.is_success:
            logger.debug("trustwallet cdn %s returned %s", url, resp.status_code)
            return None

        content = resp.content
        self.writer.spawn(
            lambda: asyncio.to_thread(self.logos.write_logo, chain, token_id, filename, content),
            name=f"cache-cdn-logo:{chain}/{token_id}",
        )
        return LogoResult(
            source=TRUSTWALLET_CDN,
            content=content,
            media_type=media_type_for(filename, resp.headers.get("content-type")),
        )

    async def _from_metadata(self, chain: str, token_id: str, filename: str) -> Optional[LogoResult]:
        asset = await self.oracle.fetch_asset(token_id)
        uri = self.logos.normalize(asset.logo_uri) if asset else None
        if uri is None:
            return None

        header = None
        if is_data_uri(uri):
            content = decode_data_uri(uri)
            if content is None:
                return None
        else:
            try:
                resp = await self.logos.fetch(uri)
            except httpx.HTTPError as e:
                logger.warning("logo fetch %s for %s/%s failed: %s", uri, chain, token_id, e)
                return None
            content = resp.content
            header = resp.headers.get("content-type")

        async def persist() -> None:
            # record the file written here; the logo is never fetched twice
            logo_uri = asset.logo_uri
            try:
                await asyncio.to_thread(self.logos.write_logo, chain, token_id, filename, content)
            except Exception:
                logger.warning("failed to cache %s for %s/%s", filename, chain, token_id, exc_info=True)
            else:
                logo_uri = self.logos.public_path(chain, token_id, filename)
            await self.assets.persist_solana_asset(asset, logo_uri=logo_uri)

        self.writer.spawn(persist, name=f"persist-helius-asset:{chain}/{token_id}")
        return LogoResult(
            source=HELIUS_METADATA,
            content=content,
            media_type=media_type_for(filename, header),
        )
