"""Local logo cache.

Logos live at ``<root>/blockchains/<chain>/assets/<tokenId>/logo.png``. The
presence of that file is the cache-hit signal and a written logo is never
refreshed.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote_to_bytes

import httpx

from ..types import AssetRecord

logger = logging.getLogger(__name__)

LOGO_FILENAME = "logo.png"


def normalize_uri(
    uri: Optional[str],
    ipfs_gateway: str = "https://ipfs.io",
    arweave_gateway: str = "https://arweave.net",
) -> Optional[str]:
    """Rewrite content-addressed logo URIs to HTTP gateway URLs."""

    if not uri:
        return None
    uri = uri.strip()
    lowered = uri.lower()
    if lowered.startswith("ipfs://"):
        path = uri[len("ipfs://"):]
        if path.lower().startswith("ipfs/"):
            path = path[len("ipfs/"):]
        return f"{ipfs_gateway.rstrip('/')}/ipfs/{path}"
    if lowered.startswith("ar://"):
        return f"{arweave_gateway.rstrip('/')}/{uri[len('ar://'):]}"
    return uri


def is_data_uri(uri: str) -> bool:
    return uri[:5].lower() == "data:"


def decode_data_uri(uri: str) -> Optional[bytes]:
    """Decode ``data:<mediatype>[;base64],<data>`` into bytes.

    Returns ``None`` for a URI without the comma separator or with an
    undecodable base64 payload.
    """

    header, sep, data = uri[5:].partition(",")
    if not sep:
        return None
    if header.lower().endswith(";base64"):
        try:
            return base64.b64decode(data, validate=False)
        except (binascii.Error, ValueError):
            return None
    return unquote_to_bytes(data)


class LogoCache:
    """Materialize logo URIs into cached image files."""

    def __init__(
        self,
        directory: Path,
        session: Optional[httpx.AsyncClient] = None,
        ipfs_gateway: str = "https://ipfs.io",
        arweave_gateway: str = "https://arweave.net",
        public_url: str = "",
        user_agent: Optional[str] = None,
    ) -> None:
        self.directory = Path(directory)
        self.session = session or httpx.AsyncClient(follow_redirects=True)
        self.ipfs_gateway = ipfs_gateway
        self.arweave_gateway = arweave_gateway
        self.public_url = public_url.rstrip("/")
        self.headers = {"User-Agent": user_agent} if user_agent else {}

    async def __aenter__(self) -> "LogoCache":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.session.aclose()

    async def aclose(self) -> None:
        await self.session.aclose()

    def normalize(self, uri: Optional[str]) -> Optional[str]:
        return normalize_uri(uri, self.ipfs_gateway, self.arweave_gateway)

    def logo_path(self, chain: str, token_id: str, filename: str = LOGO_FILENAME) -> Path:
        return self.directory / chain / "assets" / token_id / filename

    def public_path(self, chain: str, token_id: str, filename: str = LOGO_FILENAME) -> str:
        return f"{self.public_url}/blockchains/{chain}/assets/{token_id}/{filename}"

    def write_logo(self, chain: str, token_id: str, filename: str, content: bytes) -> Path:
        """Write *content* through a temporary file and an atomic rename.

        Readers checking for the file never observe a partial logo.
        """

        path = self.logo_path(chain, token_id, filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{filename}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.info("cached logo %s (%d bytes)", path, len(content))
        return path

    async def fetch(self, uri: str) -> httpx.Response:
        """GET *uri*; a non-2xx status raises :class:`httpx.HTTPStatusError`."""

        resp = await self.session.get(uri, headers=self.headers)
        resp.raise_for_status()
        return resp

    async def resolve_and_cache_logo(self, asset: Union[AssetRecord, dict]) -> Optional[str]:
        """Cache the logo of *asset* and return its public canonical path.

        Returns ``None`` when the asset has no logo or carries a malformed
        data URI. Network and HTTP errors propagate to the caller.
        """

        if isinstance(asset, AssetRecord):
            asset = asset.to_dict()
        chain, token_id = asset["chain"], asset["tokenId"]
        uri = self.normalize(asset.get("logoURI"))
        if uri is None:
            return None

        path = self.logo_path(chain, token_id)
        if path.exists():
            return self.public_path(chain, token_id)

        path.parent.mkdir(parents=True, exist_ok=True)
        if is_data_uri(uri):
            content = decode_data_uri(uri)
            if content is None:
                logger.warning("malformed data URI logo for %s/%s", chain, token_id)
                return None
        else:
            resp = await self.fetch(uri)
            content = resp.content
        self.write_logo(chain, token_id, LOGO_FILENAME, content)
        return self.public_path(chain, token_id)
