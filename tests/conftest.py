import base64
import json

import httpx
import pytest
from prometheus_client import REGISTRY

from tokenassets.oracle import HeliusOracle
from tokenassets.persistence import AssetService, LogoCache, TokenListStore
from tokenassets.service import BackgroundWriter, LogoFallbackResolver
from tokenassets.utils import AssetConfig

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
HELIUS_URL = "https://helius.test/"
CDN_URL = "https://cdn.test"


def clear_registry() -> None:
    for collector in list(REGISTRY._collector_to_names.keys()):
        try:
            REGISTRY.unregister(collector)
        except KeyError:
            pass


def fungible(symbol="XYZ", name="Xyz Token", image=None, decimals=6, supply=1000):
    content = {"metadata": {"name": name, "symbol": symbol}, "links": {}, "files": []}
    if image:
        content["links"]["image"] = image
    return {
        "interface": "FungibleToken",
        "content": content,
        "token_info": {"symbol": symbol, "decimals": decimals, "supply": supply},
    }


class Upstream:
    """Routes mock HTTP traffic and records every request."""

    def __init__(self) -> None:
        self.requests = []
        self.helius = {}
        self.files = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url.startswith(HELIUS_URL):
            token_id = json.loads(request.content)["params"]["id"]
            result = self.helius.get(token_id)
            if result is None:
                return httpx.Response(200, json={"jsonrpc": "2.0", "id": "x", "result": None})
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": "x", "result": result})
        if url in self.files:
            return httpx.Response(200, content=self.files[url], headers={"content-type": "image/png"})
        return httpx.Response(404, text="not found")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def urls(self):
        return [str(r.url) for r in self.requests]


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def cfg(tmp_path):
    return AssetConfig(root_dir=tmp_path, helius_url=HELIUS_URL, trust_cdn_url=CDN_URL)


@pytest.fixture
def components(cfg, upstream):
    store = TokenListStore(cfg.tokenlists_dir)
    logos = LogoCache(cfg.blockchains_dir, session=upstream.client(), user_agent=cfg.user_agent)
    oracle = HeliusOracle(cfg.helius_url, session=upstream.client())
    assets = AssetService(store, logos, oracle)
    writer = BackgroundWriter()
    fallback = LogoFallbackResolver(
        logos,
        oracle,
        assets,
        writer,
        cdn_url=cfg.trust_cdn_url,
        user_agent=cfg.user_agent,
        session=upstream.client(),
    )
    return {
        "store": store,
        "logos": logos,
        "oracle": oracle,
        "assets": assets,
        "writer": writer,
        "fallback": fallback,
    }


def data_uri(content: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64," + base64.b64encode(content).decode()


def write_tokenlist(cfg, chain, assets, version=1):
    cfg.tokenlists_dir.mkdir(parents=True, exist_ok=True)
    path = cfg.tokenlists_dir / f"{chain}.json"
    path.write_text(json.dumps({"version": version, "assets": assets}))
    return path
