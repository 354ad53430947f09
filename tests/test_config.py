from pathlib import Path

from tokenassets.utils import parse_args, AssetConfig


def test_parse_args_defaults(monkeypatch):
    for var in ("PORT", "HOST", "ASSETS_ROOT", "HELIUS_RPC_URL", "TRUST_CDN_URL"):
        monkeypatch.delenv(var, raising=False)
    args = parse_args([])
    assert args.port == 3000
    assert args.host == "0.0.0.0"
    assert args.root_dir == "."
    assert args.helius_url.startswith("https://")


def test_port_from_env(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    assert parse_args([]).port == 8080


def test_asset_config_from_args():
    ns = parse_args(["--root-dir", "/srv/assets", "--trust-cdn-url", "https://cdn.test/"])
    cfg = AssetConfig.from_args(ns)
    assert cfg.tokenlists_dir == Path("/srv/assets/tokenlists")
    assert cfg.blockchains_dir == Path("/srv/assets/blockchains")
    assert cfg.trust_cdn_url == "https://cdn.test"
