import json
import threading

import pytest

from tokenassets.persistence import TokenListStore, TokenListError
from tokenassets.types import AssetRecord, sanitize_asset

from conftest import write_tokenlist


def record(token_id="Mint111", **overrides):
    data = {
        "chain": "solana",
        "tokenId": token_id,
        "name": "Token",
        "symbol": "TKN",
        "type": "SPL",
        "decimals": 6,
    }
    data.update(overrides)
    return data


def test_load_missing_returns_none(tmp_path):
    store = TokenListStore(tmp_path / "tokenlists")
    assert store.load("ethereum") is None


def test_find_case_insensitive_for_generic_chains(cfg):
    write_tokenlist(cfg, "ethereum", [record("0xAbC", chain="ethereum", type="ERC20")])
    store = TokenListStore(cfg.tokenlists_dir)
    assets = store.load("ethereum")
    found = store.find(assets, "ethereum", "0xabc")
    assert found is not None
    assert found["tokenId"] == "0xAbC"


def test_find_case_sensitive_for_solana(cfg):
    write_tokenlist(cfg, "solana", [record("MintAbc"), record("mintabc", symbol="LOW")])
    store = TokenListStore(cfg.tokenlists_dir)
    assets = store.load("solana")
    assert store.find(assets, "solana", "MintAbc")["symbol"] == "TKN"
    assert store.find(assets, "solana", "mintabc")["symbol"] == "LOW"
    assert store.find(assets, "solana", "MINTABC") is None


def test_upsert_creates_document(tmp_path):
    store = TokenListStore(tmp_path / "tokenlists")
    assert store.upsert("solana", record()) is True
    raw = store.path_for("solana").read_text()
    assert raw.endswith("\n")
    doc = json.loads(raw)
    assert doc["version"] == 1
    assert doc["assets"] == [record()]
    assert raw == json.dumps(doc, indent=2) + "\n"


def test_upsert_is_idempotent(tmp_path, monkeypatch):
    store = TokenListStore(tmp_path / "tokenlists")
    writes = []
    original = store.write_document

    def counting(chain, doc):
        writes.append(chain)
        original(chain, doc)

    monkeypatch.setattr(store, "write_document", counting)
    assert store.upsert("solana", record()) is True
    assert store.upsert("solana", record()) is False
    assert writes == ["solana"]
    assert len(store.load("solana")) == 1


def test_upsert_merges_defined_fields_only(cfg):
    existing = record(logoURI="https://example.com/a.png", website="https://tkn.example")
    write_tokenlist(cfg, "solana", [existing], version=3)
    store = TokenListStore(cfg.tokenlists_dir)

    assert store.upsert("solana", record(symbol="NEW", logoURI=None, supply="42")) is True
    doc = json.loads(store.path_for("solana").read_text())
    assert doc["version"] == 3
    (merged,) = doc["assets"]
    assert merged["symbol"] == "NEW"
    assert merged["supply"] == "42"
    assert merged["logoURI"] == "https://example.com/a.png"
    assert merged["website"] == "https://tkn.example"


def test_upsert_appends_in_order(tmp_path):
    store = TokenListStore(tmp_path / "tokenlists")
    store.upsert("solana", record("A"))
    store.upsert("solana", record("B"))
    store.upsert("solana", record("a"))
    assert [a["tokenId"] for a in store.load("solana")] == ["A", "B", "a"]


def test_upsert_sanitizes_provider_extras(tmp_path):
    store = TokenListStore(tmp_path / "tokenlists")
    store.upsert("solana", record(interface="FungibleToken", content={"x": 1}))
    (saved,) = store.load("solana")
    assert set(saved) == {"chain", "tokenId", "name", "symbol", "type", "decimals"}


def test_malformed_document_raises(cfg):
    cfg.tokenlists_dir.mkdir(parents=True)
    (cfg.tokenlists_dir / "solana.json").write_text("{not json")
    store = TokenListStore(cfg.tokenlists_dir)
    with pytest.raises(TokenListError):
        store.load("solana")
    with pytest.raises(TokenListError):
        store.upsert("solana", record())
    assert (cfg.tokenlists_dir / "solana.json").read_text() == "{not json"


def test_concurrent_upserts_keep_every_record(tmp_path):
    store = TokenListStore(tmp_path / "tokenlists")
    threads = [
        threading.Thread(target=store.upsert, args=("solana", record(f"Mint{i}")))
        for i in range(20)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(store.load("solana")) == 20


def test_sanitize_keeps_optional_fields_when_present():
    asset = AssetRecord(
        chain="solana", token_id="M", name="n", symbol="s", type="SPL", decimals=2, supply="7"
    )
    assert asset.to_dict() == {
        "chain": "solana",
        "tokenId": "M",
        "name": "n",
        "symbol": "s",
        "type": "SPL",
        "decimals": 2,
        "supply": "7",
    }
    assert "logoURI" not in sanitize_asset({"logoURI": None})
