"""Per-chain JSON token lists.

Each chain owns one document at ``<root>/tokenlists/<chain>.json``::

    {"version": 1, "assets": [{...}, ...]}

The documents are the durable source of truth for known assets. Writes go
through a temporary file followed by an atomic rename and are serialized per
chain, so two upserts racing on the same chain cannot drop each other's
changes.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..types import sanitize_asset, same_token

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = 1


class TokenListError(RuntimeError):
    """Raised when an existing token list cannot be parsed."""


class TokenListStore:
    """Read and write the per-chain token list documents."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, chain: str) -> Path:
        return self.directory / f"{chain}.json"

    def _chain_lock(self, chain: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(chain)
            if lock is None:
                lock = self._locks[chain] = threading.Lock()
            return lock

    def read_document(self, chain: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(chain)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            doc = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise TokenListError(f"malformed token list {path}: {exc}") from exc
        if not isinstance(doc, dict) or not isinstance(doc.get("assets", []), list):
            raise TokenListError(f"malformed token list {path}: unexpected layout")
        doc.setdefault("version", DOCUMENT_VERSION)
        doc.setdefault("assets", [])
        return doc

    def write_document(self, chain: str, doc: Dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(chain)
        payload = json.dumps(doc, indent=2, ensure_ascii=False) + "\n"
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{chain}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def load(self, chain: str) -> Optional[List[Dict[str, Any]]]:
        """Return the chain's assets, or ``None`` when it has no token list."""

        doc = self.read_document(chain)
        if doc is None:
            return None
        return doc["assets"]

    @staticmethod
    def find(
        assets: Optional[List[Dict[str, Any]]], chain: str, token_id: str
    ) -> Optional[Dict[str, Any]]:
        for asset in assets or []:
            candidate = asset.get("tokenId")
            if isinstance(candidate, str) and same_token(chain, candidate, token_id):
                return asset
        return None

    def upsert(self, chain: str, asset: Dict[str, Any]) -> bool:
        """Insert or merge *asset* into the chain's token list.

        Returns ``True`` when the document was written. Merging an already
        known asset only writes when one of its fields actually changed.
        """

        record = sanitize_asset(asset)
        with self._chain_lock(chain):
            doc = self.read_document(chain)
            if doc is None:
                doc = {"version": DOCUMENT_VERSION, "assets": []}
            existing = self.find(doc["assets"], chain, record["tokenId"])
            if existing is not None:
                changed = False
                for key, value in record.items():
                    if value is None or key == "tokenId":
                        continue
                    if existing.get(key) != value:
                        existing[key] = value
                        changed = True
                if not changed:
                    return False
                logger.info("updated %s/%s in token list", chain, record["tokenId"])
            else:
                doc["assets"].append(record)
                logger.info("added %s/%s to token list", chain, record["tokenId"])
            self.write_document(chain, doc)
            return True
