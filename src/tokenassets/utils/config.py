"""Configuration management utilities."""

from dataclasses import dataclass
import argparse
import os
from pathlib import Path
from typing import Optional, List

DEFAULT_HELIUS_URL = "https://mainnet.helius-rpc.com/"
DEFAULT_TRUST_CDN_URL = "https://assets-cdn.trustwallet.com"
DEFAULT_IPFS_GATEWAY = "https://ipfs.io"
DEFAULT_ARWEAVE_GATEWAY = "https://arweave.net"
DEFAULT_USER_AGENT = "tokenassets/0.1"


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments or provided list."""
    parser = argparse.ArgumentParser(description="token asset server")
    parser.add_argument(
        "--host",
        default=os.getenv("HOST", "0.0.0.0"),
        help="Interface to bind",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "3000")),
        help="Port to listen on",
    )
    parser.add_argument(
        "--root-dir",
        default=os.getenv("ASSETS_ROOT", "."),
        help="Directory holding tokenlists/ and blockchains/",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    parser.add_argument(
        "--helius-url",
        default=os.getenv("HELIUS_RPC_URL", DEFAULT_HELIUS_URL),
        help="Helius DAS JSON-RPC endpoint",
    )
    parser.add_argument(
        "--helius-api-key",
        default=os.getenv("HELIUS_API_KEY", ""),
        help="Helius API key",
    )
    parser.add_argument(
        "--trust-cdn-url",
        default=os.getenv("TRUST_CDN_URL", DEFAULT_TRUST_CDN_URL),
        help="Trust Wallet assets CDN base URL",
    )
    parser.add_argument(
        "--ipfs-gateway",
        default=os.getenv("IPFS_GATEWAY", DEFAULT_IPFS_GATEWAY),
        help="HTTP gateway used for ipfs:// logos",
    )
    parser.add_argument(
        "--arweave-gateway",
        default=os.getenv("ARWEAVE_GATEWAY", DEFAULT_ARWEAVE_GATEWAY),
        help="HTTP gateway used for ar:// logos",
    )
    parser.add_argument(
        "--user-agent",
        default=os.getenv("ASSETS_USER_AGENT", DEFAULT_USER_AGENT),
        help="User-Agent sent to logo hosts",
    )
    parser.add_argument(
        "--public-url",
        default=os.getenv("PUBLIC_URL", ""),
        help="Prefix for cached logo URIs (empty keeps them relative)",
    )
    return parser.parse_args(args)


@dataclass
class AssetConfig:
    root_dir: Path
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    helius_url: str = DEFAULT_HELIUS_URL
    helius_api_key: str = ""
    trust_cdn_url: str = DEFAULT_TRUST_CDN_URL
    ipfs_gateway: str = DEFAULT_IPFS_GATEWAY
    arweave_gateway: str = DEFAULT_ARWEAVE_GATEWAY
    user_agent: str = DEFAULT_USER_AGENT
    public_url: str = ""

    def __post_init__(self) -> None:
        self.root_dir = Path(self.root_dir)

    @property
    def tokenlists_dir(self) -> Path:
        return self.root_dir / "tokenlists"

    @property
    def blockchains_dir(self) -> Path:
        return self.root_dir / "blockchains"

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "AssetConfig":
        return cls(
            root_dir=Path(args.root_dir),
            host=args.host,
            port=args.port,
            log_level=args.log_level,
            helius_url=args.helius_url,
            helius_api_key=args.helius_api_key,
            trust_cdn_url=args.trust_cdn_url.rstrip("/"),
            ipfs_gateway=args.ipfs_gateway.rstrip("/"),
            arweave_gateway=args.arweave_gateway.rstrip("/"),
            user_agent=args.user_agent,
            public_url=args.public_url.rstrip("/"),
        )
