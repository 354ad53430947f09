"""Run the token asset server.

Serves token metadata from the per-chain token lists and logos from the
local cache, discovering missing Solana assets through Helius and missing
logos through the Trust Wallet CDN.
"""

import logging

import uvicorn

from tokenassets.utils import parse_args, AssetConfig, check_writable
from tokenassets.server import build_app


def main() -> None:
    args = parse_args()
    cfg = AssetConfig.from_args(args)
    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    check_writable(cfg.root_dir)
    app = build_app(cfg)
    logging.getLogger(__name__).info("assets server running on port %d", cfg.port)
    uvicorn.run(app, host=cfg.host, port=cfg.port)


if __name__ == "__main__":
    main()
