"""FastAPI application serving token metadata and logos.

Endpoints:
* ``GET /health`` – service liveness
* ``GET /api/assets/{chain}/{token_id}`` – asset metadata, discovered upstream
  for Solana mints missing from the token list
* ``GET /blockchains/{chain}/assets/{token_id}/logo.png|svg`` – cached logo,
  falling back to the Trust Wallet CDN and Helius metadata
* ``GET /metrics/prometheus`` – request metrics
* everything else – static files below the asset root
"""

from __future__ import annotations

import contextlib
import logging
import os
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..oracle import HeliusOracle
from ..persistence import AssetService, LogoCache, TokenListError, TokenListStore
from ..service import BackgroundWriter, LogoFallbackResolver
from ..types import is_valid_chain, is_valid_token_id, normalize_chain
from ..utils import AssetConfig

logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=86400"
LOGO_FILES = ("logo.png", "logo.svg")
CONTENT_TYPES = {
    ".json": "application/json",
    ".png": "image/png",
    ".svg": "image/svg+xml",
}
NOT_FOUND = {"error": "Asset not found"}
INTERNAL_ERROR = {"error": "Internal server error"}


def not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content=NOT_FOUND)


class AssetStaticFiles(StaticFiles):
    """Static files with content types forced for the asset extensions."""

    def file_response(self, full_path, stat_result, scope, status_code: int = 200) -> Response:
        response = super().file_response(full_path, stat_result, scope, status_code)
        media_type = CONTENT_TYPES.get(os.path.splitext(str(full_path))[1].lower())
        if media_type is not None:
            response.headers["content-type"] = media_type
        return response


def create_app(
    cfg: AssetConfig,
    assets: AssetService,
    fallback: LogoFallbackResolver,
    writer: BackgroundWriter,
) -> FastAPI:
    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await writer.drain()
        for closer in (fallback.aclose, assets.logos.aclose, assets.oracle.aclose):
            with contextlib.suppress(Exception):
                await closer()

    app = FastAPI(title="token asset server", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def cache_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = CACHE_CONTROL
        return response

    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return not_found()
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    Instrumentator().instrument(app).expose(
        app, endpoint="/metrics/prometheus", include_in_schema=False
    )

    app.state.assets = assets
    app.state.fallback = fallback
    app.state.writer = writer

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.get("/api/assets/{chain}/{token_id}")
    async def get_asset(chain: str, token_id: str):
        try:
            asset = await assets.get_asset(chain, token_id)
        except TokenListError:
            logger.exception("token list for %s is corrupt", chain)
            return JSONResponse(status_code=500, content=INTERNAL_ERROR)
        except Exception:
            logger.exception("lookup of %s/%s failed", chain, token_id)
            return JSONResponse(status_code=500, content=INTERNAL_ERROR)
        if asset is None:
            return not_found()
        return asset

    async def serve_logo(chain: str, token_id: str, filename: str) -> Response:
        chain = normalize_chain(chain)
        if not is_valid_chain(chain) or not is_valid_token_id(token_id):
            return not_found()
        try:
            result = await fallback.resolve(chain, token_id, filename)
        except Exception:
            logger.exception("logo fallback for %s/%s failed", chain, token_id)
            result = None
        if result is None:
            return not_found()
        if result.path is not None:
            return FileResponse(result.path, media_type=result.media_type)
        return Response(
            content=result.content,
            media_type=result.media_type,
            headers={"X-Cached-From": result.source},
        )

    def logo_endpoint(filename: str):
        async def get_logo(chain: str, token_id: str) -> Response:
            return await serve_logo(chain, token_id, filename)

        return get_logo

    # other files under an asset directory fall through to the static mount
    for filename in LOGO_FILES:
        app.add_api_route(
            f"/blockchains/{{chain}}/assets/{{token_id}}/{filename}",
            logo_endpoint(filename),
            methods=["GET"],
            name=f"get_{filename.replace('.', '_')}",
        )

    cfg.root_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/", AssetStaticFiles(directory=cfg.root_dir), name="static")

    return app


def build_app(cfg: AssetConfig) -> FastAPI:
    """Wire the default components for *cfg* and return the application."""

    store = TokenListStore(cfg.tokenlists_dir)
    logos = LogoCache(
        cfg.blockchains_dir,
        ipfs_gateway=cfg.ipfs_gateway,
        arweave_gateway=cfg.arweave_gateway,
        public_url=cfg.public_url,
        user_agent=cfg.user_agent,
    )
    oracle = HeliusOracle(cfg.helius_url, cfg.helius_api_key)
    assets = AssetService(store, logos, oracle)
    writer = BackgroundWriter()
    fallback = LogoFallbackResolver(
        logos,
        oracle,
        assets,
        writer,
        cdn_url=cfg.trust_cdn_url,
        user_agent=cfg.user_agent,
    )
    return create_app(cfg, assets, fallback, writer)
