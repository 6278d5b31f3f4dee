"""FastAPI application exposing the cache over HTTP."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from reqcache import __version__
from reqcache.config.settings import Settings, settings
from reqcache.core.cache import TTLCache, create_cache
from reqcache.core.logging import get_logger, setup_logging
from reqcache.core.middleware import ObservabilityMiddleware
from reqcache.core.schemas import (
    CacheItem,
    CacheKeyParams,
    CacheStats,
    CacheWrite,
    StatsQuery,
)
from reqcache.core.validation import (
    install_validation_handler,
    validate_body,
    validate_params,
    validate_query,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/cache")


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/stats", response_model=CacheStats)
async def cache_stats(
    query: StatsQuery = Depends(validate_query(StatsQuery)),
    cache: TTLCache = Depends(get_cache),
) -> CacheStats:
    stats = cache.get_stats()
    entries = stats["entries"]
    if query.prefix:
        entries = [e for e in entries if e["key"].startswith(query.prefix)]
    return CacheStats(size=stats["size"], entries=entries[: query.limit])


@router.get("/{key}", response_model=CacheItem)
async def read_item(
    params: CacheKeyParams = Depends(validate_params(CacheKeyParams)),
    cache: TTLCache = Depends(get_cache),
) -> CacheItem:
    missing = object()
    value = cache.get(params.key, missing)
    if value is missing:
        raise HTTPException(status_code=404, detail=f"Key not found: {params.key}")
    return CacheItem(key=params.key, value=value)


@router.put("/{key}", response_model=CacheItem)
async def write_item(
    params: CacheKeyParams = Depends(validate_params(CacheKeyParams)),
    body: CacheWrite = Depends(validate_body(CacheWrite)),
    cache: TTLCache = Depends(get_cache),
    config: Settings = Depends(get_settings),
) -> CacheItem:
    ttl = body.ttl if body.ttl is not None else config.cache.default_ttl
    cache.set(params.key, body.value, ttl)
    logger.debug(f"cache set key={params.key} ttl={ttl}")
    return CacheItem(key=params.key, value=body.value, ttl=ttl)


@router.delete("/{key}", status_code=204)
async def delete_item(
    params: CacheKeyParams = Depends(validate_params(CacheKeyParams)),
    cache: TTLCache = Depends(get_cache),
) -> Response:
    cache.delete(params.key)
    return Response(status_code=204)


@router.delete("", status_code=204)
async def clear_cache(cache: TTLCache = Depends(get_cache)) -> Response:
    cache.clear()
    logger.info("cache cleared")
    return Response(status_code=204)


def create_app(config: Optional[Settings] = None) -> FastAPI:
    config = config or settings
    setup_logging(config.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = config
        app.state.cache = create_cache(config)
        logger.info(f"reqcache started env={config.env}")
        try:
            yield
        finally:
            app.state.cache.destroy()
            logger.info("reqcache stopped")

    app = FastAPI(title="reqcache", version=__version__, lifespan=lifespan)
    app.add_middleware(ObservabilityMiddleware)
    install_validation_handler(app)

    @app.get("/health")
    async def health() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse({"status": "ok", "service": "reqcache"})

    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    logger.info("Starting reqcache...")
    uvicorn.run(app, host="0.0.0.0", port=8000)
