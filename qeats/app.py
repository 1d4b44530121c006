from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, time

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .config import DEFAULT_DISCOVERY_CONFIG, DiscoveryConfig
from .restaurants.cache import GeoBucketCache
from .restaurants.cache_transport import build_transport
from .restaurants.data_store import RestaurantStore, get_default_store
from .restaurants.errors import StoreUnavailableError
from .restaurants.models import DiscoveryRequest, RestaurantsResponse
from .restaurants.search import SearchAggregator
from .restaurants.service import DiscoveryService
from .restaurants.serving import ServingPolicy

logger = logging.getLogger(__name__)

_cache: GeoBucketCache | None = None
_aggregator: SearchAggregator | None = None
_service: DiscoveryService | None = None


def build_service(
    store: RestaurantStore,
    config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG,
) -> tuple[DiscoveryService, GeoBucketCache, SearchAggregator]:
    """Wire store -> cache transport -> bucket cache + search aggregator -> service."""
    cache = GeoBucketCache(
        store,
        build_transport(config),
        ttl_seconds=config.cache_ttl_seconds,
        key_by_radius=config.cache_key_by_radius,
    )
    aggregator = SearchAggregator(store, max_workers=config.search_max_workers)
    service = DiscoveryService(
        cache,
        aggregator,
        policy=ServingPolicy.from_config(config),
        concurrent_search=config.search_concurrent,
    )
    return service, cache, aggregator


def get_discovery_service() -> DiscoveryService:
    """Return the process-wide service, building it on first call."""
    global _service, _cache, _aggregator
    if _service is None:
        _service, _cache, _aggregator = build_service(get_default_store())
    return _service


def get_cache() -> GeoBucketCache:
    get_discovery_service()
    return _cache


def get_current_time() -> time:
    return datetime.now().time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if _aggregator is not None:
        _aggregator.close()


app = FastAPI(title="QEats Restaurant Discovery API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(StoreUnavailableError)
async def store_unavailable(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    logger.error("Restaurant store unavailable: %s", exc)
    return JSONResponse(status_code=503, content={"detail": "Restaurant data is unavailable"})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/qeats/v1/restaurants", response_model=RestaurantsResponse)
def restaurants(
    latitude: float = Query(..., ge=-90.0, le=90.0),
    longitude: float = Query(..., ge=-180.0, le=180.0),
    search_for: str | None = Query(default=None, alias="searchFor"),
    service: DiscoveryService = Depends(get_discovery_service),
    now: time = Depends(get_current_time),
) -> RestaurantsResponse:
    request = DiscoveryRequest(latitude=latitude, longitude=longitude, search_for=search_for)
    if search_for is None:
        return service.discover(request, now)
    return service.search_by_substring(request, now)


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/cache/stats")
def cache_stats(cache: GeoBucketCache = Depends(get_cache)) -> dict:
    return cache.stats()
