from __future__ import annotations

from datetime import time

from .cache import GeoBucketCache
from .models import DiscoveryRequest, RestaurantsResponse
from .search import SearchAggregator
from .serving import DEFAULT_SERVING_POLICY, ServingPolicy


class DiscoveryService:
    """Entry point: pick the serving radius for the time of day, then delegate."""

    def __init__(
        self,
        cache: GeoBucketCache,
        aggregator: SearchAggregator,
        policy: ServingPolicy = DEFAULT_SERVING_POLICY,
        concurrent_search: bool = True,
    ) -> None:
        self._cache = cache
        self._aggregator = aggregator
        self._policy = policy
        self._concurrent_search = concurrent_search

    def discover(self, request: DiscoveryRequest, at: time) -> RestaurantsResponse:
        radius_km = self._policy.radius_for(at)
        restaurants = self._cache.fetch_nearby(request.center, at, radius_km)
        return RestaurantsResponse(restaurants=restaurants)

    def search_by_substring(self, request: DiscoveryRequest, at: time) -> RestaurantsResponse:
        radius_km = self._policy.radius_for(at)
        search = (
            self._aggregator.search_concurrent
            if self._concurrent_search
            else self._aggregator.search
        )
        restaurants = search(request.center, at, radius_km, request.search_for or "")
        return RestaurantsResponse(restaurants=restaurants)
