from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import time
from typing import Callable, Iterable

from .data_store import RestaurantStore
from .models import GeoPoint, MenuRecord, Restaurant, RestaurantRecord, to_restaurant
from .predicates import is_candidate

logger = logging.getLogger(__name__)

SubQuery = Callable[[str], list[RestaurantRecord]]


def merge_unique(batches: Iterable[list[Restaurant]]) -> list[Restaurant]:
    """Concatenate batches in order, keeping the first copy of each projection."""
    seen: set[Restaurant] = set()
    merged: list[Restaurant] = []
    for batch in batches:
        for restaurant in batch:
            if restaurant in seen:
                continue
            seen.add(restaurant)
            merged.append(restaurant)
    return merged


class SearchAggregator:
    """Runs the name / attribute / item-name / item-attribute searches and merges them.

    Every hit goes through the open-now and serving-radius check before it is
    merged. ``search_concurrent`` issues the four store queries on a thread
    pool and waits for all of them; a failing query fails the whole search.
    """

    def __init__(self, store: RestaurantStore, max_workers: int = 4) -> None:
        self._store = store
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="qeats-search"
        )

    def __enter__(self) -> "SearchAggregator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=True, cancel_futures=True)

    # -- sub-queries ---------------------------------------------------------

    def _restaurants_for(self, menus: list[MenuRecord]) -> list[RestaurantRecord]:
        records: list[RestaurantRecord] = []
        for menu in menus:
            record = self._store.find_by_id(menu.restaurant_id)
            if record is None:
                logger.warning("Menu references unknown restaurant %s", menu.restaurant_id)
                continue
            records.append(record)
        return records

    def _by_item_name(self, query: str) -> list[RestaurantRecord]:
        return self._restaurants_for(self._store.find_menus_by_item_name_pattern(query))

    def _by_item_attribute(self, query: str) -> list[RestaurantRecord]:
        return self._restaurants_for(self._store.find_menus_by_item_attribute_pattern(query))

    def _sub_queries(self) -> list[SubQuery]:
        return [
            self._store.find_by_name_pattern,
            self._store.find_by_attribute_pattern,
            self._by_item_name,
            self._by_item_attribute,
        ]

    @staticmethod
    def _run(
        sub_query: SubQuery, query: str, center: GeoPoint, at: time, radius_km: float
    ) -> list[Restaurant]:
        return [
            to_restaurant(record)
            for record in sub_query(query)
            if is_candidate(record, at, center, radius_km)
        ]

    # -- public API ----------------------------------------------------------

    def search(self, center: GeoPoint, at: time, radius_km: float, query: str) -> list[Restaurant]:
        if not query:
            return []
        return merge_unique(
            self._run(sub_query, query, center, at, radius_km)
            for sub_query in self._sub_queries()
        )

    def submit(
        self, center: GeoPoint, at: time, radius_km: float, query: str
    ) -> Future[list[Restaurant]]:
        """Start the four sub-queries and return a future of the merged result.

        The future completes once every sub-query has finished. If one raises,
        the future carries that exception and sub-queries that have not started
        are cancelled. Cancelling the returned future cancels pending sub-queries.
        """
        merged: Future[list[Restaurant]] = Future()
        if not query:
            merged.set_result([])
            return merged

        parts = [
            self._executor.submit(self._run, sub_query, query, center, at, radius_km)
            for sub_query in self._sub_queries()
        ]
        pending = set(parts)
        lock = threading.RLock()

        def _cancel_parts(_: Future) -> None:
            if merged.cancelled():
                for part in parts:
                    part.cancel()

        def _on_done(part: Future) -> None:
            with lock:
                if merged.done() or part.cancelled():
                    return
                exc = part.exception()
                if exc is not None:
                    if merged.set_running_or_notify_cancel():
                        merged.set_exception(exc)
                    for other in parts:
                        other.cancel()
                    return
                pending.discard(part)
                if not pending and merged.set_running_or_notify_cancel():
                    merged.set_result(merge_unique(p.result() for p in parts))

        merged.add_done_callback(_cancel_parts)
        for part in parts:
            part.add_done_callback(_on_done)
        return merged

    def search_concurrent(
        self, center: GeoPoint, at: time, radius_km: float, query: str
    ) -> list[Restaurant]:
        return self.submit(center, at, radius_km, query).result()
